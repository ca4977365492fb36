# Copyright (C) 2026 Advanced Media Workflow Association
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import json
import threading
import time
import uuid
from fractions import Fraction

from flask import Blueprint, Flask, make_response, abort, Response, request
from werkzeug.serving import make_server

from .. import Config as CONFIG
from ..FlowFixtures import SOURCE_NODE_TYPES, find_nodes, generate_node_id
from ..Grain import Grain, PTPTimestamp
from ..TestHelper import WebsocketWorker

GRAIN_DURATION = Fraction(1, 25)

# Audio samples carried by each grain at 48kHz with the default grain duration
AUDIO_SAMPLES_PER_GRAIN = 1920

END_MESSAGE = {"end": True, "close": True}


class FlowEmulator(threading.Thread):
    """Plays the part of a deployed flow's spout node, sending pre-computed messages to the testing tool"""

    def __init__(self, ws_href, messages, interval, end_delay=0):
        threading.Thread.__init__(self, daemon=True)
        self.ws_href = ws_href
        self.messages = messages
        self.interval = interval
        self.end_delay = end_delay
        self.sent = 0
        self.close_status = None
        self._stopped = threading.Event()

    def run(self):
        worker = WebsocketWorker(self.ws_href)
        worker.start()

        deadline = time.time() + CONFIG.MOCK_CONNECT_TIMEOUT
        while not worker.is_open() and not worker.did_error_occur() and time.time() < deadline:
            time.sleep(0.01)
        if not worker.is_open():
            print(" * ERROR: Mock flow could not connect to '{}': {}"
                  .format(self.ws_href, worker.get_error_message()))
            return

        for message in self.messages:
            if message == END_MESSAGE and self._stopped.wait(self.end_delay):
                break
            if self._stopped.is_set() or not worker.send(json.dumps(message)):
                break
            self.sent += 1
            time.sleep(self.interval)

        # Stay connected until the testing tool closes the WebSocket or deletes the flow
        while worker.is_open() and not self._stopped.wait(0.05):
            pass
        worker.close()
        worker.closed.wait(1)
        self.close_status = worker.close_status

    def stop(self):
        self._stopped.set()


class NodeRed(object):
    """Mock of the parts of the Node-RED admin API used by the flow tests"""

    def __init__(self):
        self.reset()

    def reset(self):
        for emulator in getattr(self, "emulators", {}).values():
            emulator.stop()
        self.flows = {}
        self.emulators = {}
        self.created = []
        self.deleted = []
        self.reject_status = None
        self.send_end = True
        self.message_interval = CONFIG.MOCK_MESSAGE_INTERVAL
        # Seconds to hold back the end marker, and to hold each DELETE before acting on it
        self.end_delay = 0
        self.delete_delay = 0

    def grain_messages(self, node):
        flow_id = uuid.uuid4()
        source_id = uuid.uuid4()
        if node.get("format") == "audio":
            payload_size = int(node.get("channels", 2)) * int(node.get("bitsPerSample", 16)) // 8 \
                * AUDIO_SAMPLES_PER_GRAIN
        else:
            payload_size = int(node.get("width", 1920)) * int(node.get("height", 1080)) * 2

        start = PTPTimestamp.now()
        messages = []
        for index in range(int(node.get("numPushes", 10))):
            timestamp = start + GRAIN_DURATION * index
            grain = Grain(None, timestamp, timestamp, None, flow_id, source_id, GRAIN_DURATION)
            messages.append(grain.to_message(payload_size))
        return messages

    def count_messages(self, node):
        return [{"value": value} for value in range(int(node.get("start", 0)), int(node.get("end", 1)) + 1)]

    def flow_output(self, flow):
        """Work out the WebSocket port and messages a flow's spout would produce"""
        sources = [node for node in flow["nodes"] if node.get("type") in SOURCE_NODE_TYPES]
        if not sources or "wsPort" not in sources[0]:
            return None, []
        source = sources[0]

        if source["type"] == "funnelGrain":
            messages = self.grain_messages(source)
        else:
            messages = self.count_messages(source)

        multiplier = 1
        for valve in find_nodes(flow, "valveTest"):
            multiplier *= int(valve.get("multiplier", 1))
        output = [message for message in messages for _ in range(multiplier)]

        if self.send_end:
            output.append(END_MESSAGE)
        return int(source["wsPort"]), output

    def add_flow(self, flow):
        flow_id = generate_node_id()
        flow = dict(flow, id=flow_id)
        self.flows[flow_id] = flow
        self.created.append(flow_id)

        ws_port, messages = self.flow_output(flow)
        if ws_port is not None:
            emulator = FlowEmulator("ws://localhost:{}".format(ws_port), messages, self.message_interval,
                                   self.end_delay)
            self.emulators[flow_id] = emulator
            emulator.start()
        return flow_id

    def delete_flow(self, flow_id):
        self.flows.pop(flow_id)
        self.deleted.append(flow_id)
        emulator = self.emulators.pop(flow_id, None)
        if emulator:
            emulator.stop()


NODE_RED = NodeRed()
NODE_RED_API = Blueprint('node_red_api', __name__)


def _json_response(data, status=200):
    return make_response(Response(json.dumps(data), status=status, mimetype='application/json'))


@NODE_RED_API.route('/flows', methods=['GET'])
def flows():
    return _json_response([flow for flow in NODE_RED.flows.values()])


@NODE_RED_API.route('/flow', methods=['POST'])
def post_flow():
    if NODE_RED.reject_status:
        return _json_response({"error": "rejected", "message": "Flow rejected by mock"}, NODE_RED.reject_status)
    flow = request.get_json(silent=True)
    if not isinstance(flow, dict) or not isinstance(flow.get("nodes"), list):
        return _json_response({"error": "invalid_request", "message": "Invalid request"}, 400)
    flow_id = NODE_RED.add_flow(flow)
    return _json_response({"id": flow_id})


@NODE_RED_API.route('/flow/<flow_id>', methods=['GET'])
def get_flow(flow_id):
    if flow_id not in NODE_RED.flows:
        abort(404)
    return _json_response(NODE_RED.flows[flow_id])


@NODE_RED_API.route('/flow/<flow_id>', methods=['DELETE'])
def delete_flow(flow_id):
    if NODE_RED.delete_delay:
        time.sleep(NODE_RED.delete_delay)
    if flow_id not in NODE_RED.flows:
        abort(404)
    NODE_RED.delete_flow(flow_id)
    return make_response("", 204)


def create_app():
    app = Flask(__name__)
    app.register_blueprint(NODE_RED_API)
    return app


class MockRuntimeServer(threading.Thread):
    """Serves the mock admin API from a background thread until stop() is called"""

    def __init__(self, host, port):
        threading.Thread.__init__(self, daemon=True)
        self.server = make_server(host, port, create_app(), threaded=True)

    def run(self):
        print(" * Mock Node-RED admin API running on 'http://{}:{}'".format(*self.server.server_address[:2]))
        self.server.serve_forever()

    def stop(self):
        self.server.shutdown()
        self.server.server_close()
