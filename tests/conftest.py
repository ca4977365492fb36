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

import threading

import pytest
from flask import Flask, abort
from werkzeug.serving import make_server

from grainflowtesting.Properties import Properties
from grainflowtesting.TestHelper import get_free_port
from grainflowtesting.mocks.NodeRed import NODE_RED, MockRuntimeServer

FIXTURE_FILES = {
    "clip.json": b'{"frames": 10}',
    "tone.wav": b"RIFF" + bytes(1020)
}


@pytest.fixture(scope="session")
def mock_runtime():
    server = MockRuntimeServer("localhost", get_free_port())
    server.start()
    yield server
    server.stop()


@pytest.fixture
def node_red(mock_runtime):
    NODE_RED.reset()
    yield NODE_RED
    NODE_RED.reset()


@pytest.fixture
def properties(mock_runtime):
    return Properties(red_host="localhost", red_port=mock_runtime.server.server_port, ws_host="localhost",
                      ws_port=get_free_port(), flow_timeout=0.25, keep_flow=False, http_timeout=5,
                      connection_timeout=0)


@pytest.fixture(scope="session")
def fixture_server():
    """Serves FIXTURE_FILES under /fixtures/ and yields the base URL"""
    app = Flask(__name__)

    @app.route("/fixtures/<name>")
    def fixture(name):
        if name not in FIXTURE_FILES:
            abort(404)
        return FIXTURE_FILES[name]

    server = make_server("localhost", get_free_port(), app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield "http://localhost:{}/fixtures/".format(server.server_port)
    server.shutdown()
    server.server_close()
