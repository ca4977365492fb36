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

import socket
import threading
import requests
import websocket
from copy import copy
from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError

from . import Config as CONFIG

_DEFAULT = object()


def do_request(method, url, headers=None, timeout=_DEFAULT, **kwargs):
    """Perform a basic HTTP request with appropriate error handling"""
    response = None
    if timeout is _DEFAULT:
        timeout = CONFIG.HTTP_TIMEOUT
    try:
        s = requests.Session()

        if not headers:
            headers = {}

        req = requests.Request(method, url, headers={k: v for k, v in headers.items() if v is not None}, **kwargs)
        prepped = s.prepare_request(req)
        settings = s.merge_environment_settings(prepped.url, {}, None, None, None)
        response = s.send(prepped, timeout=timeout, **settings)
        return True, response
    except requests.exceptions.Timeout:
        return False, "Connection timeout"
    except requests.exceptions.TooManyRedirects:
        return False, "Too many redirects"
    except requests.exceptions.ConnectionError as e:
        return False, str(e)
    except requests.exceptions.RequestException as e:
        return False, str(e)
    finally:
        print("{} {} {}".format(method.upper(), url, response.status_code if response is not None else "<no response>"))


def validate_json(instance, schema):
    """Returns a Boolean pass/fail indicator and a message"""
    try:
        Draft7Validator(schema).validate(instance)
        return True, ""
    except ValidationError as e:
        return False, "Response schema validation error: {}".format(e.message)


def get_free_port(host="localhost"):
    """Ask the OS for a currently unused TCP port"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


class WebsocketWorker(threading.Thread):
    """Websocket Client Worker Thread"""

    def __init__(self, ws_href):
        """
        Initializer
        :param ws_href: websocket url (string)
        """
        threading.Thread.__init__(self, daemon=True)
        self.ws_href = ws_href
        try:
            self.ws = websocket.WebSocketApp(ws_href,
                                             on_message=self.on_message,
                                             on_close=self.on_close,
                                             on_open=self.on_open,
                                             on_error=self.on_error)
        except AttributeError:
            print(" * ERROR: You have the wrong Python websocket module installed. "
                  "Please uninstall 'websocket' and install 'websocket-client'")
            raise
        self.messages = list()
        self.error_occurred = False
        self.connected = False
        self.closed = threading.Event()
        self.close_status = None
        self.error_message = ""

    def run(self):
        self.ws.run_forever()
        self.connected = False
        self.closed.set()

    def on_open(self, ws):
        self.connected = True

    def on_message(self, ws, message):
        self.messages.append(message)

    def on_close(self, ws, close_status, close_message):
        self.connected = False
        self.close_status = close_status

    def on_error(self, ws, error):
        self.error_occurred = True
        self.error_message = error
        self.connected = False

    def close(self):
        self.ws.close()

    def send(self, message):
        if self.connected is True:
            try:
                self.ws.send(message)
                return True
            except websocket.WebSocketConnectionClosedException:
                self.connected = False
        return False

    def is_open(self):
        return self.connected

    def get_messages(self):
        msg_cpy = copy(self.messages)
        self.clear_messages()  # Reset message list after reading
        return msg_cpy

    def did_error_occur(self):
        return self.error_occurred

    def get_error_message(self):
        return self.error_message

    def clear_messages(self):
        self.messages.clear()
