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

from copy import copy

from . import Config as CONFIG

TRUE_STRINGS = ["true", "yes", "on", "1"]


def as_flag(value):
    """Interpret a boolean parameter, which may be a string such as 'false' from a config file"""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


class Properties(object):
    """
    Connection and timing settings for a single flow test run.
    Any value not given is taken from Config at construction time.
    """

    # params keys understood by merge(), as used in flow test params
    PARAM_NAMES = {
        "redPort": "red_port",
        "wsPort": "ws_port",
        "flowTimeout": "flow_timeout",
        "keepFlow": "keep_flow"
    }

    def __init__(self, red_host=None, red_port=None, ws_host=None, ws_port=None, flow_timeout=None,
                 keep_flow=None, http_timeout=None, connection_timeout=None):
        self.red_host = red_host if red_host is not None else CONFIG.RED_HOST
        self.red_port = int(red_port if red_port is not None else CONFIG.RED_PORT)
        self.ws_host = ws_host if ws_host is not None else CONFIG.WS_HOST
        self.ws_port = int(ws_port if ws_port is not None else CONFIG.WS_PORT)
        self.flow_timeout = float(flow_timeout) if flow_timeout and float(flow_timeout) > 0 \
            else float(CONFIG.FLOW_TIMEOUT)
        self.keep_flow = as_flag(keep_flow if keep_flow is not None else CONFIG.KEEP_FLOW)
        self.http_timeout = http_timeout if http_timeout is not None else CONFIG.HTTP_TIMEOUT
        self.connection_timeout = connection_timeout if connection_timeout is not None \
            else CONFIG.CONNECTION_TIMEOUT

    @property
    def admin_url(self):
        return "http://{}:{}".format(self.red_host, self.red_port)

    @property
    def ws_href(self):
        return "ws://{}:{}".format(self.ws_host, self.ws_port)

    def merge(self, params):
        """
        Return a copy of these properties with any per-test overrides from params applied.
        'flowTimeout' is given in milliseconds.
        """
        merged = copy(self)
        if not params:
            return merged
        for param_name, attr_name in self.PARAM_NAMES.items():
            if params.get(param_name) is None:
                continue
            value = params[param_name]
            if param_name == "flowTimeout":
                # A zero or negative timeout leaves the configured one in place
                if not value or float(value) <= 0:
                    continue
                value = float(value) / 1000
            elif param_name in ["redPort", "wsPort"]:
                value = int(value)
            else:
                value = as_flag(value)
            setattr(merged, attr_name, value)
        return merged

    def __repr__(self):
        return "Properties(admin='{}', ws='{}', flow_timeout={}, keep_flow={})" \
               .format(self.admin_url, self.ws_href, self.flow_timeout, self.keep_flow)
