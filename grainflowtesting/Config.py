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

# Grain Flow Testing Configuration File
# -------------------------------------
# These values are the defaults used to build the Properties for each test run. Any of them can be overridden by
# copying UserConfig.example.py to UserConfig.py. Individual test runs may override the ports, flow timeout and
# keep flow settings via their own Properties or params.


# Hostname/IP and port of the Node-RED admin HTTP API under test
RED_HOST = "localhost"
RED_PORT = 1880

# Hostname/IP and port on which the testing tool listens for WebSocket connections from the flow under test
WS_HOST = "localhost"
WS_PORT = 1888

# Number of seconds between checks for a stalled flow. A flow which has not produced any messages since the
# previous check is treated as finished and torn down.
FLOW_TIMEOUT = 1

# Leave test flows deployed after each test, which can be useful when diagnosing a failing node
KEEP_FLOW = False

# Timeout for admin API HTTP requests. None waits indefinitely, relying on the stall check to end a test.
HTTP_TIMEOUT = None

# Number of seconds to wait for the flow under test to connect to the WebSocket server. Set to 0 to wait forever.
CONNECTION_TIMEOUT = 0

# Perform a GET against the admin API before carrying out any tests to avoid wasting time if it doesn't exist
PREVALIDATE_API = True

# Path to download test fixtures into. Relative to the current working directory.
STAGING_PATH = "staging"

# Remove the staging directory when a test suite has finished
CLEAN_STAGING = True

# Number of seconds between messages sent by the mock Node-RED runtime's flow emulator
MOCK_MESSAGE_INTERVAL = 0.01

# Number of seconds the flow emulator waits to connect to the testing tool's WebSocket server
MOCK_CONNECT_TIMEOUT = 5

try:
    from . import UserConfig  # noqa: F401
except ImportError:
    pass
