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

import re

from . import TestHelper


FLOW_CREATED_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {
            "type": "string",
            "minLength": 1
        }
    }
}

JSON_CONTENT_TYPE = re.compile(r"^application/json")


class AdminAPI(object):
    """Requests against the Node-RED admin HTTP API, recording checks as they are made"""

    def __init__(self, properties):
        self.url = properties.admin_url
        self.timeout = properties.http_timeout

    def request(self, assertions, method, path, payload, expected_status):
        """
        Perform an admin API request and check its status code.
        Returns a Boolean indicating whether the run can continue, and the decoded JSON body for a 200 response.
        """
        valid, response = TestHelper.do_request(method, self.url + path, json=payload, timeout=self.timeout,
                                                headers={"Content-Type": "application/json"})
        if not valid:
            assertions.fail("problem with admin API '{}' request to path '{}': {}".format(method, path, response))
            return False, None

        assertions.equal(response.status_code, expected_status, "status code is Success")
        if response.status_code not in [200, 204]:
            return False, None
        if response.status_code == 204:
            return True, None

        content_type = response.headers.get("Content-Type", "")
        assertions.ok(JSON_CONTENT_TYPE.match(content_type), "content type is application/json")
        try:
            return True, response.json()
        except ValueError:
            assertions.fail("admin API '{}' response from path '{}' is not valid JSON".format(method, path))
            return False, None

    def post_flow(self, assertions, flow):
        """Create a flow, returning the identifier assigned to it or None on failure"""
        success, body = self.request(assertions, "POST", "/flow", flow, 200)
        if not success:
            return None
        valid, message = TestHelper.validate_json(body, FLOW_CREATED_SCHEMA)
        if not assertions.ok(valid, "response has flow id"):
            assertions.comment(message)
            return None
        return body["id"]

    def delete_flow(self, assertions, flow_id):
        success, _ = self.request(assertions, "DELETE", "/flow/{}".format(flow_id), {"id": flow_id}, 204)
        return success

    def get_flows(self):
        """Returns a Boolean indicating whether the admin API is reachable, and a message"""
        valid, response = TestHelper.do_request("GET", self.url + "/flows", timeout=self.timeout)
        if not valid:
            return False, "No admin API found at {}: {}".format(self.url, response)
        if response.status_code != 200:
            return False, "No admin API found or unexpected error at {} ({})".format(self.url, response.status_code)
        return True, ""
