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

from grainflowtesting import FlowFixtures
from grainflowtesting.AdminAPI import FLOW_CREATED_SCHEMA, AdminAPI
from grainflowtesting.TestHelper import get_free_port, validate_json
from grainflowtesting.TestResult import Assertions


def spout_only_flow():
    return FlowFixtures.build_flow(FlowFixtures.spout_test_node())


def test_post_then_delete_flow(node_red, properties):
    assertions = Assertions(verbose=False)
    admin = AdminAPI(properties)

    flow_id = admin.post_flow(assertions, spout_only_flow())

    assert flow_id
    assert flow_id in node_red.flows
    assert admin.delete_flow(assertions, flow_id)
    assert node_red.deleted == [flow_id]
    assert assertions.failures == []
    assert "response has flow id" in assertions.messages()


def test_delete_unknown_flow_fails(node_red, properties):
    assertions = Assertions(verbose=False)

    assert not AdminAPI(properties).delete_flow(assertions, "0000000.000000")
    assert assertions.failures == ["status code is Success (expected 204, got 404)"]


def test_invalid_flow_is_rejected(node_red, properties):
    assertions = Assertions(verbose=False)

    assert AdminAPI(properties).post_flow(assertions, {"id": "bad", "label": "No nodes"}) is None
    assert assertions.failures == ["status code is Success (expected 200, got 400)"]


def test_get_flows(node_red, properties):
    assert AdminAPI(properties).get_flows() == (True, "")

    properties.red_port = get_free_port()
    valid, message = AdminAPI(properties).get_flows()
    assert not valid
    assert message.startswith("No admin API found at")


def test_flow_created_schema():
    assert validate_json({"id": "91ad451.f6e52b8"}, FLOW_CREATED_SCHEMA) == (True, "")
    valid, message = validate_json({"id": ""}, FLOW_CREATED_SCHEMA)
    assert not valid
    assert message.startswith("Response schema validation error")
    assert not validate_json({}, FLOW_CREATED_SCHEMA)[0]
