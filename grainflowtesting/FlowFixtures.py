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

import random

# Types of the nodes which generate messages at the start of a test flow
SOURCE_NODE_TYPES = ["funnelGrain", "funnelCount"]

# Horizontal spacing of nodes in the editor when a flow is opened for diagnosis
NODE_SPACING = 200.0


def generate_node_id():
    """Generate an identifier in the form the Node-RED editor uses, e.g. '91ad451.f6e52b8'"""
    return "{:x}.{:x}".format(random.randint(0x1000000, 0xfffffff), random.randint(0x100000, 0xfffffff))


def base_test_flow(flow_id=None, label="Test Flow"):
    return {
        "id": flow_id or generate_node_id(),
        "label": label,
        "nodes": []
    }


def funnel_grain_node(properties, **overrides):
    node = {
        "type": "funnelGrain",
        "name": "funnel",
        "delay": 0,
        "numPushes": 10,
        "maxBuffer": 10,
        "format": "video",
        "width": "1920",
        "height": "1080",
        "channels": 2,
        "bitsPerSample": 16,
        "wsPort": str(properties.ws_port),
        "wires": [[]]
    }
    node.update(overrides)
    return node


def funnel_count_node(properties, **overrides):
    node = {
        "type": "funnelCount",
        "name": "funnel",
        "delay": 0,
        "start": 0,
        "end": 1,
        "repeat": False,
        "maxBuffer": 10,
        "wsPort": str(properties.ws_port),
        "wires": [[]]
    }
    node.update(overrides)
    return node


def valve_test_node(**overrides):
    node = {
        "type": "valveTest",
        "name": "valve",
        "maxBuffer": 10,
        "multiplier": 1,
        "wires": [[]]
    }
    node.update(overrides)
    return node


def spout_test_node(**overrides):
    node = {
        "type": "spoutTest",
        "name": "spout",
        "timeout": 0,
        "wires": [[]]
    }
    node.update(overrides)
    return node


def build_flow(*nodes, **kwargs):
    """
    Place the given nodes into a fresh test flow, wiring each node's output to the next node's input.
    The node dicts are copied, so fixtures can be reused between flows.
    """
    flow = base_test_flow(kwargs.get("flow_id"), kwargs.get("label", "Test Flow"))
    placed = []
    for index, node in enumerate(nodes):
        node = dict(node)
        node["id"] = generate_node_id()
        node["z"] = flow["id"]
        node["x"] = 100.0 + index * NODE_SPACING
        node["y"] = 100.0
        placed.append(node)
    for node, next_node in zip(placed, placed[1:]):
        node["wires"] = [[next_node["id"]]]
    if placed:
        placed[-1]["wires"] = [[]]
    flow["nodes"] = placed
    return flow


def find_nodes(flow, node_type):
    return [node for node in flow.get("nodes", []) if node.get("type") == node_type]
