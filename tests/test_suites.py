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

import os

import pytest
import requests

from grainflowtesting import Config as CONFIG
from grainflowtesting import FixtureUtils
from grainflowtesting.GenericFlowTest import FlowInitException, FlowTestException, GenericFlowTest
from grainflowtesting.TestHelper import get_free_port
from grainflowtesting.TestResult import TestStates
from grainflowtesting.suites.FunnelCountTest import FunnelCountTest
from grainflowtesting.suites.FunnelGrainTest import FunnelGrainTest
from grainflowtesting.suites.ValveTest import ValveTest


def states_by_name(results):
    return {result.name: result.state for result in results}


@pytest.mark.parametrize("suite_class, test_names", [
    (FunnelGrainTest, ["test_01", "test_02", "test_03"]),
    (FunnelCountTest, ["test_01", "test_02"]),
    (ValveTest, ["test_01", "test_02"]),
])
def test_suite_passes_against_mock_runtime(node_red, properties, suite_class, test_names):
    results = suite_class(properties).run_tests()
    states = states_by_name(results)

    assert states.pop("set_up_tests") == TestStates.NA
    assert states.pop("tear_down_tests") == TestStates.NA
    assert sorted(states) == test_names
    for result in results:
        assert result.state in [TestStates.PASS, TestStates.NA], "{}: {}".format(result.name, result.detail)
    assert len(node_red.deleted) == len(test_names)
    assert node_red.flows == {}


def test_single_test_selection(node_red, properties):
    results = FunnelCountTest(properties).run_tests(["test_01"])
    assert states_by_name(results)["test_01"] == TestStates.PASS
    assert "test_02" not in states_by_name(results)


def test_suite_fails_when_flow_misbehaves(node_red, properties):
    node_red.send_end = False
    results = FunnelCountTest(properties).run_tests(["test_01"])
    result = [result for result in results if result.name == "test_01"][0]

    assert result.state == TestStates.FAIL
    assert "end message has been received" in result.detail


def test_prevalidation_aborts_without_admin_api(properties):
    properties.red_port = get_free_port()
    with pytest.raises(FlowInitException):
        FunnelGrainTest(properties).run_tests()


def test_fixtures_are_staged_and_cleaned(node_red, properties, fixture_server, tmp_path, monkeypatch):
    staging = str(tmp_path / "staging")
    monkeypatch.setattr(CONFIG, "STAGING_PATH", staging)
    seen = {}

    class StagedTest(GenericFlowTest):
        def test_01(self, test):
            """Staged fixture is available to tests"""
            path = self.staged_fixtures[fixture_server + "clip.json"]
            seen["exists"] = os.path.isfile(path)
            return test.PASS()

    results = StagedTest(properties, [fixture_server + "clip.json"]).run_tests()

    assert states_by_name(results)["test_01"] == TestStates.PASS
    assert seen["exists"]
    assert not os.path.exists(staging)


def test_exceptions_become_results(node_red, properties):
    class FailingTest(GenericFlowTest):
        def test_01(self, test):
            """Exits early with a result"""
            raise FlowTestException(test.FAIL("stopped early"))

        def test_02(self, test):
            """Raises something unexpected"""
            raise KeyError("surprise")

    results = {result.name: result for result in FailingTest(properties).run_tests()}

    assert results["test_01"].state == TestStates.FAIL
    assert results["test_01"].detail == "stopped early"
    assert results["test_02"].state == TestStates.FAIL
    assert "Uncaught exception" in results["test_02"].detail


def test_failed_fixture_download_still_cleans_staging(node_red, properties, fixture_server, tmp_path, monkeypatch):
    staging = str(tmp_path / "staging")
    monkeypatch.setattr(CONFIG, "STAGING_PATH", staging)
    fixtures = [fixture_server + "clip.json", fixture_server + "absent.mxf"]

    with pytest.raises(requests.exceptions.HTTPError):
        FunnelCountTest(properties, fixtures).run_tests()

    assert not os.path.exists(staging)


def test_failed_set_up_still_cleans_staging(node_red, properties, fixture_server, tmp_path, monkeypatch):
    staging = str(tmp_path / "staging")
    monkeypatch.setattr(CONFIG, "STAGING_PATH", staging)

    class BrokenSetUpTest(FunnelCountTest):
        def set_up_tests(self):
            raise RuntimeError("setup failed")

    with pytest.raises(RuntimeError):
        BrokenSetUpTest(properties, [fixture_server + "clip.json"]).run_tests()

    assert not os.path.exists(staging)


def test_fixture_downloads_use_run_timeout(node_red, properties, fixture_server, tmp_path, monkeypatch):
    monkeypatch.setattr(CONFIG, "STAGING_PATH", str(tmp_path / "staging"))
    properties.http_timeout = 7
    timeouts = []
    real_download = FixtureUtils.download

    def recording_download(uri, staging_path=None, timeout=None):
        timeouts.append(timeout)
        return real_download(uri, staging_path, timeout)

    monkeypatch.setattr(FixtureUtils, "download", recording_download)
    FunnelCountTest(properties, [fixture_server + "clip.json"]).run_tests(["test_01"])

    assert timeouts == [7]
