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

import inspect
import traceback

from . import Config as CONFIG
from . import FixtureUtils
from .AdminAPI import AdminAPI
from .FlowTestHarness import FlowTestHarness
from .Properties import Properties
from .TestResult import Test


class FlowTestException(Exception):
    """Provides a way to exit a single test, by providing the TestResult return statement as the first exception
       parameter"""
    pass


class FlowInitException(Exception):
    """The test set was run in an invalid mode. Causes all tests to abort"""
    pass


class GenericFlowTest(object):
    """
    Generic flow testing class.
    Inherit from it and add 'test_' methods, each taking a Test and returning a TestResult.
    """
    def __init__(self, properties=None, fixtures=None):
        self.properties = properties if properties is not None else Properties()
        self.fixtures = fixtures or []
        self.staged_fixtures = {}
        self.harness = FlowTestHarness(self.properties)
        self.result = list()

    def execute_tests(self, test_names):
        """Perform tests defined within this class"""

        for test_name in test_names:
            self.execute_test(test_name)

    def execute_test(self, test_name):
        """Perform a test defined within this class"""
        if test_name == "all":
            method_names = [name for name in dir(self) if name.startswith("test_")]
        else:
            method_names = [test_name]

        for method_name in method_names:
            method = getattr(self, method_name, None)
            if not callable(method):
                raise FlowInitException("Test '{}' does not exist in this suite".format(method_name))
            print(" * Running " + method_name)
            test = Test(inspect.getdoc(method), method_name)
            try:
                self.result.append(method(test))
            except FlowTestException as e:
                self.result.append(e.args[0])
            except Exception as e:
                self.result.append(self.uncaught_exception(method_name, e))

    def uncaught_exception(self, test_name, exception):
        """Print a traceback and provide a test FAIL result for uncaught exceptions"""
        traceback.print_exc()
        test = Test("Error executing {}".format(test_name), test_name)
        return test.FAIL("Uncaught exception. Please report the traceback from the terminal. {}".format(exception))

    def set_up_tests(self):
        """Called before a set of tests is run. Override this method with setup code."""
        pass

    def tear_down_tests(self):
        """Called after a set of tests is run. Override this method with teardown code."""
        pass

    def run_tests(self, test_name=["all"]):
        """Perform tests and return the results as a list"""

        # Set up
        test = Test("Test setup", "set_up_tests")
        if CONFIG.PREVALIDATE_API:
            valid, message = AdminAPI(self.properties).get_flows()
            if not valid:
                raise FlowInitException(message)

        try:
            for uri in self.fixtures:
                self.staged_fixtures[uri] = FixtureUtils.download(uri, timeout=self.properties.http_timeout)
            self.set_up_tests()
            self.result.append(test.NA(""))

            # Run tests
            self.execute_tests(test_name)
        finally:
            # Tear down
            test = Test("Test teardown", "tear_down_tests")
            self.tear_down_tests()
            if self.fixtures and CONFIG.CLEAN_STAGING:
                FixtureUtils.remove_tree(CONFIG.STAGING_PATH)
            self.result.append(test.NA(""))

        return self.result

    def run_flow(self, test, params, get_flow, on_msg):
        """Run a single flow through the harness, returning its TestResult"""
        return self.harness.run(test, params, get_flow, on_msg)
