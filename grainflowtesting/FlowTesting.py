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

import argparse
import inspect
import re
import sys
import time

from enum import IntEnum
from junit_xml import TestSuite, TestCase
from requests.compat import json

from . import Config as CONFIG
from .GenericFlowTest import FlowInitException
from .Properties import Properties
from .TestResult import TestStates
from .mocks.NodeRed import MockRuntimeServer

from .suites import FunnelCountTest
from .suites import FunnelGrainTest
from .suites import ValveTest

TOOL_VERSION = "0.2.0"

TEST_DEFINITIONS = {
    "funnel-grain": {
        "name": "Funnel Grain Node",
        "class": FunnelGrainTest.FunnelGrainTest
    },
    "funnel-count": {
        "name": "Funnel Count Node",
        "class": FunnelCountTest.FunnelCountTest
    },
    "valve": {
        "name": "Valve Node",
        "class": ValveTest.ValveTest
    }
}


class ExitCodes(IntEnum):
    ERROR = -1  # General test suite error
    OK = 0  # Normal exit condition, or all tests passed
    WARNING = 1  # Worst case test was a warning
    FAIL = 2  # Worst case test was a failure


def enumerate_tests(class_def, describe=False):
    if describe:
        tests = ["all: Runs all tests in the suite"]
    else:
        tests = ["all"]
    for method_name in dir(class_def):
        if method_name.startswith("test_"):
            method = getattr(class_def, method_name)
            if callable(method):
                description = method_name
                if describe:
                    try:
                        docstring = inspect.getdoc(method).replace('\n', ' ').replace('\r', '')
                        description += ": " + docstring
                    except AttributeError:
                        print(" * ERROR: {}.{} is missing a description".format(class_def.__name__, method_name))
                tests.append(description)
    return tests


def run_tests(suite, properties, test_selection=["all"], fixtures=None):
    if suite not in TEST_DEFINITIONS:
        raise FlowInitException("This test definition does not exist")
    test_def = TEST_DEFINITIONS[suite]
    print(" * Running suite '{}' against '{}'".format(test_def["name"], properties.admin_url))
    test_obj = test_def["class"](properties, fixtures)
    result = test_obj.run_tests(test_selection)
    return {"result": result, "def": test_def, "urls": [properties.admin_url], "suite": suite}


def _check_test_result(test_result, results):
    if test_result is None:
        print(
            "The following results currently are being returned: {}"
            .format([result.name for result in results["result"] if result != test_result])
        )
        raise AttributeError("""
            None object returned as result from one of the tests. Please see the terminal output.
        """)


def _export_config():
    current_config = {"VERSION": TOOL_VERSION}
    for param in dir(CONFIG):
        if re.match("^[A-Z][A-Z0-9_]*$", param):
            current_config[param] = getattr(CONFIG, param)
    return current_config


def format_test_results(results, format, ignored_tests=None):
    formatted = None
    total_time = 0
    max_name_len = 0
    ignored_tests = ignored_tests or []
    for test_result in results["result"]:
        _check_test_result(test_result, results)
        total_time += test_result.elapsed_time
        max_name_len = max(max_name_len, len(test_result.name))
    if format == "json":
        formatted = {
            "suite": results["suite"],
            "timestamp": time.time(),
            "duration": total_time,
            "results": [],
            "config": _export_config(),
            "urls": results["urls"]
        }
        for test_result in results["result"]:
            formatted["results"].append({
                "name": test_result.name,
                "state": str(TestStates.DISABLED if test_result.name in ignored_tests else test_result.state),
                "detail": test_result.detail,
                "duration": test_result.elapsed_time
            })
        formatted = json.dumps(formatted, sort_keys=True, indent=4)
    elif format == "junit":
        test_cases = []
        for test_result in results["result"]:
            test_case = TestCase(test_result.name, classname=results["suite"],
                                 elapsed_sec=test_result.elapsed_time, timestamp=test_result.timestamp)
            if test_result.name in ignored_tests or test_result.state in [
                TestStates.DISABLED,
                TestStates.UNCLEAR,
                TestStates.NA
            ]:
                test_case.add_skipped_info(test_result.detail)
            elif test_result.state in [TestStates.WARNING, TestStates.FAIL]:
                test_case.add_failure_info(test_result.detail, failure_type=str(test_result.state))
            elif test_result.state != TestStates.PASS:
                test_case.add_error_info(test_result.detail, error_type=str(test_result.state))
            test_cases.append(test_case)
        formatted = TestSuite(results["def"]["name"] + ": " + ", ".join(results["urls"]), test_cases)
    elif format == "console":
        formatted = "\r\nPrinting test results for suite '{}' using API(s) '{}'\r\n" \
                    .format(results["suite"], ", ".join(results["urls"]))
        formatted += "----------------------------\r\n"
        for test_result in results["result"]:
            num_extra_dots = max_name_len - len(test_result.name)
            test_state = str(TestStates.DISABLED if test_result.name in ignored_tests else test_result.state)
            formatted += "{} ...{} {}\r\n".format(test_result.name, ("." * num_extra_dots), test_state)
        formatted += "----------------------------\r\n"
        formatted += "Ran {} tests in ".format(len(results["result"])) + "{0:.3f}s".format(total_time) + "\r\n"
    return formatted


def identify_exit_code(results, ignored_tests=None):
    exit_code = ExitCodes.OK
    for test_result in results["result"]:
        if ignored_tests and test_result.name in ignored_tests:
            pass
        elif test_result.state == TestStates.FAIL:
            exit_code = max(exit_code, ExitCodes.FAIL)
        elif test_result.state == TestStates.WARNING:
            exit_code = max(exit_code, ExitCodes.WARNING)
    return exit_code


def write_test_results(results, args):
    if args.output.endswith(".xml"):
        formatted = format_test_results(results, "junit", args.ignore)
    else:
        formatted = format_test_results(results, "json", args.ignore)
    with open(args.output, "w") as f:
        if args.output.endswith(".xml"):
            # pretty-print to help out Jenkins (and us humans), which struggles otherwise
            TestSuite.to_file(f, [formatted], prettyprint=True)
        else:
            f.write(formatted)
        print(" * Test results written to file: {}".format(args.output))
    return identify_exit_code(results, args.ignore)


def print_test_results(results, args):
    print(format_test_results(results, "console", args.ignore))
    return identify_exit_code(results, args.ignore)


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Node-RED Grain Flow Test Suite')
    parser.add_argument('--list-suites', action='store_true', help="list available test suites")
    parser.add_argument('--describe-suites', action='store_true', help="describe the available test suites")

    subparsers = parser.add_subparsers()
    suite_parser = subparsers.add_parser("suite", help="select a test suite to run tests from")
    suite_parser.add_argument("suite", help="select a test suite to run tests from")
    suite_parser.add_argument('--list-tests', action='store_true',
                              help="list available tests for a given suite")
    suite_parser.add_argument('--describe-tests', action='store_true',
                              help="describe the available tests for a given suite")
    suite_parser.add_argument('--selection', default="all",
                              help="select a specific test to run, otherwise 'all' will be tested")
    suite_parser.add_argument('--red-host', default=CONFIG.RED_HOST,
                              help="hostname or IP of the Node-RED admin API under test")
    suite_parser.add_argument('--red-port', default=CONFIG.RED_PORT, type=int,
                              help="port of the Node-RED admin API under test")
    suite_parser.add_argument('--ws-port', default=CONFIG.WS_PORT, type=int,
                              help="port to listen on for WebSocket connections from the flow under test")
    suite_parser.add_argument('--flow-timeout', default=CONFIG.FLOW_TIMEOUT, type=float,
                              help="seconds without a message before a flow is treated as finished")
    suite_parser.add_argument('--keep-flow', action='store_true', default=CONFIG.KEEP_FLOW,
                              help="leave test flows deployed after each test")
    suite_parser.add_argument('--fixture', default=[], nargs="*",
                              help="space separated URIs of fixtures to download before running the suite")
    suite_parser.add_argument('--ignore', default=[], nargs="*",
                              help="space separated test names to ignore the results from")
    suite_parser.add_argument('--output', default=None,
                              help="filename to save JSON (.json) or JUnit XML (.xml) output to")
    suite_parser.add_argument('--mock-runtime', action='store_true',
                              help="run the tests against a mock Node-RED admin API started on the Node-RED port")

    return parser.parse_args(argv)


def validate_args(args):
    """Returns an exit code if the arguments have been fully handled, otherwise None"""
    if args.list_suites:
        for test_suite in sorted(TEST_DEFINITIONS):
            print(test_suite)
        return ExitCodes.OK
    elif args.describe_suites:
        for test_suite in sorted(TEST_DEFINITIONS):
            print("{}: {}".format(test_suite, TEST_DEFINITIONS[test_suite]["name"]))
        return ExitCodes.OK
    elif "suite" in vars(args):
        if args.suite not in TEST_DEFINITIONS:
            print(" * ERROR: The requested test suite '{}' does not exist".format(args.suite))
            return ExitCodes.ERROR
        class_def = TEST_DEFINITIONS[args.suite]["class"]
        if args.list_tests:
            for test_name in enumerate_tests(class_def):
                print(test_name)
            return ExitCodes.OK
        if args.describe_tests:
            for test_description in enumerate_tests(class_def, describe=True):
                print(test_description)
            return ExitCodes.OK
        if args.selection not in enumerate_tests(class_def):
            print(" * ERROR: Test with name '{}' does not exist in test definition '{}'"
                  .format(args.selection, args.suite))
            return ExitCodes.ERROR
        return None
    print(" * ERROR: No test suite selected. Use --list-suites to see those available")
    return ExitCodes.ERROR


def run_noninteractive_tests(args):
    properties = Properties(red_host=args.red_host, red_port=args.red_port, ws_port=args.ws_port,
                            flow_timeout=args.flow_timeout, keep_flow=args.keep_flow)
    mock_runtime = None
    if args.mock_runtime:
        mock_runtime = MockRuntimeServer(properties.red_host, properties.red_port)
        mock_runtime.start()
    try:
        results = run_tests(args.suite, properties, [args.selection], args.fixture)
        if args.output:
            exit_code = write_test_results(results, args)
        else:
            exit_code = print_test_results(results, args)
    except Exception as e:
        print(" * ERROR: {}".format(str(e)))
        exit_code = ExitCodes.ERROR
    finally:
        if mock_runtime:
            mock_runtime.stop()
    return exit_code


def main(argv=None):
    args = parse_arguments(argv)
    exit_code = validate_args(args)
    if exit_code is None:
        exit_code = run_noninteractive_tests(args)

    # Testing complete
    print(" * Exiting")
    sys.exit(exit_code)
