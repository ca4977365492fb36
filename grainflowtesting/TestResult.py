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
import datetime
import threading
import time

from enum import Enum


class TestStates(Enum):
    PASS = 0
    WARNING = 1
    FAIL = 2
    NA = 3
    DISABLED = 4
    UNCLEAR = 5

    def __init__(self, *args):
        self.names = ["Pass", "Warning", "Fail", "Not Applicable", "Test Disabled", "Could Not Test"]

    def __str__(self):
        return self.names[self.value]


class TestResult(object):
    __test__ = False

    def __init__(self, name, state, description, detail, timestamp, elapsed_time):
        self.name = name
        self.state = state
        self.description = description
        self.detail = detail
        self.timestamp = timestamp
        self.elapsed_time = elapsed_time

    def output(self):
        return [self.name, str(self.state), self.description, self.detail, self.timestamp,
                "{0:.3f}s".format(self.elapsed_time)]


class Test(object):
    __test__ = False

    def __init__(self, description, name=None):
        self.description = description
        self.name = name
        if not self.name:
            # Get name of calling function
            self.name = inspect.stack()[1][3]
        self.timer = time.time()

    def _current_time(self):
        return datetime.datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _time_elapsed(self):
        return time.time() - self.timer

    def _result(self, state, detail):
        return TestResult(self.name, state, self.description, detail, self._current_time(), self._time_elapsed())

    # Pass: Every assertion made while exercising the flow held
    def PASS(self, detail=""):
        return self._result(TestStates.PASS, detail)

    # Warning: Not a failure, but the flow behaved in a way which is not recommended
    def WARNING(self, detail=""):
        return self._result(TestStates.WARNING, detail)

    # Fail: One or more assertions about the flow's behaviour did not hold
    def FAIL(self, detail):
        return self._result(TestStates.FAIL, detail)

    # Not Applicable: Test is not applicable to the flow under test
    def NA(self, detail):
        return self._result(TestStates.NA, detail)

    # Disabled: Test is disabled due to test suite configuration
    def DISABLED(self, detail=""):
        return self._result(TestStates.DISABLED, detail)

    # Unclear: Test was not run due to prior responses from the runtime, which may be OK, or indicate a fault
    def UNCLEAR(self, detail=""):
        return self._result(TestStates.UNCLEAR, detail)


class Assertions(object):
    """
    Records the individual checks made during a flow test run and reduces them to a single verdict.
    Checks may be made from the event loop and from admin API requests running in executor threads.
    """

    def __init__(self, verbose=True):
        self.verbose = verbose
        self.records = []
        self._lock = threading.Lock()

    def _record(self, passed, message):
        with self._lock:
            self.records.append((passed, message))
            number = len(self.records)
        if self.verbose:
            print("   {} {} {}".format("ok" if passed else "not ok", number, message))
        return passed

    def ok(self, value, message):
        return self._record(bool(value), message)

    def not_ok(self, value, message):
        return self._record(not value, message)

    def equal(self, actual, expected, message):
        if actual == expected:
            return self._record(True, message)
        return self._record(False, "{} (expected {!r}, got {!r})".format(message, expected, actual))

    def passed(self, message):
        return self._record(True, message)

    def fail(self, message):
        return self._record(False, message)

    def comment(self, message):
        if self.verbose:
            print(" * {}".format(message))

    @property
    def count(self):
        return len(self.records)

    @property
    def failures(self):
        return [message for passed, message in self.records if not passed]

    def messages(self):
        return [message for _, message in self.records]

    def verdict(self, test):
        """Convert the recorded checks into exactly one TestResult for the given Test"""
        failures = self.failures
        if failures:
            return test.FAIL("{} of {} assertions failed: {}".format(len(failures), self.count, "; ".join(failures)))
        if self.count == 0:
            return test.UNCLEAR("No assertions were made")
        return test.PASS("{} assertions passed".format(self.count))
