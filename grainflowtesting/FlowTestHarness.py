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

import asyncio
import json
import traceback
import websockets
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK
from websockets.protocol import State

from .AdminAPI import AdminAPI
from .Properties import Properties
from .TestResult import Assertions, Test


class CompletionLatch(object):
    """
    Settable exactly once. The first caller of claim() owns teardown of the run,
    and release() wakes anything waiting for the run to finish.
    """

    def __init__(self):
        self.claimed_by = None
        self._released = asyncio.Event()

    def claim(self, claimant):
        if self.claimed_by is not None:
            return False
        self.claimed_by = claimant
        return True

    def release(self):
        self._released.set()

    @property
    def is_claimed(self):
        return self.claimed_by is not None

    @property
    def is_released(self):
        return self._released.is_set()

    async def wait(self):
        await self._released.wait()


class FlowRun(object):
    """
    A single flow test run: creates the flow, receives its output over a WebSocket and tears it down.
    The message handler is called as on_msg(run, msg) for every message, and calls run.end() once the
    flow's output is complete.
    """

    def __init__(self, properties, assertions, params, on_msg):
        self.properties = properties
        self.assertions = assertions
        self.params = params
        self.flow_id = None
        self.count = 0
        self.last_count = -1
        self.end_received = False
        self.closedown_done = False
        self.connected = False
        self._on_msg = on_msg
        self._admin = AdminAPI(properties)
        self._latch = CompletionLatch()
        self._created = None
        self._tasks = []

    @property
    def completed_by(self):
        return self._latch.claimed_by

    def end(self):
        """Signal that the end of the flow's output has been received"""
        self.end_received = True
        if self._latch.claim("end"):
            self._spawn(self._closedown())

    async def execute(self, get_flow):
        loop = asyncio.get_running_loop()
        self._created = loop.create_future()
        try:
            server = await websockets.serve(self._handler, self.properties.ws_host, self.properties.ws_port)
        except OSError as e:
            self.assertions.fail("websocket server error: '{}'".format(e))
            return
        self.assertions.passed("server is listening on port {}".format(self.properties.ws_port))

        try:
            flow = get_flow(self.params)
            self.flow_id = await loop.run_in_executor(None, self._admin.post_flow, self.assertions, flow)
            self._created.set_result(self.flow_id is not None)
            if self.flow_id is None:
                return
            if self.properties.connection_timeout:
                self._spawn(self._check_connected(self.properties.connection_timeout))
            await self._latch.wait()
        finally:
            if not self._created.done():
                self._created.set_result(False)
            pending = [task for task in self._tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            server.close()
            await server.wait_closed()
            self.assertions.passed("websocket server closed OK")

    async def _handler(self, websocket, path=None):
        if not await self._created:
            await websocket.close()
            return
        if self.connected:
            self.assertions.fail("unexpected additional websocket connection from flow")
            await websocket.close()
            return

        self.connected = True
        self.assertions.equal(websocket.state, State.OPEN, "websocket connection is open")
        self._spawn(self._check_completed())

        self.assertions.comment("Check for expected data from flow")
        try:
            async for message in websocket:
                msg = self._receive(message)
                if isinstance(msg, dict) and "close" in msg:
                    await websocket.close()
        except ConnectionClosedOK as e:
            self.assertions.comment("websocket connection closed: {}".format(e))
        except ConnectionClosedError as e:
            self.assertions.fail("websocket connection closed abnormally: {}".format(e))

    def _receive(self, message):
        try:
            msg = json.loads(message)
        except ValueError as e:
            self.assertions.fail("message from flow is not valid JSON: {}".format(e))
            return None
        self.count += 1
        try:
            self._on_msg(self, msg)
        except Exception as e:
            traceback.print_exc()
            self.assertions.fail("message handler raised an exception: {}".format(e))
        return msg

    async def _check_completed(self):
        while not self._latch.is_claimed:
            await asyncio.sleep(self.properties.flow_timeout)
            if self._latch.is_claimed:
                return
            if self.count == self.last_count:
                self._latch.claim("stall")
                self.assertions.comment("Check for correct closedown")
                self.assertions.ok(self.end_received, "end message has been received")
                await self._closedown()
                return
            self.last_count = self.count

    async def _check_connected(self, timeout):
        await asyncio.sleep(timeout)
        if not self.connected and self._latch.claim("connection timeout"):
            self.assertions.fail("no websocket connection received from flow within {}s".format(timeout))
            await self._closedown()

    async def _closedown(self):
        try:
            if self.properties.keep_flow:
                self.assertions.comment("!!! NOT deleting test flow !!!")
            else:
                self.assertions.comment("Delete test flow")
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, self._admin.delete_flow, self.assertions, self.flow_id)
        finally:
            self.closedown_done = True
            self._latch.release()

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        task.add_done_callback(self._task_done)
        self._tasks.append(task)
        return task

    def _task_done(self, task):
        if task.cancelled() or task.exception() is None:
            return
        self.assertions.fail("flow test task failed: {}".format(task.exception()))
        self._latch.claim("error")
        self._latch.release()


class FlowTestHarness(object):
    """Runs flows against a Node-RED admin API, producing one TestResult per flow"""

    def __init__(self, properties=None, verbose=True):
        self.properties = properties if properties is not None else Properties()
        self.verbose = verbose
        self.last_run = None

    def run(self, test, params, get_flow, on_msg):
        """
        Create the flow returned by get_flow(params), pass each message it sends to on_msg(run, msg),
        then delete the flow. Returns a single TestResult for the given Test.
        """
        return asyncio.run(self.run_async(test, params, get_flow, on_msg))

    async def run_async(self, test, params, get_flow, on_msg):
        if params is None:
            params = {}
        assertions = Assertions(verbose=self.verbose)
        run = FlowRun(self.properties.merge(params), assertions, params, on_msg)
        self.last_run = run
        await run.execute(get_flow)
        return assertions.verdict(test)


def flow_test(description, params, get_flow, on_msg, properties=None):
    """Run a single flow test outside of a suite"""
    print(" * Running " + description)
    test = Test(description, description)
    return FlowTestHarness(properties).run(test, params, get_flow, on_msg)
