# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import sys
import unittest
from unittest import mock

from requests.exceptions import ConnectionError as RequestsConnectionError

from cloudlb.common.exceptions import NotFoundError
from cloudlb.loadbalancer import predicates
from cloudlb.loadbalancer.base import LoadBalancer, Member
from cloudlb.loadbalancer.types import State, LoadBalancerNotFoundError
from cloudlb.loadbalancer.drivers.dummy import DummyLBDriver
from cloudlb.test import FakeClock


class ScriptedFetch(object):
    """
    Return the next scripted state on every call. Exceptions in the script
    are raised instead. The last entry sticks.
    """

    def __init__(self, states):
        self.states = list(states)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if len(self.states) > 1:
            state = self.states.pop(0)
        else:
            state = self.states[0]

        if isinstance(state, Exception):
            raise state

        return LoadBalancer(id='1', name='test', state=state, ip='1.1.1.1',
                            port=80, driver=None)


class WaitForTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        patcher = mock.patch.object(predicates, 'time', self.clock)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_satisfied_on_first_fetch_does_not_sleep(self):
        fetch = ScriptedFetch([State.RUNNING])

        self.assertTrue(predicates.wait_for(fetch, predicates.is_available,
                                            timeout=10, interval=1))
        self.assertEqual(fetch.calls, 1)
        self.assertEqual(self.clock.sleeps, [])

    def test_polls_until_satisfied(self):
        fetch = ScriptedFetch([State.PENDING, State.PENDING, State.RUNNING])

        self.assertTrue(predicates.wait_for(fetch, predicates.is_available,
                                            timeout=10, interval=1))
        self.assertEqual(fetch.calls, 3)
        self.assertEqual(self.clock.sleeps, [1, 1])

    def test_timeout(self):
        fetch = ScriptedFetch([State.PENDING])

        self.assertFalse(predicates.wait_for(fetch, predicates.is_available,
                                             timeout=10, interval=1))
        self.assertEqual(fetch.calls, 11)
        self.assertTrue(self.clock.now - 1000.0 <= 10)

    def test_attempts_bounded_by_timeout_and_interval(self):
        for timeout, interval in [(10, 3), (600, 5), (1, 5), (0, 1),
                                  (7.5, 2.5)]:
            self.clock.now = 1000.0
            fetch = ScriptedFetch([State.PENDING])

            self.assertFalse(predicates.wait_for(
                fetch, predicates.is_available, timeout=timeout,
                interval=interval))
            self.assertTrue(fetch.calls >= 1)
            self.assertTrue(fetch.calls <= timeout / interval + 1)
            self.assertTrue(self.clock.now - 1000.0 <= timeout)

    def test_error_state_is_polled_through(self):
        fetch = ScriptedFetch([State.ERROR, State.UNKNOWN, State.RUNNING])

        self.assertTrue(predicates.wait_for(fetch, predicates.is_available,
                                            timeout=60, interval=5))
        self.assertEqual(fetch.calls, 3)

    def test_error_state_until_timeout(self):
        fetch = ScriptedFetch([State.ERROR])

        self.assertFalse(predicates.wait_for(fetch, predicates.is_available,
                                             timeout=20, interval=5))
        self.assertEqual(fetch.calls, 5)

    def test_missing_resource_counts_as_deleted(self):
        fetch = ScriptedFetch([State.PENDING, NotFoundError()])

        self.assertTrue(predicates.wait_for(fetch, predicates.is_deleted,
                                            timeout=60, interval=5,
                                            missing_ok=True))
        self.assertEqual(fetch.calls, 2)

    def test_missing_resource_raises_without_missing_ok(self):
        fetch = ScriptedFetch([LoadBalancerNotFoundError('1')])

        self.assertRaises(LoadBalancerNotFoundError, predicates.wait_for,
                          fetch, predicates.is_available, timeout=60,
                          interval=5)
        self.assertEqual(fetch.calls, 1)

    def test_transport_errors_propagate(self):
        fetch = ScriptedFetch([State.PENDING,
                               RequestsConnectionError('reset')])

        self.assertRaises(RequestsConnectionError, predicates.wait_for,
                          fetch, predicates.is_available, timeout=60,
                          interval=5)
        self.assertEqual(fetch.calls, 2)

    def test_timeout_is_logged(self):
        fetch = ScriptedFetch([State.PENDING])

        with self.assertLogs('cloudlb.loadbalancer.predicates',
                             level='WARNING') as logs:
            predicates.wait_for(fetch, predicates.is_available, timeout=2,
                                interval=1)

        self.assertEqual(len(logs.records), 1)
        self.assertTrue('3 attempt(s)' in logs.output[0])

    def test_state_is(self):
        predicate = predicates.state_is(State.PENDING, State.ERROR)
        balancer = LoadBalancer(id='1', name='test', state=State.ERROR,
                                ip=None, port=None, driver=None)

        self.assertTrue(predicate(balancer))
        balancer.state = State.RUNNING
        self.assertFalse(predicate(balancer))


class AwaitTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        patcher = mock.patch.object(predicates, 'time', self.clock)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.driver = DummyLBDriver()
        self.balancer = self.driver.create_balancer(
            'web', 80, 'http', None, [Member(None, '10.0.0.1', 80)])

    def test_await_available(self):
        self.assertEqual(self.balancer.state, State.PENDING)

        self.assertTrue(predicates.await_available(
            self.driver, timeout=60, interval=5)(self.balancer))
        self.assertEqual(self.driver.fetch_count, 2)
        self.assertEqual(self.clock.sleeps, [5])

    def test_await_available_fetches_fresh_state(self):
        predicates.await_available(self.driver)(self.balancer)

        # The snapshot passed in is never updated in place
        self.assertEqual(self.balancer.state, State.PENDING)
        self.assertEqual(self.driver.get_balancer(self.balancer.id).state,
                         State.RUNNING)

    def test_await_available_defaults(self):
        self.driver.ex_set_transitions(self.balancer, [State.PENDING])

        self.assertFalse(predicates.await_available(self.driver)(
            self.balancer))
        self.assertEqual(self.driver.fetch_count,
                         predicates.DEFAULT_TIMEOUT //
                         predicates.DEFAULT_POLL_INTERVAL + 1)

    def test_await_available_tolerates_error(self):
        self.driver.ex_set_transitions(self.balancer,
                                       [State.ERROR, State.ERROR,
                                        State.RUNNING])

        self.assertTrue(predicates.await_available(
            self.driver, timeout=60, interval=5)(self.balancer))
        self.assertEqual(self.driver.fetch_count, 3)

    def test_await_available_missing_balancer(self):
        predicates.await_available(self.driver)(self.balancer)
        self.driver.destroy_balancer(self.balancer)
        self.driver.ex_set_transitions(self.balancer, [None])

        self.assertRaises(LoadBalancerNotFoundError,
                          predicates.await_available(self.driver),
                          self.balancer)

    def test_await_deleted(self):
        predicates.await_available(self.driver)(self.balancer)
        self.driver.destroy_balancer(self.balancer)

        self.assertTrue(predicates.await_deleted(
            self.driver, timeout=60, interval=5)(self.balancer))

    def test_await_deleted_balancer_already_gone(self):
        predicates.await_available(self.driver)(self.balancer)
        self.driver.destroy_balancer(self.balancer)
        self.driver.ex_set_transitions(self.balancer, [None])
        self.clock.sleeps = []

        self.assertTrue(predicates.await_deleted(self.driver)(self.balancer))
        self.assertEqual(self.clock.sleeps, [])

    def test_await_deleted_timeout(self):
        self.assertFalse(predicates.await_deleted(
            self.driver, timeout=30, interval=5)(self.balancer))
        self.assertEqual(self.driver.fetch_count, 7)

    def test_driver_wait_helpers(self):
        self.assertTrue(self.driver.wait_until_available(
            self.balancer, timeout=60, poll_interval=1))

        self.driver.destroy_balancer(self.balancer)
        self.assertTrue(self.driver.wait_until_deleted(
            self.balancer, timeout=60, poll_interval=1))


if __name__ == '__main__':
    sys.exit(unittest.main())
