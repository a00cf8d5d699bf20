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

from cloudlb.loadbalancer import predicates
from cloudlb.loadbalancer.base import Member
from cloudlb.loadbalancer.types import State, LoadBalancerNotFoundError
from cloudlb.loadbalancer.drivers.dummy import DummyLBDriver
from cloudlb.test import FakeClock


class DummyLBDriverTestCase(unittest.TestCase):

    def setUp(self):
        self.driver = DummyLBDriver()
        self.balancer = self.driver.create_balancer(
            'web', 80, 'http', None, [Member(None, '10.0.0.1', 80)])

    def test_create_balancer(self):
        self.assertEqual(self.balancer.id, '0')
        self.assertEqual(self.balancer.name, 'web')
        self.assertEqual(self.balancer.state, State.PENDING)
        self.assertEqual(len(self.driver.list_balancers()), 1)

    def test_get_balancer_transitions(self):
        states = [self.driver.get_balancer('0').state for _ in range(3)]

        self.assertEqual(states, [State.PENDING, State.RUNNING,
                                  State.RUNNING])
        self.assertEqual(self.driver.fetch_count, 3)

    def test_get_balancer_unknown(self):
        self.assertRaises(LoadBalancerNotFoundError,
                          self.driver.get_balancer, '42')

    def test_snapshots_are_independent(self):
        first = self.driver.get_balancer('0')
        second = self.driver.get_balancer('0')

        self.assertFalse(first is second)
        self.assertEqual(first.state, State.PENDING)
        self.assertEqual(second.state, State.RUNNING)

    def test_members(self):
        balancer = self.driver.get_balancer('0')
        member = balancer.attach_member(Member(None, '10.0.0.2', 8080))

        self.assertEqual(member.id, '1')
        self.assertEqual(len(balancer.list_members()), 2)
        self.assertTrue(balancer.detach_member(member))
        self.assertEqual([m.ip for m in balancer.list_members()],
                         ['10.0.0.1'])

    def test_change_goes_through_pending(self):
        self.driver.ex_set_transitions(self.balancer, [])
        self.driver.ex_create_virtual_ip(self.balancer)

        self.assertEqual(self.driver.get_balancer('0').state, State.PENDING)
        self.assertEqual(self.driver.get_balancer('0').state, State.RUNNING)

    def test_virtual_ips(self):
        vip = self.driver.ex_create_virtual_ip(self.balancer)

        self.assertEqual(vip.id, '1')
        self.assertEqual(vip.address, 'fd00::1')
        self.assertEqual(vip.ip_version, 'IPV6')
        self.assertEqual(len(self.balancer.list_virtual_ips()), 2)

        self.assertTrue(self.driver.ex_destroy_virtual_ip(self.balancer,
                                                          vip))
        self.assertEqual([v.id for v in self.balancer.list_virtual_ips()],
                         ['0'])

    def test_destroy_virtual_ips_empty_list(self):
        self.assertRaises(ValueError, self.driver.ex_destroy_virtual_ips,
                          self.balancer, [])
        self.assertEqual(len(self.balancer.list_virtual_ips()), 1)

    def test_destroy_balancer(self):
        self.driver.ex_set_transitions(self.balancer, [])
        self.assertTrue(self.balancer.destroy())

        self.assertEqual(self.driver.get_balancer('0').state, State.PENDING)
        self.assertEqual(self.driver.get_balancer('0').state, State.DELETED)
        self.assertRaises(LoadBalancerNotFoundError,
                          self.driver.get_balancer, '0')
        self.assertEqual(self.driver.list_balancers(), [])

    @mock.patch.object(predicates, 'time', FakeClock())
    def test_virtual_ip_lifecycle(self):
        wait = predicates.await_available(self.driver, timeout=60,
                                          interval=5)
        self.assertTrue(wait(self.balancer))

        for _ in range(3):
            self.driver.ex_create_virtual_ip(self.balancer)
            self.assertTrue(wait(self.balancer))

        vips = self.driver.ex_list_virtual_ips(self.balancer)
        self.assertEqual(len(vips), 4)

        self.driver.ex_destroy_virtual_ip(self.balancer, vips[1])
        self.assertTrue(wait(self.balancer))
        self.assertEqual(len(self.driver.ex_list_virtual_ips(self.balancer)),
                         3)

        self.driver.ex_destroy_virtual_ips(self.balancer, vips[2:])
        self.assertTrue(wait(self.balancer))
        self.assertEqual(len(self.driver.ex_list_virtual_ips(self.balancer)),
                         1)

        self.driver.destroy_balancer(self.balancer)
        self.assertTrue(predicates.await_deleted(self.driver)(self.balancer))


if __name__ == '__main__':
    sys.exit(unittest.main())
