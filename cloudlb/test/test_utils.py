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
import datetime

from cloudlb.common.types import Type
from cloudlb.loadbalancer.types import Provider, State
from cloudlb.loadbalancer.providers import DRIVERS, get_driver, set_driver
from cloudlb.loadbalancer.drivers.dummy import DummyLBDriver
from cloudlb.loadbalancer.drivers.rackspace import RackspaceLBDriver
from cloudlb.utils.misc import reverse_dict, lowercase_keys
from cloudlb.utils.misc import get_cache_busting_token, iso_to_datetime


class TestUtils(unittest.TestCase):

    def test_get_driver(self):
        driver = get_driver(Provider.DUMMY)
        self.assertEqual(driver, DummyLBDriver)

        driver = get_driver('rackspace')
        self.assertEqual(driver, RackspaceLBDriver)

        self.assertRaises(AttributeError, get_driver, 'fooba')

    def test_set_driver(self):
        self.addCleanup(DRIVERS.pop, 'testingset', None)

        driver = set_driver('testingset',
                            'cloudlb.loadbalancer.drivers.dummy',
                            'DummyLBDriver')
        self.assertEqual(driver, DummyLBDriver)

        self.assertRaises(AttributeError, set_driver, 'testingset',
                          'cloudlb.loadbalancer.drivers.dummy',
                          'DummyLBDriver')

    def test_set_driver_invalid(self):
        self.assertRaises(AttributeError, set_driver, 'testingnope',
                          'cloudlb.loadbalancer.drivers.dummy',
                          'NopeDriver')
        self.assertFalse('testingnope' in DRIVERS)

    def test_reverse_dict(self):
        self.assertEqual(reverse_dict({'a': 1, 'b': 2}), {1: 'a', 2: 'b'})

    def test_lowercase_keys(self):
        self.assertEqual(lowercase_keys({'Retry-After': '1', 'x': 2}),
                         {'retry-after': '1', 'x': 2})

    def test_get_cache_busting_token(self):
        token = get_cache_busting_token()
        self.assertEqual(len(token), 16)
        int(token, 16)

        self.assertEqual(len(get_cache_busting_token(size=4)), 8)
        self.assertNotEqual(get_cache_busting_token(),
                            get_cache_busting_token())

    def test_iso_to_datetime(self):
        self.assertEqual(iso_to_datetime('2011-04-07T16:27:50Z'),
                         datetime.datetime(2011, 4, 7, 16, 27, 50))

        value = iso_to_datetime('2011-04-07T16:27:50+0000')
        self.assertEqual(value.utcoffset(), datetime.timedelta(0))

        self.assertIsNone(iso_to_datetime('yesterday'))

    def test_type_enum(self):
        self.assertEqual(State.RUNNING, 'running')
        self.assertNotEqual(State.RUNNING, State.PENDING)
        self.assertEqual(State.tostring(State.RUNNING), 'RUNNING')
        self.assertEqual(State.fromstring('pending'), State.PENDING)
        self.assertEqual(str(State.DELETED), 'deleted')
        self.assertEqual(repr(State.DELETED), 'deleted')
        self.assertTrue(issubclass(Provider, Type))
        self.assertEqual({State.RUNNING: 1}['running'], 1)


if __name__ == '__main__':
    sys.exit(unittest.main())
