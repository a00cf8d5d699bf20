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

"""
Helpers which block until a load balancer converges to a desired state.

Usage::

    from cloudlb.loadbalancer.predicates import await_available

    balancer = driver.create_balancer(...)
    assert await_available(driver)(balancer)
"""

import time
import logging
from functools import partial

from typing import Any
from typing import Callable

from cloudlb.common.exceptions import NotFoundError
from cloudlb.loadbalancer.types import State

__all__ = [
    'DEFAULT_TIMEOUT',
    'DEFAULT_POLL_INTERVAL',
    'wait_for',
    'state_is',
    'is_available',
    'is_deleted',
    'await_available',
    'await_deleted',
]

_logger = logging.getLogger(__name__)

# All the time values are in seconds
DEFAULT_TIMEOUT = 600
DEFAULT_POLL_INTERVAL = 5


def wait_for(fetch,  # type: Callable[[], Any]
             predicate,  # type: Callable[[Any], bool]
             timeout=DEFAULT_TIMEOUT,  # type: float
             interval=DEFAULT_POLL_INTERVAL,  # type: float
             missing_ok=False  # type: bool
             ):
    # type: (...) -> bool
    """
    Poll ``fetch`` until ``predicate`` holds for the returned snapshot.

    A new snapshot is fetched for every evaluation. The first attempt
    happens immediately, later ones every ``interval`` seconds; no attempt
    is started once it would begin past ``timeout``.

    :param fetch: Callable returning the current representation of the
                  resource. Must raise
                  :class:`cloudlb.common.exceptions.NotFoundError` when the
                  resource does not exist.
    :type fetch: ``callable``

    :param predicate: Callable taking a snapshot and returning ``True`` once
                      the desired state has been reached.
    :type predicate: ``callable``

    :param timeout: How many seconds to wait before giving up.
    :type timeout: ``float``

    :param interval: How many seconds to sleep between attempts.
    :type interval: ``float``

    :param missing_ok: Treat a missing resource as success. Set this when
                       ``predicate`` describes a deleted resource.
    :type missing_ok: ``bool``

    :return: ``True`` if the predicate was satisfied, ``False`` if the
             timeout elapsed first.
    :rtype: ``bool``
    """
    start = time.time()
    end = start + timeout
    attempt = 0

    while True:
        attempt += 1

        try:
            snapshot = fetch()
        except NotFoundError:
            if not missing_ok:
                raise

            _logger.debug('Resource is gone after %d attempt(s)', attempt)
            return True

        if predicate(snapshot):
            _logger.debug('Condition met after %d attempt(s) (%.1fs)',
                          attempt, time.time() - start)
            return True

        if time.time() + interval > end:
            break

        _logger.debug('Condition not met on attempt %d (%r), retrying in '
                      '%ss', attempt, snapshot, interval)
        time.sleep(interval)

    _logger.warning('Condition not met after %d attempt(s) within %ss',
                    attempt, timeout)
    return False


def state_is(*states):
    """
    Return a predicate which holds when a balancer is in one of ``states``.

    :rtype: ``callable``
    """
    def predicate(balancer):
        return balancer.state in states

    return predicate


is_available = state_is(State.RUNNING)
is_deleted = state_is(State.DELETED)


def await_available(driver, timeout=DEFAULT_TIMEOUT,
                    interval=DEFAULT_POLL_INTERVAL):
    """
    Return a callable which blocks until a balancer is ACTIVE.

    Pending and error states are polled through; only the timeout ends the
    wait early.

    :param driver: Driver used to fetch the balancer.
    :type driver: :class:`cloudlb.loadbalancer.base.Driver`

    :rtype: ``callable`` taking a
            :class:`cloudlb.loadbalancer.base.LoadBalancer` and returning
            ``bool``
    """
    def apply(balancer):
        return wait_for(partial(driver.get_balancer, balancer.id),
                        is_available, timeout=timeout, interval=interval)

    return apply


def await_deleted(driver, timeout=DEFAULT_TIMEOUT,
                  interval=DEFAULT_POLL_INTERVAL):
    """
    Return a callable which blocks until a balancer is DELETED or no longer
    known to the provider.

    :param driver: Driver used to fetch the balancer.
    :type driver: :class:`cloudlb.loadbalancer.base.Driver`

    :rtype: ``callable`` taking a
            :class:`cloudlb.loadbalancer.base.LoadBalancer` and returning
            ``bool``
    """
    def apply(balancer):
        return wait_for(partial(driver.get_balancer, balancer.id),
                        is_deleted, timeout=timeout, interval=interval,
                        missing_ok=True)

    return apply
