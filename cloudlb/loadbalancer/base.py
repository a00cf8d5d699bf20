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

from cloudlb.common.base import ConnectionKey, BaseDriver
from cloudlb.loadbalancer.types import CloudLBLBError
from cloudlb.loadbalancer import predicates

__all__ = [
    'Member',
    'LoadBalancer',
    'VirtualIP',
    'Algorithm',
    'Driver',
    'DEFAULT_ALGORITHM'
]


class Member(object):
    """
    Represents a load balancer member.
    """

    def __init__(self, id, ip, port, balancer=None, extra=None):
        """
        :param id: Member ID.
        :type id: ``str``

        :param ip: IP address of this member.
        :param ip: ``str``

        :param port: Port of this member
        :param port: ``str``

        :param balancer: Balancer this member is attached to. (optional)
        :param balancer: :class:`.LoadBalancer`

        :param extra: Provider specific attributes.
        :type extra: ``dict``
        """
        self.id = str(id) if id else None
        self.ip = ip
        self.port = port
        self.balancer = balancer
        self.extra = extra or {}

    def __repr__(self):
        return ('<Member: id=%s, address=%s:%s>' % (self.id,
                                                     self.ip, self.port))


class VirtualIP(object):
    """
    Address a load balancer listens on.
    """

    def __init__(self, id, address, type, ip_version, extra=None):
        """
        :param id: Virtual IP ID. ``None`` until the provider assigned one.
        :type id: ``str``

        :param address: IP address, ``None`` until the provider assigned one.
        :type address: ``str``

        :param type: Network the address lives in (``PUBLIC`` or
                     ``SERVICENET``).
        :type type: ``str``

        :param ip_version: ``IPV4`` or ``IPV6``.
        :type ip_version: ``str``
        """
        self.id = str(id) if id is not None else None
        self.address = address
        self.type = type
        self.ip_version = ip_version
        self.extra = extra or {}

    def __repr__(self):
        return ('<VirtualIP: id=%s, address=%s, type=%s, ip_version=%s>' %
                (self.id, self.address, self.type, self.ip_version))


class Algorithm(object):
    """
    Represents a load balancing algorithm.
    """

    RANDOM = 0
    ROUND_ROBIN = 1
    LEAST_CONNECTIONS = 2
    WEIGHTED_ROUND_ROBIN = 3
    WEIGHTED_LEAST_CONNECTIONS = 4


DEFAULT_ALGORITHM = Algorithm.ROUND_ROBIN


class LoadBalancer(object):
    """
    Provide a common interface for handling Load Balancers.
    """

    def __init__(self, id, name, state, ip, port, driver, extra=None):
        """
        :param id: Load balancer ID.
        :type id: ``str``

        :param name: Load balancer name.
        :type name: ``str``

        :param state: State this loadbalancer is in.
        :type state: :class:`cloudlb.loadbalancer.types.State`

        :param ip: IP address of this loadbalancer.
        :type ip: ``str``

        :param port: Port of this loadbalancer.
        :type port: ``int``

        :param driver: Driver this loadbalancer belongs to.
        :type driver: :class:`.Driver`

        :param extra: Provider specific attributes. (optional)
        :type extra: ``dict``
        """
        self.id = str(id) if id else None
        self.name = name
        self.state = state
        self.ip = ip
        self.port = port
        self.driver = driver
        self.extra = extra or {}

    def attach_member(self, member):
        return self.driver.balancer_attach_member(balancer=self,
                                                  member=member)

    def detach_member(self, member):
        return self.driver.balancer_detach_member(balancer=self,
                                                  member=member)

    def list_members(self):
        return self.driver.balancer_list_members(balancer=self)

    def list_virtual_ips(self):
        return self.driver.ex_list_virtual_ips(balancer=self)

    def destroy(self):
        return self.driver.destroy_balancer(balancer=self)

    def __repr__(self):
        return ('<LoadBalancer: id=%s, name=%s, state=%s, ip=%s, '
                'port=%s>' % (self.id, self.name, self.state, self.ip,
                              self.port))


class Driver(BaseDriver):
    """
    A base Driver class to derive from

    This class is always subclassed by a specific driver.
    """

    name = None
    website = None

    connectionCls = ConnectionKey
    _ALGORITHM_TO_VALUE_MAP = {}
    _VALUE_TO_ALGORITHM_MAP = {}

    def list_protocols(self):
        """
        Return a list of supported protocols.

        :rtype: ``list`` of ``str``
        """
        raise NotImplementedError(
            'list_protocols not implemented for this driver')

    def list_balancers(self):
        """
        List all loadbalancers

        :rtype: ``list`` of :class:`LoadBalancer`
        """
        raise NotImplementedError(
            'list_balancers not implemented for this driver')

    def create_balancer(self, name, port, protocol, algorithm, members):
        """
        Create a new load balancer instance

        :param name: Name of the new load balancer (required)
        :type  name: ``str``

        :param port: Port the load balancer should listen on, defaults to 80
        :type  port: ``str``

        :param protocol: Loadbalancer protocol, defaults to http.
        :type  protocol: ``str``

        :param members: list of Members to attach to balancer
        :type  members: ``list`` of :class:`Member`

        :param algorithm: Load balancing algorithm, defaults to ROUND_ROBIN.
        :type algorithm: :class:`.Algorithm`

        :rtype: :class:`LoadBalancer`
        """
        raise NotImplementedError(
            'create_balancer not implemented for this driver')

    def destroy_balancer(self, balancer):
        """
        Destroy a load balancer

        :param balancer: LoadBalancer which should be used
        :type  balancer: :class:`LoadBalancer`

        :return: ``True`` if the destroy was successful, otherwise ``False``.
        :rtype: ``bool``
        """
        raise NotImplementedError(
            'destroy_balancer not implemented for this driver')

    def get_balancer(self, balancer_id):
        """
        Return a :class:`LoadBalancer` object.

        Implementations must always hit the provider so the result reflects
        the current remote state, and must raise
        :class:`cloudlb.loadbalancer.types.LoadBalancerNotFoundError` when
        the balancer does not exist.

        :param balancer_id: id of a load balancer you want to fetch
        :type  balancer_id: ``str``

        :rtype: :class:`LoadBalancer`
        """
        raise NotImplementedError(
            'get_balancer not implemented for this driver')

    def update_balancer(self, balancer, **kwargs):
        """
        Sets the name, algorithm, protocol, or port on a load balancer.

        :param   balancer: LoadBalancer which should be used
        :type    balancer: :class:`LoadBalancer`

        :param name: New load balancer name
        :type    name: ``str``

        :param algorithm: New load balancer algorithm
        :type    algorithm: :class:`.Algorithm`

        :param protocol: New load balancer protocol
        :type    protocol: ``str``

        :param port: New load balancer port
        :type    port: ``int``

        :rtype: :class:`LoadBalancer`
        """
        raise NotImplementedError(
            'update_balancer not implemented for this driver')

    def balancer_attach_member(self, balancer, member):
        """
        Attach a member to balancer

        :param balancer: LoadBalancer which should be used
        :type  balancer: :class:`LoadBalancer`

        :param member: Member to join to the balancer
        :type member: :class:`Member`

        :return: Member after joining the balancer.
        :rtype: :class:`Member`
        """
        raise NotImplementedError(
            'balancer_attach_member not implemented for this driver')

    def balancer_detach_member(self, balancer, member):
        """
        Detach member from balancer

        :param balancer: LoadBalancer which should be used
        :type  balancer: :class:`LoadBalancer`

        :param member: Member which should be used
        :type member: :class:`Member`

        :return: ``True`` if member detach was successful, otherwise
                 ``False``.
        :rtype: ``bool``
        """
        raise NotImplementedError(
            'balancer_detach_member not implemented for this driver')

    def balancer_list_members(self, balancer):
        """
        Return list of members attached to balancer

        :param balancer: LoadBalancer which should be used
        :type  balancer: :class:`LoadBalancer`

        :rtype: ``list`` of :class:`Member`
        """
        raise NotImplementedError(
            'balancer_list_members not implemented for this driver')

    def wait_until_available(self, balancer,
                             timeout=predicates.DEFAULT_TIMEOUT,
                             poll_interval=predicates.DEFAULT_POLL_INTERVAL):
        """
        Block until the provided balancer is ACTIVE again.

        Transient states (pending, error) do not stop the wait, only the
        timeout does.

        :param balancer: LoadBalancer to wait for.
        :type  balancer: :class:`LoadBalancer`

        :param timeout: How many seconds to wait before giving up.
        :type  timeout: ``int``

        :param poll_interval: How many seconds to wait between each fetch.
        :type  poll_interval: ``float``

        :return: ``True`` once the balancer is available, ``False`` if the
                 timeout elapsed first.
        :rtype: ``bool``
        """
        return predicates.await_available(
            self, timeout=timeout, interval=poll_interval)(balancer)

    def wait_until_deleted(self, balancer,
                           timeout=predicates.DEFAULT_TIMEOUT,
                           poll_interval=predicates.DEFAULT_POLL_INTERVAL):
        """
        Block until the provided balancer is reported as deleted or is gone
        altogether.

        :rtype: ``bool``
        """
        return predicates.await_deleted(
            self, timeout=timeout, interval=poll_interval)(balancer)

    def _get_updated_balancer(self, balancer,
                              timeout=predicates.DEFAULT_TIMEOUT,
                              poll_interval=predicates.DEFAULT_POLL_INTERVAL):
        """
        Wait for a pending change on ``balancer`` to settle and return its
        fresh representation.
        """
        if not self.wait_until_available(balancer, timeout=timeout,
                                         poll_interval=poll_interval):
            raise CloudLBLBError(
                value='Load balancer %s did not become available in %s '
                      'seconds' % (balancer.id, timeout),
                driver=self)

        return self.get_balancer(balancer.id)

    def _value_to_algorithm(self, value):
        """
        Return :class`Algorithm` based on the value.

        :param value: Algorithm name (e.g. http, tcp, ...).
        :type  value: ``str``

        :rtype: :class:`Algorithm`
        """
        try:
            return self._VALUE_TO_ALGORITHM_MAP[value]
        except KeyError:
            raise CloudLBLBError(value='Invalid value: %s' % (value),
                                 driver=self)

    def _algorithm_to_value(self, algorithm):
        """
        Return string value for the provided algorithm.

        :param value: Algorithm enum.
        :type  value: :class:`Algorithm`

        :rtype: ``str``
        """
        try:
            return self._ALGORITHM_TO_VALUE_MAP[algorithm]
        except KeyError:
            raise CloudLBLBError(value='Invalid algorithm: %s' % (algorithm),
                                 driver=self)

    def list_supported_algorithms(self):
        """
        Return algorithms supported by this driver.

        :rtype: ``list`` of ``str``
        """
        return list(self._ALGORITHM_TO_VALUE_MAP.keys())
