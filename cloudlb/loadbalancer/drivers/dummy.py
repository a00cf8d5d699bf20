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

__all__ = [
    'DummyLBDriver'
]

from cloudlb.loadbalancer.types import State, LoadBalancerNotFoundError
from cloudlb.loadbalancer.base import Driver, LoadBalancer, Member, VirtualIP

# Marks a balancer which has been purged on the provider side
GONE = None


class DummyLBDriver(Driver):
    """
    In-memory load balancer driver.

    Every change puts the balancer into a pending state which is reported
    by the next ``get_balancer`` call before it becomes running again, the
    same way a real provider applies changes asynchronously. Tests can
    script any other sequence with :meth:`ex_set_transitions`.

    >>> from cloudlb.loadbalancer.drivers.dummy import DummyLBDriver
    >>> driver = DummyLBDriver()
    >>> balancer = driver.create_balancer('web', 80, 'http', None, [])
    >>> balancer.state
    pending
    >>> driver.get_balancer(balancer.id).state
    pending
    >>> driver.get_balancer(balancer.id).state
    running
    """

    name = 'Dummy LB'
    website = 'http://example.com'

    def __init__(self, access_id=None, secret=None):
        self.next_id = 0
        self.balancers = {}
        self.fetch_count = 0
        self._transitions = {}
        self._members = {}
        self._virtual_ips = {}

    def list_protocols(self):
        return ['tcp', 'ssl', 'http', 'https']

    def list_balancers(self):
        return [self._snapshot(balancer)
                for balancer in self.balancers.values()]

    def create_balancer(self, name, port, protocol, algorithm, members):
        balancer = LoadBalancer(
            id=str(self.next_id),
            name=name,
            state=State.PENDING,
            ip='192.168.1.2',
            port=port,
            driver=self,
            extra={'protocol': protocol, 'algorithm': algorithm}
        )
        self.next_id += 1

        self.balancers[balancer.id] = balancer
        self._members[balancer.id] = [
            Member(str(index), member.ip, member.port, balancer=balancer)
            for index, member in enumerate(members)]
        self._virtual_ips[balancer.id] = [
            VirtualIP('0', '192.168.1.2', 'PUBLIC', 'IPV4')]
        self.ex_set_transitions(balancer, [State.PENDING, State.RUNNING])

        return self._snapshot(balancer)

    def destroy_balancer(self, balancer):
        self._get_stored(balancer.id)
        self.ex_set_transitions(balancer,
                                [State.PENDING, State.DELETED, GONE])
        return True

    def get_balancer(self, balancer_id):
        self.fetch_count += 1
        balancer = self._get_stored(balancer_id)

        queue = self._transitions.get(balancer_id)
        if queue:
            state = queue.pop(0)
            if state is GONE:
                self._purge(balancer_id)
                raise LoadBalancerNotFoundError(balancer_id)
            balancer.state = state

        return self._snapshot(balancer)

    def balancer_attach_member(self, balancer, member):
        stored = self._get_stored(balancer.id)
        members = self._members[balancer.id]
        attached = Member(str(len(members)), member.ip, member.port,
                          balancer=stored)
        members.append(attached)
        self._touch(balancer.id)
        return attached

    def balancer_detach_member(self, balancer, member):
        self._get_stored(balancer.id)
        self._members[balancer.id] = [m for m in self._members[balancer.id]
                                      if m.id != member.id]
        self._touch(balancer.id)
        return True

    def balancer_list_members(self, balancer):
        self._get_stored(balancer.id)
        return list(self._members[balancer.id])

    def ex_list_virtual_ips(self, balancer):
        self._get_stored(balancer.id)
        return list(self._virtual_ips[balancer.id])

    def ex_create_virtual_ip(self, balancer, type='PUBLIC',
                             ip_version='IPV6'):
        self._get_stored(balancer.id)
        vips = self._virtual_ips[balancer.id]
        vip_id = str(max([int(vip.id) for vip in vips] + [-1]) + 1)
        vip = VirtualIP(vip_id, 'fd00::%s' % (vip_id), type, ip_version)
        vips.append(vip)
        self._touch(balancer.id)
        return vip

    def ex_destroy_virtual_ip(self, balancer, vip):
        return self.ex_destroy_virtual_ips(balancer, [vip])

    def ex_destroy_virtual_ips(self, balancer, vips):
        if not vips:
            raise ValueError('At least one virtual IP must be provided')

        self._get_stored(balancer.id)
        ids = set([vip.id for vip in vips])
        self._virtual_ips[balancer.id] = [
            vip for vip in self._virtual_ips[balancer.id]
            if vip.id not in ids]
        self._touch(balancer.id)
        return True

    def ex_set_transitions(self, balancer, states):
        """
        Script the states reported by the next ``get_balancer`` calls.

        Once the queue is drained the last reported state sticks. ``None``
        makes the balancer disappear.

        :param balancer: Balancer to script.
        :type balancer: :class:`LoadBalancer`

        :param states: States to report, in order.
        :type states: ``list`` of :class:`State`
        """
        self._transitions[balancer.id] = list(states)

    def _touch(self, balancer_id):
        self._transitions.setdefault(balancer_id, []).extend(
            [State.PENDING, State.RUNNING])

    def _get_stored(self, balancer_id):
        if balancer_id not in self.balancers:
            raise LoadBalancerNotFoundError(balancer_id)
        return self.balancers[balancer_id]

    def _purge(self, balancer_id):
        del self.balancers[balancer_id]
        self._transitions.pop(balancer_id, None)
        self._members.pop(balancer_id, None)
        self._virtual_ips.pop(balancer_id, None)

    def _snapshot(self, balancer):
        return LoadBalancer(id=balancer.id, name=balancer.name,
                            state=balancer.state, ip=balancer.ip,
                            port=balancer.port, driver=self,
                            extra=dict(balancer.extra))


if __name__ == "__main__":
    import doctest
    doctest.testmod()
