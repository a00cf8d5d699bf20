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

import json

from cloudlb.utils.misc import reverse_dict, get_cache_busting_token
from cloudlb.utils.misc import iso_to_datetime
from cloudlb.loadbalancer.base import LoadBalancer, Member, Driver, Algorithm
from cloudlb.loadbalancer.base import VirtualIP, DEFAULT_ALGORITHM
from cloudlb.loadbalancer.types import State, MemberCondition
from cloudlb.loadbalancer.types import CloudLBLBError
from cloudlb.loadbalancer.types import LoadBalancerNotFoundError
from cloudlb.common.base import JsonResponse, ConnectionKey
from cloudlb.common.exceptions import NotFoundError
from cloudlb.common.types import InvalidCredsError, ServiceUnavailableError

__all__ = [
    'REGIONS',
    'DEFAULT_REGION',
    'RackspaceResponse',
    'RackspaceConnection',
    'RackspaceLBDriver',
]

API_VERSION = 'v1.0'
ENDPOINT_HOST_TEMPLATE = '%s.loadbalancers.api.rackspacecloud.com'

REGIONS = ['ord', 'dfw', 'iad', 'lon', 'syd', 'hkg']
DEFAULT_REGION = 'ord'

ACCEPTED = 202


class RackspaceResponse(JsonResponse):

    def parse_body(self):
        if not self.body:
            return None
        return super(RackspaceResponse, self).parse_body()

    def parse_error(self):
        if self.status == 401:
            raise InvalidCredsError(driver=self.connection.driver)

        try:
            body = json.loads(self.body)
        except ValueError:
            body = self.body

        message = self._extract_message(body)

        if self.status == 503:
            raise ServiceUnavailableError(value=message or self.error,
                                          driver=self.connection.driver)

        return message or self.body

    def success(self):
        return 200 <= int(self.status) <= 299

    def _extract_message(self, body):
        if not isinstance(body, dict):
            return None

        if 'message' in body:
            return body['message']

        # Faults are wrapped in a single key named after the fault, e.g.
        # {"itemNotFound": {"message": "...", "code": 404}}
        for value in body.values():
            if isinstance(value, dict) and 'message' in value:
                return value['message']

        return None


class RackspaceConnection(ConnectionKey):
    """
    Connection to the Cloud Load Balancers endpoint of a single region.

    ``key`` is an auth token issued by the identity service; it is sent as
    is and never refreshed.
    """

    responseCls = RackspaceResponse

    def __init__(self, key, secure=True, host=None, port=None,
                 tenant_id=None, region=DEFAULT_REGION,
                 ex_force_base_url=None, **kwargs):
        host = host or ENDPOINT_HOST_TEMPLATE % (region)
        super(RackspaceConnection, self).__init__(key, secure=secure,
                                                  host=host, port=port,
                                                  url=ex_force_base_url,
                                                  **kwargs)
        self.tenant_id = tenant_id
        self.region = region

        if not ex_force_base_url:
            self.request_path = '/%s/%s' % (API_VERSION, tenant_id)

    def add_default_headers(self, headers):
        headers['X-Auth-Token'] = self.key
        headers['Accept'] = 'application/json'
        return headers

    def request(self, action, params=None, data=None, headers=None,
                method='GET'):
        if not headers:
            headers = {}
        if not params:
            params = {}

        if method in ('POST', 'PUT'):
            headers['Content-Type'] = 'application/json'
        if method == 'GET':
            # Each fetch must observe the current remote state
            token = get_cache_busting_token()
            if isinstance(params, dict):
                params['cache-busting'] = token
            else:
                params = list(params) + [('cache-busting', token)]

        return super(RackspaceConnection, self).request(
            action=action, params=params, data=data, method=method,
            headers=headers)

    def encode_data(self, data):
        if isinstance(data, (dict, list)):
            return json.dumps(data)
        return data


class RackspaceLBDriver(Driver):
    connectionCls = RackspaceConnection
    api_name = 'rackspace_lb'
    name = 'Rackspace LB'
    website = 'https://www.rackspace.com/'

    LB_STATE_MAP = {
        'ACTIVE': State.RUNNING,
        'BUILD': State.PENDING,
        'ERROR': State.ERROR,
        'DELETED': State.DELETED,
        'PENDING_UPDATE': State.PENDING,
        'PENDING_DELETE': State.PENDING
    }

    LB_MEMBER_CONDITION_MAP = {
        'ENABLED': MemberCondition.ENABLED,
        'DISABLED': MemberCondition.DISABLED,
        'DRAINING': MemberCondition.DRAINING
    }

    CONDITION_LB_MEMBER_MAP = reverse_dict(LB_MEMBER_CONDITION_MAP)

    _VALUE_TO_ALGORITHM_MAP = {
        'RANDOM': Algorithm.RANDOM,
        'ROUND_ROBIN': Algorithm.ROUND_ROBIN,
        'LEAST_CONNECTIONS': Algorithm.LEAST_CONNECTIONS,
        'WEIGHTED_ROUND_ROBIN': Algorithm.WEIGHTED_ROUND_ROBIN,
        'WEIGHTED_LEAST_CONNECTIONS': Algorithm.WEIGHTED_LEAST_CONNECTIONS
    }

    _ALGORITHM_TO_VALUE_MAP = reverse_dict(_VALUE_TO_ALGORITHM_MAP)

    def __init__(self, tenant_id, auth_token, region=DEFAULT_REGION,
                 secure=True, host=None, port=None, **kwargs):
        """
        :param tenant_id: Account number the balancers belong to.
        :type tenant_id: ``str``

        :param auth_token: Token issued by the identity service.
        :type auth_token: ``str``

        :param region: Region the balancers live in (ord, dfw, iad, lon,
                       syd, hkg).
        :type region: ``str``

        :keyword ex_force_base_url: Full endpoint URL, including the API
                                    version and tenant. Overrides
                                    ``region``.
        :type ex_force_base_url: ``str``
        """
        self.ex_force_base_url = kwargs.pop('ex_force_base_url', None)

        if region not in REGIONS and host is None and \
                not self.ex_force_base_url:
            raise ValueError('Invalid region: %s. Valid regions are: %s' %
                             (region, ', '.join(REGIONS)))

        self.tenant_id = tenant_id
        self.region = region

        super(RackspaceLBDriver, self).__init__(key=auth_token,
                                                secure=secure, host=host,
                                                port=port, **kwargs)

    def _ex_connection_class_kwargs(self):
        return {'tenant_id': self.tenant_id,
                'region': self.region,
                'ex_force_base_url': self.ex_force_base_url}

    def list_protocols(self):
        return self._to_protocols(
            self.connection.request('/loadbalancers/protocols').object)

    def list_balancers(self, ex_member_address=None):
        """
        :param ex_member_address: Optional IP address of the attachment member.
                                  If provided, only the load balancers which
                                  have this member attached will be returned.
        :type ex_member_address: ``str``
        """
        params = {}

        if ex_member_address:
            params['nodeaddress'] = ex_member_address

        return self._to_balancers(
            self.connection.request('/loadbalancers', params=params).object)

    def create_balancer(self, name, members, protocol='http',
                        port=80, algorithm=DEFAULT_ALGORITHM,
                        ex_virtual_ip_type='PUBLIC'):
        """
        Creates a new load balancer. The balancer is returned as soon as
        the request has been accepted, typically still in a pending state.

        :param ex_virtual_ip_type: Type of the virtual IP the balancer is
                                   created with (PUBLIC or SERVICENET).
        :type ex_virtual_ip_type: ``str``
        """
        balancer_attrs = self._kwargs_to_mutable_attrs(
            name=name,
            protocol=protocol,
            port=port,
            algorithm=algorithm)

        balancer_attrs.update({
            'virtualIps': [{'type': ex_virtual_ip_type}],
            'nodes': [{'address': member.ip,
                       'port': member.port,
                       'condition': 'ENABLED'} for member in members],
        })
        balancer_object = {'loadBalancer': balancer_attrs}

        resp = self.connection.request('/loadbalancers',
                                       method='POST',
                                       data=balancer_object)
        return self._to_balancer(resp.object['loadBalancer'])

    def destroy_balancer(self, balancer):
        uri = '/loadbalancers/%s' % (balancer.id)
        resp = self.connection.request(uri, method='DELETE')

        return resp.status == ACCEPTED

    def get_balancer(self, balancer_id):
        uri = '/loadbalancers/%s' % (balancer_id)

        try:
            resp = self.connection.request(uri)
        except NotFoundError as e:
            raise LoadBalancerNotFoundError(balancer_id, message=e.message,
                                            headers=e.headers) from e

        return self._to_balancer(resp.object['loadBalancer'])

    def update_balancer(self, balancer, **kwargs):
        """
        Updates the balancer and blocks until the change has been applied.

        :rtype: :class:`LoadBalancer`
        """
        if not self.ex_update_balancer_no_poll(balancer, **kwargs):
            raise CloudLBLBError('Update request was not accepted',
                                 driver=self)

        return self._get_updated_balancer(balancer)

    def ex_update_balancer_no_poll(self, balancer, **kwargs):
        """
        Updates the balancer and returns immediately.

        :rtype: ``bool``
        :return: Returns whether the update request was accepted.
        """
        attrs = self._kwargs_to_mutable_attrs(**kwargs)
        resp = self.connection.request(
            action='/loadbalancers/%s' % balancer.id,
            method='PUT',
            data={'loadBalancer': attrs})
        return resp.status == ACCEPTED

    def balancer_attach_member(self, balancer, member):
        member_object = {'nodes': [{'port': member.port,
                                    'address': member.ip,
                                    'condition': 'ENABLED'}]}

        uri = '/loadbalancers/%s/nodes' % (balancer.id)
        resp = self.connection.request(uri, method='POST',
                                       data=member_object)
        return self._to_members(resp.object, balancer)[0]

    def balancer_detach_member(self, balancer, member):
        # Loadbalancer always needs to have at least 1 member.
        # Last member cannot be detached. You can only disable it or destroy
        # the balancer.
        uri = '/loadbalancers/%s/nodes/%s' % (balancer.id, member.id)
        resp = self.connection.request(uri, method='DELETE')

        return resp.status == ACCEPTED

    def ex_balancer_detach_members(self, balancer, members):
        """
        Detaches a list of members from a balancer (the API supports up to 10).
        This method blocks until the detach request has been processed and the
        balancer is in a RUNNING state again.

        :param balancer: The Balancer to detach members from.
        :type balancer: :class:`LoadBalancer`

        :param members: A list of Members to detach.
        :type members: ``list`` of :class:`Member`

        :rtype: :class:`LoadBalancer`
        :return: Updated Balancer.
        """
        accepted = self.ex_balancer_detach_members_no_poll(balancer, members)

        if not accepted:
            msg = 'Detach members request was not accepted'
            raise CloudLBLBError(msg, driver=self)

        return self._get_updated_balancer(balancer)

    def ex_balancer_detach_members_no_poll(self, balancer, members):
        """
        Detaches a list of members from a balancer (the API supports up to 10).
        This method returns immediately.

        :rtype: ``bool``
        :return: Returns whether the detach request was accepted.
        """
        uri = '/loadbalancers/%s/nodes' % (balancer.id)
        ids = [('id', member.id) for member in members]
        resp = self.connection.request(uri, method='DELETE', params=ids)

        return resp.status == ACCEPTED

    def balancer_list_members(self, balancer):
        uri = '/loadbalancers/%s/nodes' % (balancer.id)
        return self._to_members(self.connection.request(uri).object,
                                balancer)

    def ex_list_virtual_ips(self, balancer):
        """
        Lists the virtual IPs the balancer listens on.

        :rtype: ``list`` of :class:`VirtualIP`
        """
        uri = '/loadbalancers/%s/virtualips' % (balancer.id)
        resp = self.connection.request(uri)

        return [self._to_virtual_ip(el) for el in resp.object['virtualIps']]

    def ex_create_virtual_ip(self, balancer, type='PUBLIC',
                             ip_version='IPV6'):
        """
        Adds a virtual IP to the balancer. Only IPv6 addresses can be added
        to an existing balancer. The balancer goes through a pending state
        while the address is being attached.

        :param type: PUBLIC or SERVICENET.
        :type type: ``str``

        :param ip_version: IP version of the new address.
        :type ip_version: ``str``

        :rtype: :class:`VirtualIP`
        """
        uri = '/loadbalancers/%s/virtualips' % (balancer.id)
        resp = self.connection.request(uri, method='POST',
                                       data={'type': type,
                                             'ipVersion': ip_version})

        return self._to_virtual_ip(resp.object)

    def ex_destroy_virtual_ip(self, balancer, vip):
        """
        Removes a single virtual IP from the balancer.

        :rtype: ``bool``
        :return: Returns whether the request was accepted.
        """
        uri = '/loadbalancers/%s/virtualips/%s' % (balancer.id, vip.id)
        resp = self.connection.request(uri, method='DELETE')

        return resp.status == ACCEPTED

    def ex_destroy_virtual_ips(self, balancer, vips):
        """
        Removes several virtual IPs from the balancer in one request. A
        balancer must keep at least one virtual IP.

        :rtype: ``bool``
        :return: Returns whether the request was accepted.
        """
        if not vips:
            raise ValueError('At least one virtual IP must be provided')

        uri = '/loadbalancers/%s/virtualips' % (balancer.id)
        ids = [('id', vip.id) for vip in vips]
        resp = self.connection.request(uri, method='DELETE', params=ids)

        return resp.status == ACCEPTED

    def _to_protocols(self, object):
        protocols = []
        for item in object['protocols']:
            protocols.append(item['name'].lower())
        return protocols

    def _to_balancers(self, object):
        return [self._to_balancer(el) for el in object['loadBalancers']]

    def _to_balancer(self, el):
        ip = None
        port = None

        if 'virtualIps' in el and el['virtualIps']:
            ip = el['virtualIps'][0].get('address')

        if 'port' in el:
            port = el['port']

        extra = {
            'status': el.get('status'),
            'publicVips': self._ex_virtual_ip_addresses(el, 'PUBLIC'),
            'privateVips': self._ex_virtual_ip_addresses(el, 'SERVICENET'),
        }

        if 'virtualIps' in el:
            extra['virtualIps'] = [self._to_virtual_ip(vip)
                                   for vip in el['virtualIps']]

        if 'protocol' in el:
            extra['protocol'] = el['protocol']

        if 'algorithm' in el and \
                el['algorithm'] in self._VALUE_TO_ALGORITHM_MAP:
            extra['algorithm'] = self._value_to_algorithm(el['algorithm'])

        if 'created' in el:
            extra['created'] = iso_to_datetime(el['created']['time'])

        if 'updated' in el:
            extra['updated'] = iso_to_datetime(el['updated']['time'])

        balancer = LoadBalancer(id=el['id'],
                                name=el['name'],
                                state=self.LB_STATE_MAP.get(
                                    el['status'], State.UNKNOWN),
                                ip=ip,
                                port=port,
                                driver=self.connection.driver,
                                extra=extra)

        if 'nodes' in el:
            balancer.extra['members'] = self._to_members(el, balancer)

        return balancer

    def _to_members(self, object, balancer=None):
        return [self._to_member(el, balancer) for el in object['nodes']]

    def _to_member(self, el, balancer=None):
        extra = {}
        if 'weight' in el:
            extra['weight'] = el['weight']

        if 'condition' in el and \
                el['condition'] in self.LB_MEMBER_CONDITION_MAP:
            extra['condition'] = \
                self.LB_MEMBER_CONDITION_MAP.get(el['condition'])

        if 'status' in el:
            extra['status'] = el['status']

        return Member(id=el['id'],
                      ip=el['address'],
                      port=el['port'],
                      balancer=balancer,
                      extra=extra)

    def _to_virtual_ip(self, el):
        return VirtualIP(id=el.get('id'),
                         address=el.get('address'),
                         type=el.get('type'),
                         ip_version=el.get('ipVersion'))

    def _protocol_to_value(self, protocol):
        non_standard_protocols = {'imapv2': 'IMAPv2', 'imapv3': 'IMAPv3',
                                  'imapv4': 'IMAPv4'}
        protocol_name = protocol.lower()

        if protocol_name in non_standard_protocols:
            protocol_value = non_standard_protocols[protocol_name]
        else:
            protocol_value = protocol.upper()

        return protocol_value

    def _kwargs_to_mutable_attrs(self, **attrs):
        update_attrs = {}
        if 'name' in attrs:
            update_attrs['name'] = attrs['name']

        if 'algorithm' in attrs:
            algorithm_value = self._algorithm_to_value(attrs['algorithm'])
            update_attrs['algorithm'] = algorithm_value

        if 'protocol' in attrs:
            update_attrs['protocol'] = \
                self._protocol_to_value(attrs['protocol'])

        if 'port' in attrs:
            update_attrs['port'] = int(attrs['port'])

        return update_attrs

    def _ex_virtual_ip_addresses(self, el, type):
        if 'virtualIps' not in el:
            return None

        return [vip.get('address') for vip in el['virtualIps']
                if vip.get('type') == type]
