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

from cloudlb.common.exceptions import NotFoundError
from cloudlb.common.types import CloudLBError, Type

__all__ = [
    "Provider",
    "State",
    "MemberCondition",
    "VirtualIPType",
    "IPVersion",
    "CloudLBLBError",
    "LoadBalancerNotFoundError",
]


class CloudLBLBError(CloudLBError):
    pass


class LoadBalancerNotFoundError(NotFoundError):
    """
    Raised when a load balancer no longer exists on the provider side.
    """

    def __init__(self, balancer_id, message=None, headers=None):
        self.balancer_id = balancer_id
        message = message or 'Load balancer %s not found' % (balancer_id)
        super(LoadBalancerNotFoundError, self).__init__(code=404,
                                                        message=message,
                                                        headers=headers)


class Provider(Type):
    """
    Defines for each of the supported providers

    :cvar DUMMY: In-memory driver with scripted state transitions
    :cvar RACKSPACE: Rackspace Cloud Load Balancers
    """
    DUMMY = 'dummy'
    RACKSPACE = 'rackspace'


class State(Type):
    """
    Standard states for a loadbalancer

    :cvar RUNNING: loadbalancer is running and ready to use
    :cvar UNKNOWN: loadbalancer state is unknown
    """

    RUNNING = 'running'
    PENDING = 'pending'
    UNKNOWN = 'unknown'
    ERROR = 'error'
    DELETED = 'deleted'


class MemberCondition(Type):
    """
    Each member of a load balancer can have an associated condition
    which determines its role within the load balancer.
    """
    ENABLED = 'enabled'
    DISABLED = 'disabled'
    DRAINING = 'draining'


class VirtualIPType(Type):
    PUBLIC = 'PUBLIC'
    SERVICENET = 'SERVICENET'


class IPVersion(Type):
    IPV4 = 'IPV4'
    IPV6 = 'IPV6'
