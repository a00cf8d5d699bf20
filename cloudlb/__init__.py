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
cloudlb provides a client for cloud load balancers which can block until
a balancer converges to a desired state.

:var __version__: Current version of cloudlb
"""

import os
import codecs
import atexit
import logging

__all__ = [
    '__version__',
    'enable_debug'
]

__version__ = '0.3.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())


def enable_debug(fo):
    """
    Enable library wide debugging to a file-like object.

    Every HTTP request is written to ``fo`` as an equivalent ``curl``
    command, followed by the raw response. Debug records of the
    ``cloudlb`` loggers (e.g. each poll attempt) are written there too.

    :param fo: Where to append debugging information
    :type fo: File like object, only write operations are used.
    """
    from cloudlb.common.base import Connection
    from cloudlb.utils.loggingconnection import LoggingConnection

    LoggingConnection.log = fo
    Connection.conn_class = LoggingConnection

    handler = logging.StreamHandler(fo)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s'))
    logger = logging.getLogger(__name__)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    # Ensure the file handle is closed on exit
    def close_file(fd):
        try:
            fd.close()
        except (IOError, ValueError):
            pass

    atexit.register(close_file, fo)


def _init_once():
    """
    Utility function that is ran once on Library import.

    This checks for the CLOUDLB_DEBUG environment variable, which if it exists
    is where we will log debug information about the provider transports.
    """
    path = os.getenv('CLOUDLB_DEBUG')
    if path:
        mode = 'a'

        # Opening those files in append mode will throw "illegal seek"
        # exception there.
        if path in ['/dev/stderr', '/dev/stdout']:
            mode = 'w'

        fo = codecs.open(path, mode, encoding='utf8')
        enable_debug(fo)


_init_once()
