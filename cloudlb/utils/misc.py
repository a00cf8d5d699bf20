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

import os
import binascii
from datetime import datetime

__all__ = [
    "reverse_dict",
    "lowercase_keys",
    "get_cache_busting_token",
    "iso_to_datetime",
]


def reverse_dict(dictionary):
    return dict([(value, key) for key, value in list(dictionary.items())])


def lowercase_keys(dictionary):
    return dict(((k.lower(), v) for k, v in dictionary.items()))


def get_cache_busting_token(size=8):
    """
    Return a random hex string which can be appended to GET requests so
    caching proxies never serve a stale representation.

    :param size: Number of random bytes to encode.
    :type size: ``int``

    :rtype: ``str``
    """
    return binascii.hexlify(os.urandom(size)).decode('utf-8')


def iso_to_datetime(isodate):
    date_formats = ('%Y-%m-%dT%H:%M:%SZ', '%Y-%m-%dT%H:%M:%S%z')
    date = None

    for date_format in date_formats:
        try:
            date = datetime.strptime(isodate, date_format)
        except ValueError:
            pass

        if date:
            break

    return date
