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
from urllib.parse import urlencode, urlparse

import cloudlb

from cloudlb.common.exceptions import exception_from_message
from cloudlb.common.types import CloudLBError, MalformedResponseError
from cloudlb.http import CloudLBConnection
from cloudlb.utils.misc import lowercase_keys
from cloudlb.utils.retry import Retry

__all__ = [
    'Response',
    'JsonResponse',
    'Connection',
    'ConnectionKey',
    'BaseDriver',
]


class Response(object):
    """
    A base Response class to derive from.
    """

    # Response status code
    status = 200
    # Response headers
    headers = {}

    # Raw response body
    body = None

    # Parsed response body
    object = None

    error = None  # Reason returned by the server.
    connection = None  # Parent connection class
    parse_zero_length_body = False

    def __init__(self, response, connection):
        """
        :param response: HTTP response object. (optional)
        :type response: :class:`requests.Response`

        :param connection: Parent connection object.
        :type connection: :class:`.Connection`
        """
        self.connection = connection

        # http.client In Python 3 doesn't automatically lowercase the header
        # names
        self.headers = lowercase_keys(dict(response.headers))
        self.error = response.reason
        self.status = response.status_code
        self.request = response.request

        self.body = response.text.strip() \
            if response.text is not None and hasattr(response.text, 'strip') \
            else ''

        if not self.success():
            raise exception_from_message(code=self.status,
                                         message=self.parse_error(),
                                         headers=self.headers)

        self.object = self.parse_body()

    def parse_body(self):
        """
        Parse response body.

        Override in a provider's subclass.

        :return: Parsed body.
        :rtype: ``str``
        """
        return self.body if self.body is not None else ''

    def parse_error(self):
        """
        Parse the error messages.

        Override in a provider's subclass.

        :return: Parsed error.
        :rtype: ``str``
        """
        return self.body

    def success(self):
        """
        Determine if our request was successful.

        The meaning of this can be arbitrary; did we receive OK status? Did
        the node get created? Were we authenticated?

        :rtype: ``bool``
        :return: ``True`` or ``False``
        """
        return self.status in (200, 201)


class JsonResponse(Response):
    """
    A Base JSON Response class to derive from.
    """

    def parse_body(self):
        if len(self.body) == 0 and not self.parse_zero_length_body:
            return self.body

        try:
            body = json.loads(self.body)
        except ValueError as e:
            raise MalformedResponseError(
                'Failed to parse JSON',
                body=self.body,
                driver=self.connection.driver) from e
        return body

    parse_error = parse_body


class Connection(object):
    """
    A Base Connection class to derive from.
    """
    conn_class = CloudLBConnection

    responseCls = Response
    connection = None
    host = '127.0.0.1'
    port = 443
    timeout = None
    secure = 1
    driver = None
    action = None

    def __init__(self, secure=True, host=None, port=None, url=None,
                 timeout=None, proxy_url=None, retry_delay=None,
                 backoff=None):
        self.secure = secure and 1 or 0
        self.ua = []

        self.request_path = ''

        if host:
            self.host = host

        if port is not None:
            self.port = port
        else:
            if self.secure == 1:
                self.port = 443
            else:
                self.port = 80

        if url:
            (self.host, self.port, self.secure,
             self.request_path) = self._tuple_from_url(url)

        self.timeout = timeout or self.timeout
        self.retry_delay = retry_delay
        self.backoff = backoff
        self.proxy_url = proxy_url

    def _tuple_from_url(self, url):
        secure = 1
        port = None
        (scheme, netloc, request_path, param,
         query, fragment) = urlparse(url)

        if scheme not in ['http', 'https']:
            raise CloudLBError('Invalid scheme: %s in url %s' % (scheme, url))

        if scheme == "http":
            secure = 0

        if ":" in netloc:
            netloc, port = netloc.rsplit(":")
            port = int(port)

        if not port:
            if scheme == "http":
                port = 80
            else:
                port = 443

        host = netloc
        port = int(port)

        return (host, port, secure, request_path.rstrip('/'))

    def connect(self, host=None, port=None):
        """
        Establish a connection with the API server.

        :type host: ``str``
        :param host: Optional host to override our default

        :type port: ``int``
        :param port: Optional port to override our default

        :returns: A connection
        """
        secure = self.secure
        host = host or self.host
        port = port or self.port

        kwargs = {'host': host, 'port': int(port)}

        if self.timeout:
            kwargs.update({'timeout': self.timeout})

        if self.proxy_url:
            kwargs.update({'proxy_url': self.proxy_url})

        connection = self.conn_class(secure=secure, **kwargs)
        self.connection = connection

    def _user_agent(self):
        user_agent_suffix = ' '.join(['(%s)' % x for x in self.ua])

        if self.driver:
            user_agent = 'cloudlb/%s (%s) %s' % (
                cloudlb.__version__,
                self.driver.name, user_agent_suffix)
        else:
            user_agent = 'cloudlb/%s %s' % (
                cloudlb.__version__, user_agent_suffix)

        return user_agent.strip()

    def user_agent_append(self, token):
        """
        Append a token to a user agent string.

        Users of the library should call this to uniquely identify their
        requests to a provider.

        :type token: ``str``
        :param token: Token to add to the user agent.
        """
        self.ua.append(token)

    def request(self, action, params=None, data=None, headers=None,
                method='GET', stream=False):
        """
        Request a given `action`.

        Basically a wrapper around the connection
        object's `request` that does some helpful pre-processing.

        :type action: ``str``
        :param action: A path. This can include arguments. If included,
            any extra parameters are appended to the existing ones.

        :type params: ``dict`` or ``list`` of ``tuple``
        :param params: Optional mapping of additional parameters to send. If
            None, leave as an empty ``dict``. A list of tuples can be used
            when the same parameter has to be sent more than once.

        :type data: ``dict`` or ``str``
        :param data: A body of data to send with the request.

        :type headers: ``dict``
        :param headers: Extra headers to add to the request
            None, leave as an empty ``dict``.

        :type method: ``str``
        :param method: An HTTP method such as "GET" or "POST".

        :type stream: ``bool``
        :param stream: True to return an iterator in Response.iter_content
                    and allow streaming of the response data
                    (for downloading large files)

        :return: An :class:`Response` instance.
        :rtype: :class:`Response` instance
        """
        if params is None:
            params = {}
        if headers is None:
            headers = {}

        action = self.morph_action_hook(action)
        self.action = action
        self.method = method

        # Extend default parameters
        params = self.add_default_params(params)

        # Extend default headers
        headers = self.add_default_headers(headers)

        # We always send a user-agent header
        headers.update({'User-Agent': self._user_agent()})

        # Indicate that we support gzip and deflate compression
        headers.update({'Accept-Encoding': 'gzip,deflate'})

        # Encode data if necessary
        if data is not None:
            data = self.encode_data(data)

        params, headers = self.pre_connect_hook(params, headers)

        if params:
            url = '?'.join((action, urlencode(params, doseq=True)))
        else:
            url = action

        # IF connection has not yet been established
        if self.connection is None:
            self.connect()

        request_to_be_executed = self._make_request
        if self.retry_delay is not None:
            retry_request = Retry(timeout=self.timeout,
                                  retry_delay=self.retry_delay,
                                  backoff=self.backoff)
            request_to_be_executed = retry_request(self._make_request)

        return request_to_be_executed(method=method, url=url, body=data,
                                      headers=headers, stream=stream)

    def _make_request(self, method, url, body, headers, stream):
        self.connection.request(method=method, url=url, body=body,
                                headers=headers, stream=stream)

        return self.responseCls(response=self.connection.getresponse(),
                                connection=self)

    def morph_action_hook(self, action):
        return self.request_path + action

    def add_default_params(self, params):
        """
        Adds default parameters (such as API key, version, etc.)
        to the passed `params`

        Should return a dictionary.
        """
        return params

    def add_default_headers(self, headers):
        """
        Adds default headers (such as Authorization, X-Foo-Bar)
        to the passed `headers`

        Should return a dictionary.
        """
        return headers

    def pre_connect_hook(self, params, headers):
        """
        A hook which is called before connecting to the remote server.
        This hook can perform a final manipulation on the params, headers and
        url parameters.

        :type params: ``dict``
        :param params: Request parameters.

        :type headers: ``dict``
        :param headers: Request headers.
        """
        return params, headers

    def encode_data(self, data):
        """
        Encode body data.

        Override in a provider's subclass.
        """
        return data


class ConnectionKey(Connection):
    """
    Base connection class which accepts a single ``key`` argument.
    """
    def __init__(self, key, secure=True, host=None, port=None, url=None,
                 timeout=None, proxy_url=None, retry_delay=None,
                 backoff=None):
        """
        Initialize `user_id` and `key`; set `secure` to an ``int`` based on
        passed value.
        """
        super(ConnectionKey, self).__init__(secure=secure, host=host,
                                            port=port, url=url,
                                            timeout=timeout,
                                            proxy_url=proxy_url,
                                            retry_delay=retry_delay,
                                            backoff=backoff)
        self.key = key


class BaseDriver(object):
    """
    Base driver class from which other classes can inherit from.
    """

    name = None
    connectionCls = ConnectionKey

    def __init__(self, key, secret=None, secure=True, host=None, port=None,
                 **kwargs):
        """
        :param    key:    API key or username to be used (required)
        :type     key:    ``str``

        :param    secret: Secret password to be used (required)
        :type     secret: ``str``

        :param    secure: Whether to use HTTPS or HTTP. Note: Some providers
                ignore this argument.
        :type     secure: ``bool``

        :param    host: Override hostname used for connections.
        :type     host: ``str``

        :param    port: Override port used for connections.
        :type     port: ``int``

        :keyword  timeout: Per-request socket timeout in seconds.
        :type     timeout: ``int``

        :keyword  proxy_url: HTTP(S) proxy to send requests through.
        :type     proxy_url: ``str``

        :keyword  retry_delay: Enable retrying of rate limited and transient
                  errors, sleeping this many seconds between attempts.
        :type     retry_delay: ``float``

        :keyword  backoff: Multiplier applied to ``retry_delay`` after each
                  attempt.
        :type     backoff: ``float``
        """
        self.key = key
        self.secret = secret
        self.secure = secure
        args = [self.key]

        if self.secret is not None:
            args.append(self.secret)

        args.append(secure)

        conn_kwargs = self._ex_connection_class_kwargs()
        conn_kwargs.update({
            'host': host,
            'port': port,
            'timeout': kwargs.pop('timeout', None),
            'proxy_url': kwargs.pop('proxy_url', None),
            'retry_delay': kwargs.pop('retry_delay', None),
            'backoff': kwargs.pop('backoff', None),
        })

        self.connection = self.connectionCls(*args, **conn_kwargs)
        self.connection.driver = self
        self.connection.connect()

    def _ex_connection_class_kwargs(self):
        """
        Return extra connection keyword arguments which are passed to the
        Connection class constructor.
        """
        return {}
