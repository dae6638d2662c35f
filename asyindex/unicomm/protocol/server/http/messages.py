import h11
import copy
from urllib.parse import urlsplit
from typing import AsyncIterator, Dict, List, Tuple, Union


class HTTPRequest:
    """Server side view of a request line and its headers.

    `path` is the URL path the current handler should act on. When a handler is
    mounted below a prefix the prefix is stripped from `path`, while
    `original_path` keeps what the client sent.
    """

    def __init__(self, method:str, target:str, headers:Dict[str, List[str]] = None, http_version:str = '1.1'):
        self.method = method
        self.target = target
        self.http_version = http_version
        self.headers:Dict[str, List[str]] = headers if headers is not None else {}
        self.original_path = HTTPRequest.path_from_target(target)
        self.path = self.original_path

    @staticmethod
    def path_from_target(target:str):
        if target == '*':
            return '*'
        return urlsplit(target).path or '/'

    @staticmethod
    def from_h11(event:h11.Request):
        headers:Dict[str, List[str]] = {}
        for name, value in event.headers:
            name = name.decode('latin-1').lower()
            if name not in headers:
                headers[name] = []
            headers[name].append(value.decode('latin-1'))

        return HTTPRequest(
            event.method.decode('ascii'),
            event.target.decode('latin-1'),
            headers,
            event.http_version.decode('ascii'),
        )

    def get_header(self, name:str, default=None):
        values = self.headers.get(name.lower())
        if not values:
            return default
        return ', '.join(values)

    def mount(self, prefix:str):
        """Copy of this request with `prefix` stripped from the path, None if the path is outside the prefix."""
        prefix = prefix.rstrip('/')
        if prefix == '':
            return self
        if self.path != prefix and not self.path.startswith(prefix + '/'):
            return None
        req = copy.copy(self)
        req.path = self.path[len(prefix):] or '/'
        return req

    def __str__(self):
        t = '%s %s HTTP/%s\r\n' % (self.method, self.target, self.http_version)
        for name in self.headers:
            for value in self.headers[name]:
                t += '%s: %s\r\n' % (name, value)
        return t


class HTTPResponse:
    """A response produced by a handler. `body` is either bytes or an async iterator of bytes chunks."""

    def __init__(self, status:int = 200, headers:List[Tuple[str, str]] = None, body:Union[bytes, AsyncIterator[bytes]] = b''):
        self.status = status
        self.headers:List[Tuple[str, str]] = headers if headers is not None else []
        self.body = body

    def get_header(self, name:str, default=None):
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return default

    @property
    def is_streaming(self):
        return not isinstance(self.body, (bytes, bytearray))

    @staticmethod
    def empty(status:int, headers:List[Tuple[str, str]] = None):
        headers = list(headers) if headers is not None else []
        headers.append(('Content-Length', '0'))
        return HTTPResponse(status, headers, b'')

    def __str__(self):
        t = 'HTTPResponse %s\r\n' % self.status
        for k, v in self.headers:
            t += '%s: %s\r\n' % (k, v)
        return t
