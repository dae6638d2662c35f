from typing import List, Tuple

from asyindex.unicomm.protocol.server.http.messages import HTTPRequest, HTTPResponse


class HandlerChain:
    """Ordered list of request handlers.

    A handler is any object with an async `handle(request)` method returning an
    HTTPResponse, or None to let the next handler try. Handlers can be mounted
    below a URL prefix, in which case they see the request path with the prefix
    stripped.
    """

    def __init__(self):
        self.handlers:List[Tuple[str, object]] = []

    def use(self, handler, prefix:str = '/'):
        if not hasattr(handler, 'handle'):
            raise TypeError('handler must have a handle() method')
        if not prefix.startswith('/'):
            raise ValueError('mount prefix must start with "/"')
        self.handlers.append((prefix, handler))
        return self

    def __len__(self):
        return len(self.handlers)

    async def handle(self, request:HTTPRequest) -> HTTPResponse:
        for prefix, handler in self.handlers:
            mounted = request.mount(prefix)
            if mounted is None:
                continue
            response = await handler.handle(mounted)
            if response is not None:
                return response
        return None
