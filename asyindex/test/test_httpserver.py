import ssl
import asyncio

import h11
import pytest
import pytest_asyncio

from asyindex.common.errors import Forbidden
from asyindex.index import IndexOptions
from asyindex.examples.indexserver import build_chain
from asyindex.unicomm.common.target import UniTarget, UniProto
from asyindex.unicomm.common.unissl import UniSSL
from asyindex.unicomm.protocol.server.http.chain import HandlerChain
from asyindex.unicomm.protocol.server.http.httpserver import HTTPServer, HTTPServerHandler
from asyindex.unicomm.protocol.server.http.messages import HTTPRequest, HTTPResponse


class ClientResponse:
    def __init__(self, event:h11.Response, body:bytes):
        self.status = event.status_code
        self.headers = {k.decode('latin-1').lower(): v.decode('latin-1') for k, v in event.headers}
        self.body = body


async def read_response(conn:h11.Connection, reader:asyncio.StreamReader):
    response = None
    body = b''
    while True:
        event = conn.next_event()
        if event is h11.NEED_DATA:
            conn.receive_data(await reader.read(65536))
            continue
        if type(event) is h11.Response:
            response = event
        elif type(event) is h11.Data:
            body += event.data
        elif type(event) in (h11.EndOfMessage, h11.ConnectionClosed):
            break
    return ClientResponse(response, body)

async def fetch(port:int, target:str, method:str = 'GET', headers = None, ssl_ctx = None):
    reader, writer = await asyncio.open_connection('127.0.0.1', port, ssl=ssl_ctx)
    try:
        conn = h11.Connection(h11.CLIENT)
        all_headers = [('Host', 'localhost'), ('Connection', 'close')] + list(headers or [])
        writer.write(conn.send(h11.Request(method=method, target=target, headers=all_headers)))
        writer.write(conn.send(h11.EndOfMessage()))
        await writer.drain()
        return await read_response(conn, reader)
    finally:
        writer.close()


def make_server(chain:HandlerChain, protocol:UniProto = UniProto.SERVER_TCP, ssl_ctx:UniSSL = None):
    target = UniTarget('127.0.0.1', 0, protocol, ssl_ctx=ssl_ctx)
    return HTTPServer(lambda: HTTPServerHandler(chain), target)


@pytest_asyncio.fixture
async def server(tree):
    async with make_server(build_chain(IndexOptions(tree))) as srv:
        yield srv


class TestIndexServer:
    @pytest.mark.asyncio
    async def test_html_listing(self, server):
        response = await fetch(server.bound_port, '/')
        assert response.status == 200
        assert response.headers['content-type'] == 'text/html; charset=utf-8'
        assert response.headers['x-content-type-options'] == 'nosniff'
        assert 'date' in response.headers
        assert response.headers['server'].startswith('asyindex/')
        assert b'<title>listing directory /</title>' in response.body
        assert int(response.headers['content-length']) == len(response.body)

    @pytest.mark.asyncio
    async def test_json_listing(self, server):
        response = await fetch(server.bound_port, '/', headers=[('Accept', 'application/json')])
        assert response.status == 200
        assert response.body == b'["A","sub dir","b.txt"]'

    @pytest.mark.asyncio
    async def test_head(self, server):
        response = await fetch(server.bound_port, '/', method='HEAD', headers=[('Accept', 'text/plain')])
        assert response.status == 200
        assert response.body == b''
        assert response.headers['content-length'] == str(len(b'A\nsub dir\nb.txt\n'))

    @pytest.mark.asyncio
    async def test_static_file(self, server):
        response = await fetch(server.bound_port, '/sub%20dir/file%20%231.txt')
        assert response.status == 200
        assert response.headers['content-type'] == 'text/plain'
        assert response.body == b'one'

    @pytest.mark.asyncio
    async def test_not_found(self, server):
        response = await fetch(server.bound_port, '/missing')
        assert response.status == 404
        assert b'Error 404' in response.body

    @pytest.mark.asyncio
    async def test_traversal(self, server):
        response = await fetch(server.bound_port, '/../../etc/')
        assert response.status == 403

    @pytest.mark.asyncio
    async def test_bad_request(self, server):
        response = await fetch(server.bound_port, '/%zz/')
        assert response.status == 400

    @pytest.mark.asyncio
    async def test_not_acceptable(self, server):
        response = await fetch(server.bound_port, '/', headers=[('Accept', 'application/xml')])
        assert response.status == 406

    @pytest.mark.asyncio
    async def test_options(self, server):
        response = await fetch(server.bound_port, '/', method='OPTIONS')
        assert response.status == 200
        assert response.headers['allow'] == 'GET, HEAD, OPTIONS'

    @pytest.mark.asyncio
    async def test_keep_alive(self, server):
        reader, writer = await asyncio.open_connection('127.0.0.1', server.bound_port)
        try:
            conn = h11.Connection(h11.CLIENT)
            bodies = []
            for accept in ['text/plain', 'application/json']:
                headers = [('Host', 'localhost'), ('Accept', accept)]
                writer.write(conn.send(h11.Request(method='GET', target='/', headers=headers)))
                writer.write(conn.send(h11.EndOfMessage()))
                await writer.drain()
                response = await read_response(conn, reader)
                bodies.append(response.body)
                conn.start_next_cycle()
            assert bodies == [b'A\nsub dir\nb.txt\n', b'["A","sub dir","b.txt"]']
        finally:
            writer.close()

    @pytest.mark.asyncio
    async def test_protocol_error(self, server):
        reader, writer = await asyncio.open_connection('127.0.0.1', server.bound_port)
        try:
            writer.write(b'this is not http\r\n\r\n')
            await writer.drain()
            data = await asyncio.wait_for(reader.read(65536), timeout=5)
            assert data.startswith(b'HTTP/1.1 400')
        finally:
            writer.close()

    @pytest.mark.asyncio
    async def test_log_callback_reports_peer(self, tree):
        messages = []

        async def log_callback(msg):
            messages.append(msg)

        target = UniTarget('127.0.0.1', 0, UniProto.SERVER_TCP)
        chain = build_chain(IndexOptions(tree))
        async with HTTPServer(lambda: HTTPServerHandler(chain), target, log_callback=log_callback) as srv:
            response = await fetch(srv.bound_port, '/')
        assert response.status == 200
        connected = [msg for msg in messages if 'New client connected' in msg]
        assert len(connected) == 1
        assert "from ('127.0.0.1'," in connected[0]


class Boom:
    async def handle(self, request):
        raise RuntimeError('boom')

class Deny:
    async def handle(self, request):
        raise Forbidden('no way')

class Echo:
    def __init__(self, name):
        self.name = name

    async def handle(self, request:HTTPRequest):
        body = ('%s %s %s' % (self.name, request.path, request.original_path)).encode()
        return HTTPResponse(200, [('Content-Length', str(len(body)))], body)

class Skip:
    async def handle(self, request):
        return None


class TestHandlerChain:
    @pytest.mark.asyncio
    async def test_first_response_wins(self):
        chain = HandlerChain().use(Skip()).use(Echo('first')).use(Echo('second'))
        response = await chain.handle(HTTPRequest('GET', '/x'))
        assert response.body == b'first /x /x'

    @pytest.mark.asyncio
    async def test_mount_prefix(self):
        chain = HandlerChain().use(Echo('mounted'), '/files').use(Echo('root'))
        assert (await chain.handle(HTTPRequest('GET', '/files/a'))).body == b'mounted /a /files/a'
        assert (await chain.handle(HTTPRequest('GET', '/files'))).body == b'mounted / /files'
        assert (await chain.handle(HTTPRequest('GET', '/filesx'))).body == b'root /filesx /filesx'

    @pytest.mark.asyncio
    async def test_all_fall_through(self):
        assert await HandlerChain().use(Skip()).handle(HTTPRequest('GET', '/')) is None

    def test_rejects_bad_handlers(self):
        with pytest.raises(TypeError):
            HandlerChain().use(object())
        with pytest.raises(ValueError):
            HandlerChain().use(Skip(), 'files')

    @pytest.mark.asyncio
    async def test_unhandled_exception_is_500(self):
        async with make_server(HandlerChain().use(Boom())) as srv:
            response = await fetch(srv.bound_port, '/')
        assert response.status == 500
        assert b'boom' not in response.body

    @pytest.mark.asyncio
    async def test_http_error_message(self):
        async with make_server(HandlerChain().use(Deny())) as srv:
            response = await fetch(srv.bound_port, '/')
        assert response.status == 403
        assert b'no way' in response.body


class TestTLSServer:
    @pytest.mark.asyncio
    async def test_selfsigned(self, tree):
        ssl_settings = UniSSL.get_selfsigned('127.0.0.1')
        client_ctx = ssl.create_default_context()
        client_ctx.check_hostname = False
        client_ctx.verify_mode = ssl.CERT_NONE

        chain = build_chain(IndexOptions(tree))
        async with make_server(chain, UniProto.SERVER_SSL_TCP, ssl_settings) as srv:
            response = await fetch(srv.bound_port, '/', headers=[('Accept', 'text/plain')], ssl_ctx=client_ctx)
        assert response.status == 200
        assert response.body == b'A\nsub dir\nb.txt\n'
