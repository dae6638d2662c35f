import asyncio
import datetime
import email.utils
import html
import logging
from http import HTTPStatus

import h11

from asyindex._version import __version__
from asyindex.common.errors import HTTPError
from asyindex.unicomm.common.target import UniTarget
from asyindex.unicomm.common.connection import UniConnection
from asyindex.unicomm.server import UniServer
from asyindex.unicomm.protocol.server.http.chain import HandlerChain
from asyindex.unicomm.protocol.server.http.messages import HTTPRequest, HTTPResponse

logger = logging.getLogger('asyindex.http')

SERVER_IDENT = " ".join(
    [f"asyindex/{__version__}", h11.PRODUCT_ID]
).encode("ascii")


def format_date_time(dt=None):
    """Generate a RFC 7231 / RFC 9110 IMF-fixdate string"""
    if dt is None:
        dt = datetime.datetime.now(datetime.timezone.utc)
    return email.utils.format_datetime(dt, usegmt=True)


class HTTPConnectionWrapper:
    def __init__(self, client_id, stream:UniConnection, log_callback=None):
        self.log_callback = log_callback
        self.client_id = client_id
        self.stream = stream
        self.conn = h11.Connection(h11.SERVER)
        self.ident = SERVER_IDENT

    async def debug(self, *args):
        msg = [str(x) for x in args]
        msg = ' '.join(msg)
        if self.log_callback is not None:
            await self.log_callback(msg)

    async def send(self, event):
        assert type(event) is not h11.ConnectionClosed
        data = self.conn.send(event)
        try:
            await self.stream.write(data)
        except BaseException:
            # the connection is unusable after a failed write
            self.conn.send_failed()
            raise

    async def _read_from_peer(self):
        if self.conn.they_are_waiting_for_100_continue:
            await self.debug("Sending 100 Continue")
            go_ahead = h11.InformationalResponse(
                status_code=100, headers=self.basic_headers()
            )
            await self.send(go_ahead)
        try:
            data = await self.stream.read_one()
        except (OSError, asyncio.TimeoutError) as exc:
            await self.debug('[%s] Error reading from peer: %r' % (self.client_id, exc))
            # peer is gone, h11 treats empty data as EOF
            data = b""
        self.conn.receive_data(data)

    async def next_event(self):
        while True:
            event = self.conn.next_event()
            if event is h11.NEED_DATA:
                await self._read_from_peer()
                continue
            return event

    async def shutdown_and_clean_up(self):
        await self.stream.close()

    def basic_headers(self):
        # HTTP requires these headers in all responses
        return [
            ("Date", format_date_time().encode("ascii")),
            ("Server", self.ident),
        ]


class HTTPServerHandler:
    """Turns h11 request events into HTTPRequest objects, runs them through
    the handler chain and writes back whatever the chain produced."""

    def __init__(self, chain:HandlerChain, log_callback=None):
        self.chain = chain
        self.log_callback = log_callback
        self._wrapper:HTTPConnectionWrapper = None

    async def print(self, msg):
        if self.log_callback is not None:
            await self.log_callback(msg)

    async def _discard_body(self, wrapper:HTTPConnectionWrapper):
        while True:
            event = await wrapper.next_event()
            if type(event) in (h11.EndOfMessage, h11.ConnectionClosed):
                return

    async def _process_request(self, wrapper:HTTPConnectionWrapper, event:h11.Request):
        self._wrapper = wrapper
        request = HTTPRequest.from_h11(event)
        await self.print('[%s] Request: %s' % (wrapper.client_id, request))
        await self._discard_body(wrapper)

        try:
            response = await self.chain.handle(request)
            if response is None:
                response = self.error_response(404)
        except HTTPError as e:
            logger.debug('%s %s failed: %s' % (request.method, request.target, e))
            response = self.error_response(e.status, e.message)
        except Exception:
            logger.exception('Error while handling %s %s' % (request.method, request.target))
            response = self.error_response(500)

        logger.info('[%s] "%s %s HTTP/%s" %s' % (
            wrapper.client_id, request.method, request.target, request.http_version, response.status
        ))
        await self.send_response(request, response)

    @staticmethod
    def error_response(status_code:int, message:str = None):
        phrase = HTTPStatus(status_code).phrase
        if message is None:
            message = phrase
        body = f"<html><body><h1>Error {status_code}</h1><p>{html.escape(message)}</p></body></html>".encode('utf-8')
        headers = [
            ("Content-Type", "text/html; charset=utf-8"),
            ("Content-Length", str(len(body))),
            ("X-Content-Type-Options", "nosniff"),
        ]
        return HTTPResponse(status_code, headers, body)

    async def send_response(self, request:HTTPRequest, response:HTTPResponse):
        headers = self._wrapper.basic_headers()
        for name, value in response.headers:
            headers.append((name.encode('latin-1'), str(value).encode('latin-1')))

        await self._wrapper.send(h11.Response(status_code=response.status, headers=headers))
        if response.is_streaming:
            try:
                if request.method != 'HEAD':
                    async for chunk in response.body:
                        if chunk:
                            await self._wrapper.send(h11.Data(data=chunk))
            finally:
                if hasattr(response.body, 'aclose'):
                    await response.body.aclose()
        elif response.body and request.method != 'HEAD':
            await self._wrapper.send(h11.Data(data=response.body))
        await self._wrapper.send(h11.EndOfMessage())

    async def _serve_error(self, status_code:int, message:str = None):
        """Sends an error page outside of the normal request flow (protocol errors)."""
        response = self.error_response(status_code, message)
        headers = self._wrapper.basic_headers()
        for name, value in response.headers:
            headers.append((name, value.encode('ascii')))
        headers.append(("Connection", b"close"))
        await self._wrapper.send(h11.Response(status_code=status_code, headers=headers))
        await self._wrapper.send(h11.Data(data=response.body))
        await self._wrapper.send(h11.EndOfMessage())


class HTTPServer:
    def __init__(self, client_handler, target:UniTarget, log_callback=None):
        """`client_handler` is a factory returning a new HTTPServerHandler for each connection."""
        self.log_callback = log_callback
        self.target = target
        self.client_handler = client_handler

        self.server:UniServer = None
        self.clients = {}
        self.id_counter = 0
        self.__main_task = None
        self.started_evt = asyncio.Event()

    async def debug(self, *args):
        msg = [str(x) for x in args]
        msg = ' '.join(msg)
        if self.log_callback is not None:
            await self.log_callback(msg)

    @property
    def bound_port(self):
        if self.server is None:
            return None
        return self.server.bound_port

    async def __aenter__(self):
        self.__main_task = asyncio.create_task(self.serve())
        started = asyncio.create_task(self.started_evt.wait())
        await asyncio.wait([started, self.__main_task], return_when=asyncio.FIRST_COMPLETED)
        if not self.started_evt.is_set():
            started.cancel()
            _, err = self.__main_task.result()
            raise err
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.terminate()

    async def terminate(self):
        for task in list(self.clients.values()):
            task.cancel()
        self.clients = {}
        if self.__main_task is not None:
            self.__main_task.cancel()
            try:
                await self.__main_task
            except asyncio.CancelledError:
                pass
            self.__main_task = None
        if self.server is not None:
            await self.server.close()

    async def __handle_connection(self, client_id:int, connection:UniConnection):
        wrapper = HTTPConnectionWrapper(client_id, connection, log_callback=self.log_callback)
        handler = self.client_handler()
        try:
            await self.debug('Server: New client connected with id %s from %s' % (client_id, connection.get_extra_info('peername')))
            while True:
                if wrapper.conn.states == {h11.CLIENT: h11.DONE, h11.SERVER: h11.DONE}:
                    wrapper.conn.start_next_cycle()
                    continue

                if wrapper.conn.states != {h11.CLIENT: h11.IDLE, h11.SERVER: h11.IDLE}:
                    await self.debug('[%s] Server: Connection state not idle %s' % (client_id, wrapper.conn.states))
                    break

                try:
                    event = await wrapper.next_event()
                except h11.RemoteProtocolError as e:
                    await self.debug('[%s] Server: protocol error %s' % (client_id, e))
                    if wrapper.conn.our_state not in {h11.DONE, h11.MUST_CLOSE, h11.CLOSED, h11.ERROR}:
                        handler._wrapper = wrapper
                        await handler._serve_error(e.error_status_hint, str(e))
                    break

                if type(event) is h11.Request:
                    await handler._process_request(wrapper, event)
                    continue
                if type(event) is h11.ConnectionClosed:
                    break
                await self.debug('[%s] Server: unexpected event type %s' % (client_id, type(event)))
                break

        except asyncio.CancelledError:
            raise
        except (h11.LocalProtocolError, OSError) as e:
            await self.debug('[%s] Server: connection error %r' % (client_id, e))
        except Exception:
            logger.exception('Unhandled error on connection %s' % client_id)
        finally:
            self.clients.pop(client_id, None)
            await wrapper.shutdown_and_clean_up()
            await self.debug('[%s] Server: Client disconnected' % client_id)

    async def serve(self):
        try:
            self.server = UniServer(self.target)
            await self.server.start()
            self.started_evt.set()
            await self.debug('Server: listening on %s:%s' % (self.server.bound_ip, self.server.bound_port))
            async for connection in self.server.serve():
                client_id = self.id_counter
                self.id_counter += 1
                self.clients[client_id] = asyncio.create_task(self.__handle_connection(client_id, connection))
            return True, None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception('HTTP server failed')
            return None, e
