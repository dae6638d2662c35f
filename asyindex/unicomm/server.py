import asyncio

from asyindex.unicomm.common.target import UniTarget, UniProto
from asyindex.unicomm.common.connection import UniConnection
from asyindex.unicomm import logger


class UniServer:
	"""Accepts TCP (or TLS) connections on `target` and hands them out through serve()."""
	def __init__(self, target:UniTarget, buffer_size:int = 65536):
		self.target = target
		self.buffer_size = buffer_size
		self.connection_queue = asyncio.Queue()
		self.started_evt = asyncio.Event()
		self.server = None
		self.bound_ip = None
		self.bound_port = None

	async def __handle_connection(self, reader, writer):
		connection = UniConnection(reader, writer, self.buffer_size, self.target.timeout)
		await self.connection_queue.put(connection)

	async def start(self):
		if self.server is not None:
			return self.server

		ssl_ctx = None
		if self.target.protocol == UniProto.SERVER_SSL_TCP:
			ssl_ctx = self.target.get_ssl_context()
		elif self.target.protocol != UniProto.SERVER_TCP:
			raise Exception('Unknown protocol "%s"' % self.target.protocol)

		self.server = await asyncio.start_server(
			self.__handle_connection,
			self.target.get_ip_or_hostname(),
			self.target.port,
			ssl = ssl_ctx,
		)
		sockname = self.server.sockets[0].getsockname()
		self.bound_ip, self.bound_port = sockname[0], sockname[1]
		logger.debug('Listening on %s:%s' % (self.bound_ip, self.bound_port))
		self.started_evt.set()
		return self.server

	async def close(self):
		if self.server is None:
			return
		self.server.close()
		await self.server.wait_closed()
		self.server = None

	async def serve(self):
		try:
			server = await self.start()
			while server.is_serving():
				connection = await self.connection_queue.get()
				yield connection
		finally:
			await self.close()
