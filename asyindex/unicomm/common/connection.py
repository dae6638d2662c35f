import asyncio


class UniConnection:
	"""A single accepted client stream."""
	def __init__(self, reader:asyncio.StreamReader, writer:asyncio.StreamWriter, buffer_size:int = 65536, timeout:int = None):
		self.reader = reader
		self.writer = writer
		self.buffer_size = buffer_size
		self.timeout = timeout
		self.closing = False

	def get_extra_info(self, name, default=None):
		if self.writer is not None:
			return self.writer.get_extra_info(name, default)
		return default

	async def close(self):
		if self.closing is True:
			return
		self.closing = True
		try:
			if self.writer is not None:
				self.writer.close()
				await self.writer.wait_closed()
		except (ConnectionError, OSError):
			pass

	async def write(self, data:bytes):
		if not data:
			return
		self.writer.write(data)
		await self.writer.drain()

	async def read_one(self):
		"""Returns the next chunk of data, b'' once the peer has closed its side."""
		if self.closing is True:
			return b''
		if self.timeout is None:
			return await self.reader.read(self.buffer_size)
		return await asyncio.wait_for(self.reader.read(self.buffer_size), timeout = self.timeout)

