import os
import stat
import asyncio
import datetime
import logging
import mimetypes

from asyindex.index.resolver import normalize_root, resolve_path
from asyindex.unicomm.protocol.server.http.messages import HTTPRequest, HTTPResponse
from asyindex.unicomm.protocol.server.http.httpserver import format_date_time

logger = logging.getLogger('asyindex.http')

CHUNK_SIZE = 512 * 1024


class StaticFileHandler:
    """Serves regular files below `root`. Anything that is not a readable
    regular file is left to the next handler."""

    def __init__(self, root:str, chunk_size:int = CHUNK_SIZE):
        self.root_path = normalize_root(root)
        self.chunk_size = chunk_size

    @staticmethod
    def get_mime_type(filepath:str):
        mime_type, _ = mimetypes.guess_type(filepath)
        return mime_type or 'application/octet-stream'

    async def read_chunks(self, fh):
        try:
            while True:
                chunk = await asyncio.to_thread(fh.read, self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            fh.close()

    async def handle(self, request:HTTPRequest):
        if request.method not in ('GET', 'HEAD'):
            return None

        resolved = resolve_path(self.root_path, request.path, request.original_path)
        try:
            st = await asyncio.to_thread(os.stat, resolved.path)
        except (FileNotFoundError, NotADirectoryError):
            return None
        if not stat.S_ISREG(st.st_mode):
            return None

        logger.debug('serving file "%s"' % resolved.path)
        headers = [
            ('Content-Type', self.get_mime_type(resolved.path)),
            ('Content-Length', str(st.st_size)),
            ('Last-Modified', format_date_time(
                datetime.datetime.fromtimestamp(st.st_mtime, datetime.timezone.utc)
            )),
        ]
        if request.method == 'HEAD':
            return HTTPResponse(200, headers, b'')

        fh = await asyncio.to_thread(open, resolved.path, 'rb')
        return HTTPResponse(200, headers, self.read_chunks(fh))
