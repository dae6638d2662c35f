import asyncio
import logging
from typing import List

from asyindex.index.models import ListingRequest, StatEntry, TemplateLocals
from asyindex.index.options import IndexOptions
from asyindex.index.resolver import resolve_path
from asyindex.index.probe import ProbeResult, probe_directory
from asyindex.index.lister import list_entries
from asyindex.index.stats import PARENT_ENTRY, gather_stats
from asyindex.index.sorter import sort_entries
from asyindex.index.negotiator import MediaType, negotiate
from asyindex.index.render import render_json, render_plain
from asyindex.index.template import read_text
from asyindex.common.errors import ListingIOError
from asyindex.unicomm.protocol.server.http.messages import HTTPRequest, HTTPResponse

logger = logging.getLogger('asyindex.index')

ALLOW = 'GET, HEAD, OPTIONS'


class ServeIndex:
    """Directory listing handler.

    handle() returns a response for requests that resolve to a directory below
    the root, None for everything else so the next handler can take over, and
    raises an HTTPError subclass when the request has to fail.
    """

    def __init__(self, options:IndexOptions):
        self.options = options

    @staticmethod
    def from_root(root:str, **kwargs):
        return ServeIndex(IndexOptions(root, **kwargs))

    async def handle(self, request:HTTPRequest):
        if request.method not in ('GET', 'HEAD'):
            status = 200 if request.method == 'OPTIONS' else 405
            return HTTPResponse.empty(status, [('Allow', ALLOW)])

        listing = ListingRequest(self.options.root_path, request.path, request.method, request.original_path)
        resolved = resolve_path(listing.root_path, listing.requested_path, listing.original_path)

        result = await probe_directory(resolved.path)
        if result is not ProbeResult.DIRECTORY:
            return None

        names = await list_entries(resolved.path, self.options.hidden, self.options.filter)
        media_type = negotiate(request.get_header('accept'))

        if media_type is MediaType.HTML:
            body = await self.render_html(names, resolved.path, resolved.display_path, resolved.show_up)
        elif media_type is MediaType.JSON:
            body = render_json(await self.sorted_stats(resolved.path, names))
        elif media_type is MediaType.PLAIN:
            body = render_plain(await self.sorted_stats(resolved.path, names))
        else:
            raise ValueError('Unknown media type %s' % media_type)

        return self.send(request, media_type, body)

    async def sorted_stats(self, path:str, names:List[str]) -> List[StatEntry]:
        entries = await gather_stats(path, names, self.options.concurrency)
        return sort_entries(entries)

    async def render_html(self, names:List[str], path:str, directory:str, show_up:bool):
        if show_up:
            names = [PARENT_ENTRY] + names

        file_list = await self.sorted_stats(path, names)
        try:
            style = await asyncio.to_thread(read_text, self.options.stylesheet)
        except OSError as e:
            raise ListingIOError(e, status=500) from e

        locals = TemplateLocals(
            directory,
            self.options.icons,
            file_list,
            path,
            style,
            self.options.view,
        )
        try:
            return await self.options.renderer.render(locals)
        except OSError as e:
            raise ListingIOError(e, status=500) from e

    def send(self, request:HTTPRequest, media_type:MediaType, body:str):
        # custom renderers may hand back surrogate escaped names
        data = body.encode('utf-8', 'replace')
        headers = [
            ('X-Content-Type-Options', 'nosniff'),
            ('Content-Type', media_type.value + '; charset=utf-8'),
            ('Content-Length', str(len(data))),
        ]
        if request.method == 'HEAD':
            data = b''
        return HTTPResponse(200, headers, data)
