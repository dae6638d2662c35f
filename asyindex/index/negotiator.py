import enum

from werkzeug.datastructures import MIMEAccept
from werkzeug.http import parse_accept_header

from asyindex.common.errors import NotAcceptable


class MediaType(enum.Enum):
    HTML = 'text/html'
    PLAIN = 'text/plain'
    JSON = 'application/json'

# preference order on ties
MEDIA_TYPES = [MediaType.HTML, MediaType.PLAIN, MediaType.JSON]


def negotiate(accept_header:str = None):
    """Picks the representation the client accepts best. Raises NotAcceptable."""
    if accept_header is None or accept_header.strip() == '':
        return MEDIA_TYPES[0]

    accept = parse_accept_header(accept_header, MIMEAccept)
    match = accept.best_match([mt.value for mt in MEDIA_TYPES])
    if match is None:
        raise NotAcceptable()
    return MediaType(match)
