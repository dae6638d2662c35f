import os
import re
import logging
from urllib.parse import unquote

from asyindex.common.errors import BadRequest, Forbidden
from asyindex.index.models import ResolvedPath

logger = logging.getLogger('asyindex.index')

_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def with_sep(path:str):
    if path.endswith(os.sep):
        return path
    return path + os.sep

def normalize_root(root:str):
    """Absolute, normalized root directory terminated by a separator."""
    if not root:
        raise TypeError('root path required')
    return with_sep(os.path.normpath(os.path.abspath(root)))

def decode_url_path(url_path:str):
    """Percent-decodes a URL path. Malformed escapes are a BadRequest.

    Bytes that are not valid UTF-8 are surrogate escaped the same way
    os.listdir returns such names, so links to them resolve.
    """
    if _BAD_ESCAPE.search(url_path) is not None:
        raise BadRequest('Malformed percent-encoding in path')
    return unquote(url_path, encoding='utf-8', errors='surrogateescape')

def resolve_path(root_path:str, url_path:str, original_path:str = None):
    """Maps an untrusted URL path onto the filesystem below `root_path`.

    `root_path` must come from normalize_root. `original_path` is the URL path
    before any mount prefix was stripped, it is only used for display.
    Raises BadRequest or Forbidden, never touches the filesystem.
    """
    requested = decode_url_path(url_path)
    if original_path is None or original_path == url_path:
        display_path = requested
    else:
        display_path = decode_url_path(original_path)

    path = os.path.normpath(os.path.join(root_path, requested.lstrip('/')))

    if '\0' in path:
        raise BadRequest('Path contains a NUL byte')

    if (path + os.sep)[:len(root_path)] != root_path:
        logger.debug('malicious path "%s"', path)
        raise Forbidden()

    show_up = with_sep(os.path.normpath(os.path.abspath(path))) != root_path
    return ResolvedPath(path, display_path, show_up)
