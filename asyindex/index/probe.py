import os
import enum
import stat
import asyncio
import logging

from asyindex.common.errors import ListingIOError

logger = logging.getLogger('asyindex.index')


class ProbeResult(enum.Enum):
    NOT_FOUND = 1
    NOT_A_DIRECTORY = 2
    DIRECTORY = 3


async def probe_directory(path:str):
    """Tells whether `path` is a directory we should list.

    NOT_FOUND and NOT_A_DIRECTORY mean the request belongs to some other handler.
    Other stat failures raise ListingIOError (414 for too long names, 500 otherwise).
    """
    logger.debug('stat "%s"', path)
    try:
        st = await asyncio.to_thread(os.stat, path)
    except FileNotFoundError:
        return ProbeResult.NOT_FOUND
    except OSError as e:
        raise ListingIOError(e) from e

    if not stat.S_ISDIR(st.st_mode):
        return ProbeResult.NOT_A_DIRECTORY
    return ProbeResult.DIRECTORY
