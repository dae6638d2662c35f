import os
import asyncio
import logging
from typing import Callable, List

from asyindex.common.errors import ListingIOError, PredicateError

logger = logging.getLogger('asyindex.index')

# filter(name, index, names, path) -> bool
EntryFilter = Callable[[str, int, List[str], str], bool]


def remove_hidden(names:List[str]):
    return [name for name in names if not name.startswith('.')]

def apply_filter(names:List[str], path:str, filter:EntryFilter):
    kept = []
    for index, name in enumerate(names):
        try:
            keep = filter(name, index, names, path)
        except Exception as e:
            raise PredicateError(e) from e
        if keep:
            kept.append(name)
    return kept

async def list_entries(path:str, hidden:bool = False, filter:EntryFilter = None):
    """Returns the entry names of the directory at `path`, pre-sorted lexically."""
    logger.debug('readdir "%s"', path)
    try:
        names = await asyncio.to_thread(os.listdir, path)
    except OSError as e:
        raise ListingIOError(e, status=500) from e

    if not hidden:
        names = remove_hidden(names)
    if filter is not None:
        names = apply_filter(names, path, filter)
    names.sort()
    return names
