import os
import asyncio
import logging
from typing import Callable, List

from asyindex.common.errors import ListingIOError
from asyindex.index.models import Metadata, StatEntry

logger = logging.getLogger('asyindex.index')

PARENT_ENTRY = '..'
DEFAULT_CONCURRENCY = 10


async def gather_stats(path:str, names:List[str], concurrency:int = DEFAULT_CONCURRENCY, stat_func:Callable = os.stat):
    """Stats every entry of `names` inside `path` with at most `concurrency`
    lookups in flight. The result keeps the order of `names`.

    Entries that disappeared since listing get a None stat. The parent entry
    is never looked up. Any other failure cancels the outstanding lookups and
    is raised.
    """
    if concurrency < 1:
        raise ValueError('concurrency must be at least 1')

    semaphore = asyncio.Semaphore(concurrency)
    results:List[StatEntry] = [None] * len(names)

    async def stat_one(index:int, name:str):
        if name == PARENT_ENTRY:
            results[index] = StatEntry(name, None)
            return

        async with semaphore:
            try:
                st = await asyncio.to_thread(stat_func, os.path.join(path, name))
            except FileNotFoundError:
                logger.debug('entry vanished before stat "%s"', name)
                results[index] = StatEntry(name, None)
                return
            except OSError as e:
                raise ListingIOError(e, status=500) from e
        results[index] = StatEntry(name, Metadata.from_stat_result(st))

    tasks = [asyncio.create_task(stat_one(i, name)) for i, name in enumerate(names)]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return results
