import locale
from typing import List

from asyindex.index.models import StatEntry
from asyindex.index.stats import PARENT_ENTRY


def file_sort_key(entry:StatEntry):
    """Parent link first, then directories, then case-insensitive locale order."""
    if entry.name == PARENT_ENTRY:
        return (0, 0, '')
    return (1, 0 if entry.is_dir else 1, locale.strxfrm(entry.display_name.lower()))

def sort_entries(entries:List[StatEntry]):
    # sorted() is stable, equal keys keep their listing order
    return sorted(entries, key=file_sort_key)
