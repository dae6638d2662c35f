import os
import stat as statmod
from typing import List


class ListingRequest:
    """What a single directory index request asks for. Built once per request."""
    __slots__ = ('root_path', 'requested_path', 'method', 'original_path')

    def __init__(self, root_path:str, requested_path:str, method:str, original_path:str = None):
        object.__setattr__(self, 'root_path', root_path)
        object.__setattr__(self, 'requested_path', requested_path)
        object.__setattr__(self, 'method', method)
        object.__setattr__(self, 'original_path', original_path if original_path is not None else requested_path)

    def __setattr__(self, name, value):
        raise AttributeError('ListingRequest is immutable')

    def __repr__(self):
        return 'ListingRequest(%r, %r, %r)' % (self.method, self.requested_path, self.root_path)


class ResolvedPath:
    __slots__ = ('path', 'display_path', 'show_up')

    def __init__(self, path:str, display_path:str, show_up:bool):
        object.__setattr__(self, 'path', path)
        object.__setattr__(self, 'display_path', display_path)
        object.__setattr__(self, 'show_up', show_up)

    def __setattr__(self, name, value):
        raise AttributeError('ResolvedPath is immutable')

    def __eq__(self, other):
        if not isinstance(other, ResolvedPath):
            return NotImplemented
        return (self.path, self.display_path, self.show_up) == (other.path, other.display_path, other.show_up)

    def __repr__(self):
        return 'ResolvedPath(%r, %r, show_up=%r)' % (self.path, self.display_path, self.show_up)


def display_name(name:str):
    """File system name as displayable text. Bytes that are not valid UTF-8
    (surrogate escaped by os.listdir) become U+FFFD."""
    return os.fsencode(name).decode('utf-8', 'replace')


class Metadata:
    def __init__(self, is_dir:bool, size:int, mtime:float):
        self.is_dir = is_dir
        self.size = size
        self.mtime = mtime

    @staticmethod
    def from_stat_result(st:os.stat_result):
        return Metadata(statmod.S_ISDIR(st.st_mode), st.st_size, st.st_mtime)

    def __repr__(self):
        return 'Metadata(is_dir=%r, size=%r, mtime=%r)' % (self.is_dir, self.size, self.mtime)


class StatEntry:
    """A directory entry name with its metadata. `stat` is None when the entry
    vanished before it could be stat-ed, and for the parent link."""

    def __init__(self, name:str, stat:Metadata = None):
        self.name = name
        self.stat = stat

    @property
    def is_dir(self):
        return self.stat is not None and self.stat.is_dir

    @property
    def display_name(self):
        return display_name(self.name)

    def __repr__(self):
        return 'StatEntry(%r, %r)' % (self.name, self.stat)


class IconDescriptor:
    def __init__(self, class_name:str, asset_name:str):
        self.class_name = class_name
        self.asset_name = asset_name

    def __eq__(self, other):
        if not isinstance(other, IconDescriptor):
            return NotImplemented
        return self.class_name == other.class_name and self.asset_name == other.asset_name

    def __repr__(self):
        return 'IconDescriptor(%r, %r)' % (self.class_name, self.asset_name)


class TemplateLocals:
    """Values handed to an HTML template.

    directory: the directory being displayed, as seen in the URL ("/" is the root)
    display_icons: whether icons should be rendered
    file_list: the sorted list of StatEntry objects
    path: full filesystem path of the directory
    style: the stylesheet text
    view_name: the configured view ("tiles" or "details")
    """

    def __init__(self, directory:str, display_icons:bool, file_list:List[StatEntry], path:str, style:str, view_name:str):
        self.directory = directory
        self.display_icons = display_icons
        self.file_list = file_list
        self.path = path
        self.style = style
        self.view_name = view_name

