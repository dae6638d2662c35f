import json
import html
import posixpath
import datetime
from typing import List
from urllib.parse import quote

from asyindex.index.models import StatEntry, display_name
from asyindex.index.icons import entry_icon, extname
from asyindex.index.stats import PARENT_ENTRY

# characters encodeURIComponent leaves alone on top of quote()'s defaults
URI_COMPONENT_SAFE = "!~*'()"


def encode_segment(segment:str):
    # surrogate escaped bytes go back out as their original %XX
    return quote(segment, safe=URI_COMPONENT_SAFE, errors='surrogateescape')

def normalize_url_path(path:str):
    """Lexical normalization of an URL path, keeping a single leading slash."""
    if path == '':
        return '.'
    normalized = posixpath.normpath(path)
    if normalized.startswith('//'):
        normalized = '/' + normalized.lstrip('/')
    return normalized

def format_mtime(mtime:float):
    dt = datetime.datetime.fromtimestamp(mtime)
    return dt.strftime('%x') + ' ' + dt.strftime('%X')

def render_json(file_list:List[StatEntry]):
    return json.dumps([entry.display_name for entry in file_list], ensure_ascii=False, separators=(',', ':'))

def render_plain(file_list:List[StatEntry]):
    return '\n'.join(entry.display_name for entry in file_list) + '\n'

def html_path(directory:str):
    """Breadcrumb trail, every segment links to its own prefix of the path."""
    parts = directory.split('/')
    crumbs = [''] * len(parts)

    for i, part in enumerate(parts):
        if part:
            parts[i] = encode_segment(part)
            crumbs[i] = '<a href="%s">%s</a>' % (
                html.escape('/'.join(parts[:i + 1])),
                html.escape(display_name(part))
            )

    return ' / '.join(crumbs)

def entry_classes(entry:StatEntry, display_icons:bool):
    if not display_icons:
        return []

    classes = ['icon']
    if entry.is_dir or entry.name == PARENT_ENTRY:
        classes.append('icon-directory')
        return classes

    ext_class = 'icon-' + extname(entry.display_name)[1:]
    if ext_class not in classes:
        classes.append(ext_class)
    icon = entry_icon(entry)
    if icon.class_name not in classes:
        classes.append(icon.class_name)
    return classes

def html_file_entry(entry:StatEntry, dir_segments:List[str], display_icons:bool):
    href = normalize_url_path('/'.join(dir_segments + [encode_segment(entry.name)]))
    classes = entry_classes(entry, display_icons)

    date = ''
    if entry.stat is not None and entry.name != PARENT_ENTRY:
        date = format_mtime(entry.stat.mtime)
    size = ''
    if entry.stat is not None and not entry.stat.is_dir:
        size = str(entry.stat.size)

    return '<li><a href="' + html.escape(href) + '"' \
        + ' class="' + html.escape(' '.join(classes)) + '"' \
        + ' title="' + html.escape(entry.display_name) + '">' \
        + '<span class="name">' + html.escape(entry.display_name) + '</span>' \
        + '<span class="size">' + html.escape(size) + '</span>' \
        + '<span class="date">' + html.escape(date) + '</span>' \
        + '</a></li>'

def html_file_list(file_list:List[StatEntry], directory:str, display_icons:bool, view:str):
    header = ''
    if view == 'details':
        header = '<li class="header">' \
            + '<span class="name">Name</span>' \
            + '<span class="size">Size</span>' \
            + '<span class="date">Modified</span>' \
            + '</li>'

    dir_segments = [encode_segment(c) for c in directory.split('/')]
    items = '\n'.join(html_file_entry(entry, dir_segments, display_icons) for entry in file_list)
    return '<ul id="files" class="view-' + html.escape(view) + '">' + header + items + '</ul>'
