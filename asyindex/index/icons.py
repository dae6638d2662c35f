import os
import base64
import asyncio
import logging
import mimetypes
import posixpath
import threading
from typing import Dict, List

from asyindex.index.models import IconDescriptor, StatEntry
from asyindex.index.stats import PARENT_ENTRY

logger = logging.getLogger('asyindex.index')

ICON_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'public', 'icons')

ICONS = {
    # base icons
    'default': 'page_white.svg',
    'folder': 'folder.svg',

    # generic mime type icons
    'font': 'font.svg',
    'image': 'image.svg',
    'text': 'page_white_text.svg',
    'video': 'film.svg',

    # generic mime suffix icons
    '+json': 'page_white_code.svg',
    '+xml': 'page_white_code.svg',
    '+zip': 'box.svg',

    # specific mime type icons
    'application/javascript': 'page_white_code.svg',
    'application/json': 'page_white_code.svg',
    'application/msword': 'page_white_word.svg',
    'application/pdf': 'page_white_acrobat.svg',
    'application/postscript': 'page_white_vector.svg',
    'application/rtf': 'page_white_word.svg',
    'application/vnd.ms-excel': 'page_white_excel.svg',
    'application/vnd.ms-powerpoint': 'page_white_powerpoint.svg',
    'application/vnd.oasis.opendocument.presentation': 'page_white_powerpoint.svg',
    'application/vnd.oasis.opendocument.spreadsheet': 'page_white_excel.svg',
    'application/vnd.oasis.opendocument.text': 'page_white_word.svg',
    'application/x-7z-compressed': 'box.svg',
    'application/x-sh': 'application_xp_terminal.svg',
    'application/x-msaccess': 'page_white_database.svg',
    'application/x-sql': 'page_white_database.svg',
    'application/x-tar': 'box.svg',
    'application/x-xz': 'box.svg',
    'application/xml': 'page_white_code.svg',
    'application/zip': 'box.svg',
    'image/svg+xml': 'page_white_vector.svg',
    'text/css': 'page_white_code.svg',
    'text/html': 'page_white_code.svg',
    'text/javascript': 'page_white_code.svg',
    'text/less': 'page_white_code.svg',

    # other, extension-specific icons
    '.accdb': 'page_white_database.svg',
    '.apk': 'box.svg',
    '.app': 'application_xp.svg',
    '.as': 'page_white_code.svg',
    '.asp': 'page_white_code.svg',
    '.aspx': 'page_white_code.svg',
    '.bat': 'application_xp_terminal.svg',
    '.bz2': 'box.svg',
    '.c': 'page_white_code.svg',
    '.cab': 'box.svg',
    '.cfm': 'page_white_code.svg',
    '.clj': 'page_white_code.svg',
    '.cc': 'page_white_code.svg',
    '.cgi': 'application_xp_terminal.svg',
    '.cpp': 'page_white_code.svg',
    '.cs': 'page_white_code.svg',
    '.db': 'page_white_database.svg',
    '.dbf': 'page_white_database.svg',
    '.deb': 'box.svg',
    '.dll': 'page_white_gear.svg',
    '.dmg': 'drive.svg',
    '.docx': 'page_white_word.svg',
    '.erb': 'page_white_code.svg',
    '.exe': 'application_xp.svg',
    '.fnt': 'font.svg',
    '.gam': 'controller.svg',
    '.gz': 'box.svg',
    '.h': 'page_white_code.svg',
    '.ini': 'page_white_gear.svg',
    '.iso': 'cd.svg',
    '.jar': 'box.svg',
    '.java': 'page_white_code.svg',
    '.jsp': 'page_white_code.svg',
    '.lua': 'page_white_code.svg',
    '.lz': 'box.svg',
    '.lzma': 'box.svg',
    '.m': 'page_white_code.svg',
    '.map': 'map.svg',
    '.msi': 'box.svg',
    '.mv4': 'film.svg',
    '.pdb': 'page_white_database.svg',
    '.php': 'page_white_code.svg',
    '.pl': 'page_white_code.svg',
    '.pkg': 'box.svg',
    '.pptx': 'page_white_powerpoint.svg',
    '.psd': 'page_white_picture.svg',
    '.py': 'page_white_code.svg',
    '.rar': 'box.svg',
    '.rb': 'page_white_code.svg',
    '.rm': 'film.svg',
    '.rom': 'controller.svg',
    '.rpm': 'box.svg',
    '.sass': 'page_white_code.svg',
    '.sav': 'controller.svg',
    '.scss': 'page_white_code.svg',
    '.srt': 'page_white_text.svg',
    '.tbz2': 'box.svg',
    '.tgz': 'box.svg',
    '.tlz': 'box.svg',
    '.vb': 'page_white_code.svg',
    '.vbs': 'page_white_code.svg',
    '.xcf': 'page_white_picture.svg',
    '.xlsx': 'page_white_excel.svg',
    '.yaws': 'page_white_code.svg',
}

DIRECTORY_ICON = IconDescriptor('icon-directory', ICONS['folder'])


class IconCache:
    """Base64 encoded icon assets, read on first use and kept for the lifetime of the process."""

    def __init__(self, icon_dir:str = ICON_DIR):
        self.icon_dir = icon_dir
        self.__cache:Dict[str, str] = {}
        self.__lock = threading.Lock()

    def load(self, asset_name:str):
        data = self.__cache.get(asset_name)
        if data is not None:
            return data
        with self.__lock:
            if asset_name not in self.__cache:
                logger.debug('loading icon "%s"', asset_name)
                with open(os.path.join(self.icon_dir, asset_name), 'rb') as f:
                    self.__cache[asset_name] = base64.b64encode(f.read()).decode('ascii')
            return self.__cache[asset_name]

    async def preload(self, asset_names:List[str]):
        """Reads the missing assets in worker threads so load() never blocks the event loop."""
        for asset_name in asset_names:
            if asset_name not in self.__cache:
                await asyncio.to_thread(self.load, asset_name)

    def __contains__(self, asset_name:str):
        return asset_name in self.__cache

    def __len__(self):
        return len(self.__cache)

icon_cache = IconCache()


def extname(filename:str):
    return posixpath.splitext(filename)[1]

def lookup_mimetype(ext:str):
    if not ext:
        return None
    mimetype, _ = mimetypes.guess_type('file' + ext, strict=False)
    return mimetype

def icon_lookup(filename:str):
    ext = extname(filename)

    # try by extension
    if ext in ICONS:
        return IconDescriptor('icon-' + ext[1:], ICONS[ext])

    mimetype = lookup_mimetype(ext)
    if mimetype is None:
        return IconDescriptor('icon-default', ICONS['default'])

    # try by mime type
    if mimetype in ICONS:
        return IconDescriptor('icon-' + mimetype.replace('/', '-').replace('+', '_'), ICONS[mimetype])

    # try by mime suffix
    suffix = mimetype.split('+')[1] if '+' in mimetype else None
    if suffix and ('+' + suffix) in ICONS:
        return IconDescriptor('icon-' + suffix, ICONS['+' + suffix])

    # try by mime top-level type
    toptype = mimetype.split('/')[0]
    if toptype in ICONS:
        return IconDescriptor('icon-' + toptype, ICONS[toptype])

    return IconDescriptor('icon-default', ICONS['default'])

def entry_icon(entry:StatEntry):
    if entry.is_dir or entry.name == PARENT_ENTRY:
        return DIRECTORY_ICON
    return icon_lookup(entry.display_name)

def icon_assets(file_list:List[StatEntry]):
    """Distinct icon assets of a listing, in first use order."""
    assets:List[str] = []
    for entry in file_list:
        asset_name = entry_icon(entry).asset_name
        if asset_name not in assets:
            assets.append(asset_name)
    return assets

def asset_media_type(asset_name:str):
    mimetype, _ = mimetypes.guess_type(asset_name)
    return mimetype or 'application/octet-stream'

def icon_style(file_list:List[StatEntry], display_icons:bool, cache:IconCache = None):
    """CSS rules that inline the icon of every entry, one rule per distinct asset."""
    if not display_icons:
        return ''
    if cache is None:
        cache = icon_cache

    order:List[str] = []
    rules:Dict[str, str] = {}
    selectors:Dict[str, List[str]] = {}

    for entry in file_list:
        icon = entry_icon(entry)
        selector = '#files .' + icon.class_name + ' .name'

        if icon.asset_name not in rules:
            rules[icon.asset_name] = 'background-image: url(data:%s;base64,%s);' % (
                asset_media_type(icon.asset_name), cache.load(icon.asset_name)
            )
            selectors[icon.asset_name] = []
            order.append(icon.asset_name)

        if selector not in selectors[icon.asset_name]:
            selectors[icon.asset_name].append(selector)

    style = ''
    for asset_name in order:
        style += ',\n'.join(selectors[asset_name]) + ' {\n  ' + rules[asset_name] + '\n}\n'
    return style
