import os
import re
import html
import asyncio
import inspect
from typing import Callable, Union

from asyindex.index.models import TemplateLocals, display_name
from asyindex.index.render import html_file_list, html_path
from asyindex.index.icons import icon_assets, icon_cache, icon_style

PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'public')
DEFAULT_TEMPLATE = os.path.join(PUBLIC_DIR, 'directory.html')
DEFAULT_STYLESHEET = os.path.join(PUBLIC_DIR, 'style.css')

TEMPLATE_TOKENS = re.compile(r'\{(style|files|directory|linked-path)\}')


def read_text(path:str):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


class Renderer:
    """Turns the template locals into an HTML document."""

    async def render(self, locals:TemplateLocals) -> str:
        raise NotImplementedError()


class FileTemplateRenderer(Renderer):
    def __init__(self, template_path:str):
        self.template_path = template_path

    def substitute(self, template:str, locals:TemplateLocals):
        values = {
            'style': locals.style + icon_style(locals.file_list, locals.display_icons),
            'files': html_file_list(locals.file_list, locals.directory, locals.display_icons, locals.view_name),
            'directory': html.escape(display_name(locals.directory)),
            'linked-path': html_path(locals.directory),
        }
        # single pass, substituted text is never scanned for tokens again
        return TEMPLATE_TOKENS.sub(lambda m: values[m.group(1)], template)

    async def render(self, locals:TemplateLocals):
        template = await asyncio.to_thread(read_text, self.template_path)
        if locals.display_icons:
            await icon_cache.preload(icon_assets(locals.file_list))
        return self.substitute(template, locals)

    def __repr__(self):
        return 'FileTemplateRenderer(%r)' % self.template_path


class CallbackRenderer(Renderer):
    """Hands the locals to a user supplied function returning the HTML (or an awaitable of it)."""

    def __init__(self, func:Callable):
        self.func = func

    async def render(self, locals:TemplateLocals):
        body = self.func(locals)
        if inspect.isawaitable(body):
            body = await body
        if not isinstance(body, str):
            raise TypeError('template function must return a string, got %s' % type(body).__name__)
        return body

    def __repr__(self):
        return 'CallbackRenderer(%r)' % self.func


def create_renderer(template:Union[str, Callable, Renderer] = None):
    if template is None:
        return FileTemplateRenderer(DEFAULT_TEMPLATE)
    if isinstance(template, Renderer):
        return template
    if callable(template):
        return CallbackRenderer(template)
    return FileTemplateRenderer(template)
