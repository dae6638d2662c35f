from asyindex.index.options import IndexOptions
from asyindex.index.middleware import ServeIndex
from asyindex.index.negotiator import MediaType
from asyindex.index.template import Renderer, FileTemplateRenderer, CallbackRenderer

__all__ = [
    'IndexOptions',
    'ServeIndex',
    'MediaType',
    'Renderer',
    'FileTemplateRenderer',
    'CallbackRenderer',
]
