from typing import Callable, Union

from asyindex.index.resolver import normalize_root
from asyindex.index.stats import DEFAULT_CONCURRENCY
from asyindex.index.template import DEFAULT_STYLESHEET, Renderer, create_renderer

VIEWS = ['tiles', 'details']


class IndexOptions:
    """Directory index configuration.

    root: directory to list, required
    hidden: list dot files too (default False)
    filter: filter(name, index, names, path) -> bool, keeps entries it returns True for
    icons: display file type icons (default False)
    stylesheet: path of the CSS file embedded in the page (default: built-in)
    template: path of an HTML template, a render function receiving TemplateLocals
        or a Renderer (default: built-in template)
    view: 'tiles' or 'details' (default 'tiles')
    concurrency: maximum number of parallel stat calls per listing (default 10)

    Entries are sorted with locale.strxfrm, so the order follows LC_COLLATE.
    Call locale.setlocale(locale.LC_COLLATE, '') at startup to use the
    user's locale, the CLI does this.
    """

    def __init__(self, root:str, hidden:bool = False, filter:Callable = None, icons:bool = False,
                 stylesheet:str = None, template:Union[str, Callable, Renderer] = None,
                 view:str = 'tiles', concurrency:int = DEFAULT_CONCURRENCY):
        self.root = root
        self.root_path = normalize_root(root)
        self.hidden = bool(hidden)
        self.filter = filter if filter else None
        self.icons = bool(icons)
        self.stylesheet = stylesheet or DEFAULT_STYLESHEET
        self.template = template
        self.renderer = create_renderer(template)
        self.view = view or 'tiles'
        self.concurrency = concurrency

        if self.filter is not None and not callable(self.filter):
            raise TypeError('filter must be callable')
        if not isinstance(self.concurrency, int) or self.concurrency < 1:
            raise ValueError('concurrency must be a positive integer')

    def __str__(self):
        t = '==== IndexOptions ====\r\n'
        for k in self.__dict__:
            t += '%s: %s\r\n' % (k, self.__dict__[k])
        return t
