import pytest

from asyindex.common.errors import NotAcceptable
from asyindex.index.negotiator import MediaType, negotiate


@pytest.mark.parametrize('accept, expected', [
    (None, MediaType.HTML),
    ('', MediaType.HTML),
    ('*/*', MediaType.HTML),
    ('text/html', MediaType.HTML),
    ('application/json', MediaType.JSON),
    ('text/plain', MediaType.PLAIN),
    ('text/*', MediaType.HTML),
    ('application/*', MediaType.JSON),
    ('text/html;q=0.5, application/json', MediaType.JSON),
    ('text/plain, application/json;q=0.9', MediaType.PLAIN),
    ('text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8', MediaType.HTML),
])
def test_negotiate(accept, expected):
    assert negotiate(accept) is expected


@pytest.mark.parametrize('accept', [
    'application/xml',
    'image/png, image/*',
    'text/html;q=0',
])
def test_not_acceptable(accept):
    with pytest.raises(NotAcceptable) as excinfo:
        negotiate(accept)
    assert excinfo.value.status == 406
