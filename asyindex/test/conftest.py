import os

import pytest


@pytest.fixture
def tree(tmp_path):
    """
    root/
        .hidden
        A/
        b.txt
        sub dir/
            file #1.txt
            nested/
    """
    root = tmp_path / 'root'
    root.mkdir()
    (root / '.hidden').write_text('secret')
    (root / 'A').mkdir()
    (root / 'b.txt').write_text('hello')
    sub = root / 'sub dir'
    sub.mkdir()
    (sub / 'file #1.txt').write_text('one')
    (sub / 'nested').mkdir()
    return str(root)


@pytest.fixture
def root_path(tree):
    return tree + os.sep


@pytest.fixture
def undecodable_tree(tmp_path):
    """A directory holding `bad\\xff.txt`, a name that is not valid UTF-8."""
    name = os.fsdecode(b'bad\xff.txt')
    try:
        with open(os.path.join(str(tmp_path), name), 'w') as f:
            f.write('raw')
    except (OSError, UnicodeError):
        pytest.skip('file system does not accept non UTF-8 names')
    return str(tmp_path)
