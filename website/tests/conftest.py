"""Shared fixtures for content scenario tests."""

import datetime
import pathlib
from collections.abc import Callable

import pytest

from website.app import blog

FIXED_NOW = datetime.datetime(2025, 1, 1, tzinfo=datetime.UTC)


@pytest.fixture
def content_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Returns path to an empty content tree."""
    root = tmp_path / 'content'
    root.mkdir()
    return root


@pytest.fixture
def write_post(content_dir: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Returns a helper writing ``<category>/<slug>.mdx`` from front-matter fields."""

    def write(category: str, slug: str, body: str = 'Body\n', **fields: str) -> pathlib.Path:
        directory = content_dir / category
        directory.mkdir(exist_ok=True)
        header = ''.join(f'{key}: {value!r}\n' for key, value in fields.items())
        path = directory / f'{slug}.mdx'
        path.write_text(f'---\n{header}---\n{body}', encoding='utf-8')
        return path

    return write


@pytest.fixture
def loader(content_dir: pathlib.Path) -> blog.PostLoader:
    """Returns a loader over the temporary content tree with a fixed clock."""
    return blog.PostLoader(content_dir, ttl=300, now=lambda: FIXED_NOW)
