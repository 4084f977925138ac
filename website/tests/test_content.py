"""Scenario tests for the blog content pipeline."""

import datetime
import pathlib
from collections.abc import Callable
from unittest import mock

import pytest

import common.settings
from website.app import blog

WritePost = Callable[..., pathlib.Path]


def test_posts_listed_newest_first_across_categories(
    loader: blog.PostLoader, write_post: WritePost
) -> None:
    """Posts from different categories are merged by date."""
    write_post('personal', 'a', title='A', date='2024-01-01')
    write_post('company', 'b', title='B', date='2024-06-01')
    assert [p.title for p in loader.list_posts()] == ['B', 'A']


def test_adjacent_posts_are_in_descending_date_order(
    loader: blog.PostLoader, write_post: WritePost
) -> None:
    """Every adjacent pair in the listing is ordered by date."""
    dates = ['2023-12-31', '2024-03-05', '2024-03-04', '2022-01-01', '2024-11-30']
    for i, date in enumerate(dates):
        write_post(blog.CATEGORIES[i % 3], f'post-{i}', date=date)
    posts = loader.list_posts()
    assert len(posts) == len(dates)
    for newer, older in zip(posts, posts[1:]):
        assert newer.dt >= older.dt


@pytest.mark.parametrize('category', blog.CATEGORIES)
def test_category_filter_only_returns_that_category(
    loader: blog.PostLoader, write_post: WritePost, category: str
) -> None:
    """Filtering by a category never leaks posts from other categories."""
    for name in blog.CATEGORIES:
        write_post(name, f'{name}-post', date='2024-01-01')
    posts = loader.list_posts(category)
    assert posts
    assert all(p.category == category for p in posts)


def test_missing_fields_get_defaults(
    loader: blog.PostLoader, write_post: WritePost
) -> None:
    """Posts without author or readTime get the documented defaults."""
    write_post('weekly', 'plain', title='Plain', date='2024-01-01')
    (post,) = loader.list_posts()
    assert post.read_time == '3 min read'
    assert post.author == 'Anonymous'


def test_missing_date_falls_back_to_injected_now(
    loader: blog.PostLoader, write_post: WritePost
) -> None:
    """The date fallback is the loader's clock, so it is reproducible."""
    write_post('weekly', 'undated', title='Undated')
    (post,) = loader.list_posts()
    assert post.date == '2025-01-01T00:00:00+00:00'
    assert post.dt == datetime.datetime(2025, 1, 1, tzinfo=datetime.UTC)


def test_second_listing_does_not_touch_filesystem(
    loader: blog.PostLoader, write_post: WritePost
) -> None:
    """Within the validity window the cached list is returned unchanged."""
    write_post('personal', 'a', date='2024-01-01')
    first = loader.list_posts()
    with mock.patch.object(loader, '_read') as reader:
        second = loader.list_posts()
    reader.assert_not_called()
    assert second is first


def test_missing_post_signals_not_found(loader: blog.PostLoader) -> None:
    """Looking up a missing post raises NotFoundError."""
    with pytest.raises(blog.NotFoundError):
        loader.get_post('missing-slug', 'personal')


def test_absent_content_dir_is_empty(tmp_path: pathlib.Path) -> None:
    """A missing content tree lists no posts."""
    assert blog.PostLoader(tmp_path / 'nothing-here').list_posts() == []


def test_bundled_content_loads() -> None:
    """The posts shipped with the site parse and render."""
    loader = blog.PostLoader(common.settings.REPO_ROOT / 'website' / 'content')
    posts = loader.list_posts()
    assert {p.category for p in posts} == set(blog.CATEGORIES)
    for post in posts:
        assert blog.parse_date(post.date) is not None
        assert loader.get_post(post.slug, post.category).html
