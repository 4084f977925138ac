"""Blog post loading, caching and rendering logic.

Posts live at ``<content_dir>/<category>/<slug>.mdx``: a YAML front-matter
header followed by an MDX body. The category comes from the directory, the
slug from the filename. Only the front-matter is parsed while listing; the
body is rendered to HTML lazily when a single post is displayed.
"""

import datetime
import email.utils
import logging
import pathlib
import re
import time
from collections.abc import Callable, Iterable
from typing import Any

import frontmatter  # type: ignore[reportMissingTypeStubs]
import markdown
import pydantic
import yaml

from .cache import TTLCache

logger = logging.getLogger(__name__)

CATEGORY_LABELS: dict[str, str] = {
    'personal': 'Personal Blogs',
    'weekly': 'Weekly Blogs',
    'company': 'Company Blogs',
}
CATEGORIES: tuple[str, ...] = tuple(CATEGORY_LABELS)

DEFAULT_AUTHOR = 'Anonymous'
DEFAULT_READ_TIME = '3 min read'

MARKDOWN_EXTENSIONS = ['fenced_code', 'codehilite', 'tables', 'toc']

_ALL_POSTS_KEY = 'posts:*'
_SLUG_RE = re.compile(r'[A-Za-z0-9][A-Za-z0-9_-]*')
_MDX_ESM_RE = re.compile(r'(?:import|export)\s')
_FENCES = ('```', '~~~')

# Errors that make a single post file unusable
_READ_ERRORS = (OSError, ValueError, yaml.YAMLError, pydantic.ValidationError)

_YAML_HANDLER = frontmatter.YAMLHandler()


class NotFoundError(LookupError):
    """Raised when a requested post or category does not exist."""


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def parse_date(value: str) -> datetime.datetime | None:
    """Parse an ISO 8601 date string into an aware datetime.

    Naive values are taken to be UTC. Returns None when the value cannot be
    parsed.
    """
    try:
        dt = datetime.datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.UTC)
    return dt


def strip_mdx_esm(body: str) -> str:
    """Drop MDX import/export lines that sit outside fenced code blocks."""
    lines: list[str] = []
    in_fence = False
    for line in body.splitlines(keepends=True):
        if line.lstrip().startswith(_FENCES):
            in_fence = not in_fence
        elif not in_fence and _MDX_ESM_RE.match(line):
            continue
        lines.append(line)
    return ''.join(lines)


class PostMetadata(pydantic.BaseModel):
    """Front-matter schema for MDX posts.

    Missing, null or empty fields fall back to their defaults. YAML turns bare
    dates and numbers into objects; those are stored back as text.
    """

    model_config = pydantic.ConfigDict(extra='ignore', populate_by_name=True)

    title: str | None = None
    date: str | None = None
    author: str = DEFAULT_AUTHOR
    read_time: str = pydantic.Field(default=DEFAULT_READ_TIME, alias='readTime')
    excerpt: str = ''
    image: str | None = None
    featured: bool = False

    @pydantic.model_validator(mode='before')
    @classmethod
    def _drop_empty(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and v != ''}  # type: ignore[reportUnknownVariableType]
        return data

    @pydantic.field_validator(
        'title', 'date', 'author', 'read_time', 'excerpt', 'image', mode='before'
    )
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, datetime.date):
            return value.isoformat()
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


class Post(pydantic.BaseModel):
    """A single blog entry as listed on index pages and in the JSON API."""

    model_config = pydantic.ConfigDict(populate_by_name=True, frozen=True)

    slug: str
    title: str
    date: str
    author: str
    read_time: str = pydantic.Field(alias='readTime')
    excerpt: str
    category: str
    image: str | None = None
    featured: bool = False
    # Sort key; a missing or unparseable date sorts as the time it was loaded
    dt: datetime.datetime = pydantic.Field(exclude=True)

    @property
    def category_label(self) -> str:
        """Human readable category name."""
        return CATEGORY_LABELS.get(self.category, self.category.title())

    @property
    def url_path(self) -> str:
        """Site path of the post page."""
        return f'/blog/{self.category}/{self.slug}'

    @property
    def pub_date(self) -> str:
        """RFC 822 date in GMT, as RSS readers expect."""
        return email.utils.format_datetime(
            self.dt.astimezone(datetime.UTC), usegmt=True
        )


class PostContent:
    """A post's metadata plus its MDX body.

    Provides a convenience property to convert the body to HTML.
    """

    post: Post
    body: str
    _html: str | None

    def __init__(self, post: Post, body: str) -> None:
        self.post = post
        self.body = body
        self._html = None

    @property
    def html(self) -> str:
        """Returns markdown-rendered HTML of the post body, rendering on first use."""
        if self._html is None:
            self._html = markdown.markdown(
                strip_mdx_esm(self.body), extensions=MARKDOWN_EXTENSIONS
            )
        return self._html


class PostLoader:
    """Loads posts from a content tree and caches them for a validity window.

    Broken content never raises out of ``list_posts``: unreadable files are
    skipped and a failing directory listing yields an empty result. Lookups of
    a single post raise NotFoundError when the post cannot be produced.
    """

    def __init__(
        self,
        content_dir: pathlib.Path | str,
        ttl: float = 60 * 60,
        categories: Iterable[str] = CATEGORIES,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self.content_dir = pathlib.Path(content_dir)
        self.categories = tuple(categories)
        self._now = now
        self._cache = TTLCache(ttl=ttl, clock=clock)

    def invalidate(self) -> None:
        """Forget every cached listing and post."""
        self._cache.clear()
        logger.debug('Post cache for %s invalidated', self.content_dir)

    # -----------------------------------------------------------------------
    # Listing
    # -----------------------------------------------------------------------

    def list_posts(self, category: str | None = None) -> list[Post]:
        """Return posts sorted newest first, optionally limited to one category.

        Within the cache window the same list object is returned on every call.
        An unknown category yields an empty list.
        """
        if category is not None:
            if category not in self.categories:
                logger.debug('Unknown category %r requested', category)
                return []
            return self._category_posts(category)

        cached = self._cache.get(_ALL_POSTS_KEY)
        if cached is not None:
            return cached

        try:
            names = self._discover_categories()
        except OSError:
            logger.exception('Could not scan content directory %s', self.content_dir)
            return []
        # Re-read each category so the merged list is never older than its parts
        posts = [
            post
            for name in names
            for post in self._category_posts(name, refresh=True)
        ]
        posts.sort(key=lambda p: p.dt, reverse=True)
        self._cache.set(_ALL_POSTS_KEY, posts)
        return posts

    def recent_posts(self, count: int = 3) -> list[Post]:
        """Return the *count* newest posts across all categories."""
        return self.list_posts()[:count]

    def featured_posts(self) -> list[Post]:
        """Return posts flagged as featured, newest first."""
        return [post for post in self.list_posts() if post.featured]

    def _discover_categories(self) -> list[str]:
        if not self.content_dir.is_dir():
            logger.info('Content directory %s does not exist', self.content_dir)
            return []
        names = sorted(p.name for p in self.content_dir.iterdir() if p.is_dir())
        unknown = [name for name in names if name not in self.categories]
        if unknown:
            logger.debug('Ignoring unknown category directories: %s', unknown)
        return [name for name in names if name in self.categories]

    def _category_posts(self, category: str, refresh: bool = False) -> list[Post]:
        """Return one category's posts, skipping the cache when *refresh* is set."""
        key = f'category:{category}'
        cached = None if refresh else self._cache.get(key)
        if cached is not None:
            return cached

        directory = self.content_dir / category
        try:
            paths = sorted(p for p in directory.glob('*.mdx') if p.is_file())
        except OSError:
            logger.exception('Could not list posts in %s', directory)
            return []

        posts: list[Post] = []
        for path in paths:
            try:
                posts.append(self._parse(path, category).post)
            except _READ_ERRORS:
                logger.warning('Skipping unreadable post %s', path, exc_info=True)
        posts.sort(key=lambda p: p.dt, reverse=True)
        self._cache.set(key, posts)
        logger.debug('Loaded %d posts from %s', len(posts), directory)
        return posts

    # -----------------------------------------------------------------------
    # Single posts
    # -----------------------------------------------------------------------

    def get_post(self, slug: str, category: str) -> PostContent:
        """Load one post with its body, caching it under ``category/slug``.

        Raises NotFoundError if the post does not exist or cannot be read.
        """
        if category not in self.categories or not _SLUG_RE.fullmatch(slug):
            raise NotFoundError(f'No post {slug!r} in category {category!r}')

        key = f'post:{category}/{slug}'
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        path = self.content_dir / category / f'{slug}.mdx'
        try:
            content = self._parse(path, category)
        except _READ_ERRORS as exc:
            if not isinstance(exc, FileNotFoundError):
                logger.warning('Could not load post %s', path, exc_info=True)
            raise NotFoundError(f'No post {slug!r} in category {category!r}') from exc
        self._cache.set(key, content)
        return content

    def find_post(self, slug: str) -> PostContent:
        """Load the newest post with *slug* from any category.

        Raises NotFoundError if no category holds such a post.
        """
        for post in self.list_posts():
            if post.slug == slug:
                return self.get_post(post.slug, post.category)
        raise NotFoundError(f'No post {slug!r}')

    # -----------------------------------------------------------------------
    # Parsing
    # -----------------------------------------------------------------------

    def _read(self, path: pathlib.Path) -> frontmatter.Post:
        """Read and split one MDX file. The body is not evaluated.

        Only a `---` YAML header at the top of the file counts as front-matter.
        Bodies that open with a JSX expression such as `{/* ... */}` or that
        use `---` rules further down are kept whole.
        """
        text = path.read_text(encoding='utf-8').strip()
        if not _YAML_HANDLER.detect(text):
            return frontmatter.Post(text)
        return frontmatter.loads(text, handler=_YAML_HANDLER)

    def _parse(self, path: pathlib.Path, category: str) -> PostContent:
        source = self._read(path)
        metadata = PostMetadata.model_validate(source.metadata)
        slug = path.stem
        date, dt = self._resolve_date(metadata.date, path)
        post = Post(
            slug=slug,
            title=metadata.title or slug,
            date=date,
            author=metadata.author,
            read_time=metadata.read_time,
            excerpt=metadata.excerpt,
            category=category,
            image=metadata.image,
            featured=metadata.featured,
            dt=dt,
        )
        return PostContent(post, source.content)

    def _resolve_date(
        self, raw: str | None, path: pathlib.Path
    ) -> tuple[str, datetime.datetime]:
        """Return the display date and sort key for a post.

        A missing date becomes the current time; an unparseable one is kept
        for display but sorts as the current time.
        """
        if raw is None:
            now = self._now()
            logger.warning('%s has no date, using %s', path, now.isoformat())
            return now.isoformat(), now
        dt = parse_date(raw)
        if dt is None:
            now = self._now()
            logger.warning(
                '%s has unparseable date %r, sorting it as %s', path, raw, now.isoformat()
            )
            return raw, now
        return raw, dt
