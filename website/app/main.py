"""FastAPI application for the OpenBook marketing site and blog."""

import contextlib
import logging
import pathlib
from collections.abc import AsyncGenerator
from typing import Annotated

import fastapi
import fastapi.responses
import fastapi.staticfiles
import uvicorn
from sqlmodel import Session

import common.app
import common.settings

from . import blog, database, waitlist

APP_DIR = pathlib.Path(__file__).resolve().parent

API_CACHE_CONTROL = 'public, s-maxage=60, stale-while-revalidate=300'
LANDING_POST_COUNT = 3

logger = logging.getLogger(__name__)

loader = blog.PostLoader(
    common.settings.CONTENT_DIR, ttl=common.settings.BLOG_CACHE_TTL
)


def get_loader() -> blog.PostLoader:
    """Return the process-wide post loader."""
    return loader


LoaderDep = Annotated[blog.PostLoader, fastapi.Depends(get_loader)]
SessionDep = Annotated[Session, fastapi.Depends(database.get_session)]


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the waitlist database on startup."""
    database.create_db_and_tables()
    logger.info('Serving posts from %s', loader.content_dir)
    yield


app = common.app.create_app(common.settings.SITE_NAME, lifespan=lifespan)

app.mount(
    '/assets',
    fastapi.staticfiles.StaticFiles(directory=APP_DIR / 'static'),
    name='assets',
)

templates = common.app.make_templates(APP_DIR / 'templates')


def render_page(
    request: fastapi.Request,
    name: str,
    *,
    title: str,
    description: str,
    status_code: int = 200,
    **context: object,
) -> fastapi.responses.HTMLResponse:
    """Render a page template with title, description and canonical URL set."""
    return templates.TemplateResponse(
        request=request,
        name=name,
        context={
            'title': title,
            'description': description,
            'canonical_url': common.settings.SITE_URL + request.url.path,
            **context,
        },
        status_code=status_code,
    )


@app.exception_handler(blog.NotFoundError)
async def not_found(
    request: fastapi.Request, exc: blog.NotFoundError
) -> fastapi.responses.HTMLResponse:
    """Render the not-found page for missing posts and categories."""
    logger.info('Not found: %s (%s)', request.url.path, exc)
    return render_page(
        request,
        'not_found.html.jinja2',
        title=f'Not Found - {common.settings.SITE_NAME}',
        description='The page you were looking for does not exist.',
        status_code=404,
    )


# ---------------------------------------------------------------------------
# Static pages
# ---------------------------------------------------------------------------


@app.get('/', response_class=fastapi.responses.HTMLResponse)
async def index(
    request: fastapi.Request, posts: LoaderDep
) -> fastapi.responses.HTMLResponse:
    """Render the landing page with featured posts and the waitlist form."""
    featured = posts.featured_posts()[:LANDING_POST_COUNT]
    return render_page(
        request,
        'index.html.jinja2',
        title=common.settings.SITE_NAME,
        description='AI-powered learning notebook',
        posts=featured or posts.recent_posts(LANDING_POST_COUNT),
    )


@app.get('/about', response_class=fastapi.responses.HTMLResponse)
async def about(request: fastapi.Request) -> fastapi.responses.HTMLResponse:
    """Render the about page."""
    return render_page(
        request,
        'about.html.jinja2',
        title=f'About - {common.settings.SITE_NAME}',
        description='Why we started OpenBook and how we build it in the open.',
    )


@app.get('/team', response_class=fastapi.responses.HTMLResponse)
async def team(request: fastapi.Request) -> fastapi.responses.HTMLResponse:
    """Render the team page."""
    return render_page(
        request,
        'team.html.jinja2',
        title=f'Team - {common.settings.SITE_NAME}',
        description='The people building OpenBook.',
    )


# ---------------------------------------------------------------------------
# Blog pages
# ---------------------------------------------------------------------------


@app.get('/blog', response_class=fastapi.responses.HTMLResponse)
async def blog_index(
    request: fastapi.Request, posts: LoaderDep
) -> fastapi.responses.HTMLResponse:
    """Render all posts grouped by category."""
    all_posts = posts.list_posts()
    sections = [
        (category, label, [p for p in all_posts if p.category == category])
        for category, label in blog.CATEGORY_LABELS.items()
    ]
    return render_page(
        request,
        'blog_index.html.jinja2',
        title=f'Blog - {common.settings.SITE_NAME}',
        description='Browse all blog posts',
        sections=[section for section in sections if section[2]],
    )


@app.get('/blog/categories/{category}', response_class=fastapi.responses.HTMLResponse)
async def blog_category(
    request: fastapi.Request, category: str, posts: LoaderDep
) -> fastapi.responses.HTMLResponse:
    """Render the posts of a single category."""
    label = blog.CATEGORY_LABELS.get(category)
    category_posts = posts.list_posts(category)
    if label is None or not category_posts:
        raise blog.NotFoundError(f'No posts in category {category!r}')
    return render_page(
        request,
        'category.html.jinja2',
        title=f'{label} - {common.settings.SITE_NAME} Blog',
        description=f'Browse all {label.lower()}',
        label=label,
        posts=category_posts,
    )


@app.get('/blog/{slug}', response_class=fastapi.responses.HTMLResponse)
async def blog_post_by_slug(
    request: fastapi.Request, slug: str, posts: LoaderDep
) -> fastapi.responses.HTMLResponse:
    """Render the newest post with the given slug."""
    return _render_post(request, posts.find_post(slug))


@app.get('/blog/{category}/{slug}', response_class=fastapi.responses.HTMLResponse)
async def blog_post(
    request: fastapi.Request, category: str, slug: str, posts: LoaderDep
) -> fastapi.responses.HTMLResponse:
    """Render an individual post by category and slug."""
    return _render_post(request, posts.get_post(slug, category))


def _render_post(
    request: fastapi.Request, content: blog.PostContent
) -> fastapi.responses.HTMLResponse:
    return render_page(
        request,
        'post.html.jinja2',
        title=content.post.title,
        description=content.post.excerpt,
        post=content.post,
        content=content,
    )


@app.get('/rss.xml')
async def rss(posts: LoaderDep) -> fastapi.responses.Response:
    """Render and serve the RSS feed."""
    xml = templates.get_template('rss.xml.jinja2').render(posts=posts.list_posts())  # type: ignore
    return fastapi.responses.Response(content=xml, media_type='application/rss+xml')


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------


@app.get('/api/blogs')
async def api_posts(
    posts: LoaderDep, featured: bool = False
) -> fastapi.responses.JSONResponse:
    """Return the post list as JSON, optionally only featured posts."""
    selected = posts.featured_posts() if featured else posts.list_posts()
    return fastapi.responses.JSONResponse(
        content=[post.model_dump(mode='json', by_alias=True) for post in selected],
        headers={'Cache-Control': API_CACHE_CONTROL},
    )


@app.post(
    '/api/waitlist',
    response_model=waitlist.WaitlistResult,
    response_model_exclude_none=True,
)
async def join_waitlist(
    signup: waitlist.WaitlistSignup, session: SessionDep
) -> waitlist.WaitlistResult:
    """Add an email to the waitlist. Failures are reported in the body."""
    return waitlist.add_to_waitlist(session, signup)


@app.get('/api/waitlist/count')
async def waitlist_count(session: SessionDep) -> dict[str, int]:
    """Return the number of people on the waitlist."""
    return {'count': waitlist.get_waitlist_count(session)}


if __name__ == '__main__':
    uvicorn.run(app, host='0.0.0.0', port=8000)
