"""Core FastAPI application utilities: logging, templates and the app factory."""

import datetime
import logging
import pathlib
from typing import Any

import fastapi
import fastapi.templating

import common.settings

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class HealthCheckFilter(logging.Filter):
    """Filter out health check requests from uvicorn access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False to suppress health check log entries."""
        return '/health' not in record.getMessage()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging and suppress health checks in the access log.

    The root logger is only given a handler when none is installed yet, so
    uvicorn's or pytest's own handlers are left alone.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level or common.settings.LOG_LEVEL)
    logging.getLogger('uvicorn.access').addFilter(HealthCheckFilter())


# ---------------------------------------------------------------------------
# Health router
# ---------------------------------------------------------------------------

_health_router = fastapi.APIRouter()


@_health_router.api_route('/health', methods=['GET', 'HEAD'])
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {'status': 'healthy'}


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def format_date(value: str | datetime.date, fmt: str = '%B %d, %Y') -> str:
    """Format an ISO date string or date object for display.

    Strings that are not ISO dates are returned unchanged.
    """
    if isinstance(value, str):
        try:
            value = datetime.datetime.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime(fmt)


def make_templates(
    directory: pathlib.Path | str,
) -> fastapi.templating.Jinja2Templates:
    """Create a Jinja2Templates instance with site globals and filters pre-set."""
    templates = fastapi.templating.Jinja2Templates(directory=str(directory))
    templates.env.globals['site_url'] = common.settings.SITE_URL  # type: ignore[reportUnknownMemberType]
    templates.env.globals['site_name'] = common.settings.SITE_NAME  # type: ignore[reportUnknownMemberType]
    templates.env.filters['datefmt'] = format_date  # type: ignore[reportUnknownMemberType]
    return templates


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(title: str, **kwargs: Any) -> fastapi.FastAPI:
    """Create a FastAPI app with health endpoint and logging configured.

    Additional keyword arguments are forwarded to FastAPI.__init__ (e.g. lifespan).
    """
    app = fastapi.FastAPI(title=title, debug=common.settings.DEBUG, **kwargs)
    configure_logging()
    app.include_router(_health_router)
    return app
