"""Shared application settings read from environment variables."""

import os
import pathlib

REPO_ROOT = pathlib.Path(__file__).resolve().parent.parent

ENVIRONMENT: str = os.environ.get('ENVIRONMENT', 'production')
DEBUG: bool = ENVIRONMENT == 'development'

SITE_URL: str = os.environ.get('SITE_URL', 'https://openbook.ai').rstrip('/')
SITE_NAME: str = os.environ.get('SITE_NAME', 'OpenBook')

CONTENT_DIR = pathlib.Path(
    os.environ.get('CONTENT_DIR', str(REPO_ROOT / 'website' / 'content'))
)

# Seconds a loaded post list stays fresh: 5 minutes in development, 1 hour otherwise
BLOG_CACHE_TTL: float = float(
    os.environ.get('BLOG_CACHE_TTL', 5 * 60 if DEBUG else 60 * 60)
)

DATA_DIR: str = os.environ.get('DATA_DIR', 'data')
DATABASE_URL: str = os.environ.get(
    'DATABASE_URL', f'sqlite:///{DATA_DIR}/waitlist.db'
)

LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()
