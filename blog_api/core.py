import asyncio
import logging
from alembic import command
from alembic.config import Config as AlembicConfig
from prometheus_client import Counter, Histogram
from pythonjsonlogger import jsonlogger
from sqlalchemy import text
from .config import Settings
from .models import Database

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter(
    'blog_api_requests_total', 'HTTP requests handled', ['method', 'route', 'status']
)
REQUEST_LATENCY = Histogram(
    'blog_api_request_duration_seconds', 'HTTP request latency', ['method', 'route']
)


def configure_logging(settings: Settings):
    """Structured JSON logs on the package logger"""
    pkg_logger = logging.getLogger('blog_api')
    if not pkg_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
        pkg_logger.addHandler(handler)
    pkg_logger.setLevel(settings.log_level)
    pkg_logger.propagate = False

    # SQL statements only show up outside production, and only when asked for
    sa_level = logging.INFO if settings.sql_echo and not settings.is_production else logging.WARNING
    logging.getLogger('sqlalchemy.engine').setLevel(sa_level)


def observe_request(method: str, route: str, status: int, elapsed: float):
    REQUEST_COUNT.labels(method=method, route=route, status=str(status)).inc()
    REQUEST_LATENCY.labels(method=method, route=route).observe(elapsed)


def _upgrade(connection, script_location: str):
    cfg = AlembicConfig()
    cfg.set_main_option('script_location', script_location)
    cfg.attributes['connection'] = connection
    command.upgrade(cfg, 'head')


async def run_migrations(db: Database, migrations_dir: str):
    async with db.engine.begin() as conn:
        await conn.run_sync(_upgrade, migrations_dir)
    logger.info({'msg': 'migrations_applied', 'dir': migrations_dir})


async def database_startup(db: Database, settings: Settings, max_retries: int = 3, retry_delay: float = 3):
    """Wait for the database, then bring the schema up to date.

    Unlike the optional services this one is required: after the last failed
    attempt the error propagates and the app does not start.
    """
    for attempt in range(max_retries):
        try:
            logger.info(f"Attempting to connect to database (attempt {attempt + 1}/{max_retries})")
            async with db.engine.connect() as conn:
                await conn.execute(text('SELECT 1'))
            logger.info("Database connected successfully")
            break
        except Exception as e:
            logger.warning(f'Database startup attempt {attempt + 1} failed: {e}')
            if attempt < max_retries - 1:
                logger.info(f"Retrying database connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to connect to database after all retries")
                raise

    if settings.migrations_dir:
        await run_migrations(db, settings.migrations_dir)
    else:
        await db.create_all()
        logger.info({'msg': 'schema_created_from_metadata'})
