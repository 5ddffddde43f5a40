import dataclasses
from pathlib import Path
import pytest
from sqlalchemy import inspect
import blog_api
from blog_api.core import database_startup
from blog_api.models import Database

MIGRATIONS_DIR = str(Path(blog_api.__file__).parent / 'alembic')


@pytest.mark.asyncio
async def test_startup_applies_migrations(settings):
    settings = dataclasses.replace(settings, migrations_dir=MIGRATIONS_DIR)
    database = Database(settings.database_url)
    try:
        await database_startup(database, settings, max_retries=1, retry_delay=0)
        async with database.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
            version = (await conn.exec_driver_sql('SELECT version_num FROM alembic_version')).scalar_one()
    finally:
        await database.dispose()

    assert {'users', 'posts', 'comments', 'refresh_tokens', 'alembic_version'} <= tables
    assert version == '0001'


@pytest.mark.asyncio
async def test_migrations_are_idempotent(settings):
    settings = dataclasses.replace(settings, migrations_dir=MIGRATIONS_DIR)
    database = Database(settings.database_url)
    try:
        await database_startup(database, settings, max_retries=1, retry_delay=0)
        await database_startup(database, settings, max_retries=1, retry_delay=0)
        async with database.engine.connect() as conn:
            rows = (await conn.exec_driver_sql('SELECT count(*) FROM alembic_version')).scalar_one()
    finally:
        await database.dispose()
    assert rows == 1
