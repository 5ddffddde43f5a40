import uuid
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from blog_api.config import Settings
from blog_api.main import create_app
from blog_api.models import Database, User

TEST_SECRET = 'test-secret-key'


@pytest.fixture
def settings(tmp_path):
    # fresh SQLite file per test, cheap bcrypt
    return Settings(
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}",
        environment='test',
        bcrypt_rounds=4,
    )


@pytest_asyncio.fixture
async def db(settings):
    database = Database(settings.database_url)
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def app(settings, db):
    return create_app(settings, database=db)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        yield ac


def auth(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


async def register(client, name: str = None, password: str = 'secret1', **extra) -> dict:
    """Register a user and return the response data (tokens + user)."""
    name = name or f'user_{uuid.uuid4().hex[:8]}'
    body = {'email': f'{name}@example.org', 'username': name, 'password': password}
    body.update(extra)
    res = await client.post('/api/auth/register', json=body)
    assert res.status_code == 201, res.text
    return res.json()['data']


async def make_admin(db, client, account: dict, password: str = 'secret1') -> str:
    """Promote a registered user to admin and return a fresh access token carrying the role."""
    async with db.sessionmaker() as session:
        await session.execute(update(User).where(User.id == account['user']['id']).values(role='admin'))
        await session.commit()
    res = await client.post('/api/auth/login', json={'email': account['user']['email'], 'password': password})
    assert res.status_code == 200, res.text
    return res.json()['data']['accessToken']


async def create_post(client, token: str, **fields) -> dict:
    body = {'title': 'A trip to Lisbon', 'content': 'Trams, tiles and pastel de nata.'}
    body.update(fields)
    res = await client.post('/api/posts', json=body, headers=auth(token))
    assert res.status_code == 201, res.text
    return res.json()['data']
