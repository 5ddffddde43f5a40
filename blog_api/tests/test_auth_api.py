import threading
import pytest
from sqlalchemy import delete, select
from blog_api.models import RefreshToken, User
from blog_api.passwords import PasswordHasher
from conftest import auth, register


@pytest.mark.asyncio
async def test_register_returns_tokens_and_public_user(client, db):
    res = await client.post('/api/auth/register', json={
        'email': 'a@x.com',
        'username': 'alice',
        'password': 'secret1',
        'firstName': 'Alice',
    })
    assert res.status_code == 201, res.text
    body = res.json()
    assert body['success'] is True
    data = body['data']
    assert data['accessToken'] and data['refreshToken']
    user = data['user']
    assert user['email'] == 'a@x.com'
    assert user['username'] == 'alice'
    assert user['firstName'] == 'Alice'
    assert user['lastName'] is None
    assert user['role'] == 'user'
    assert 'password' not in user and 'hashedPassword' not in user

    # refresh token is persisted at issuance
    async with db.sessionmaker() as session:
        rows = (await session.execute(select(RefreshToken).where(RefreshToken.user_id == user['id']))).scalars().all()
    assert [r.token for r in rows] == [data['refreshToken']]


@pytest.mark.asyncio
async def test_register_conflicts(client):
    await register(client, 'alice')

    same_email = await client.post('/api/auth/register', json={
        'email': 'alice@example.org', 'username': 'other', 'password': 'secret1'})
    assert same_email.status_code == 409
    assert same_email.json() == {'success': False, 'error': 'user with this email or username already exists'}

    same_username = await client.post('/api/auth/register', json={
        'email': 'other@example.org', 'username': 'alice', 'password': 'secret1'})
    assert same_username.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize('body', [
    {'email': 'not-an-email', 'username': 'bob', 'password': 'secret1'},
    {'email': 'bob@example.org', 'username': 'bo', 'password': 'secret1'},
    {'email': 'bob@example.org', 'username': 'bob', 'password': '12345'},
    {'email': 'bob@example.org', 'password': 'secret1'},
])
async def test_register_rejects_bad_input(client, body):
    res = await client.post('/api/auth/register', json=body)
    assert res.status_code == 400
    payload = res.json()
    assert payload['success'] is False
    assert payload['error'].startswith('Invalid request data')


@pytest.mark.asyncio
async def test_login(client):
    await register(client, 'carol', password='pa55word')
    res = await client.post('/api/auth/login', json={'email': 'carol@example.org', 'password': 'pa55word'})
    assert res.status_code == 200
    data = res.json()['data']
    assert data['user']['username'] == 'carol'
    me = await client.get('/api/auth/me', headers=auth(data['accessToken']))
    assert me.status_code == 200


@pytest.mark.asyncio
async def test_login_does_not_reveal_which_part_was_wrong(client):
    await register(client, 'dave')
    wrong_pw = await client.post('/api/auth/login', json={'email': 'dave@example.org', 'password': 'nope-nope'})
    no_user = await client.post('/api/auth/login', json={'email': 'ghost@example.org', 'password': 'nope-nope'})
    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.json() == no_user.json() == {'success': False, 'error': 'invalid email or password'}


@pytest.mark.asyncio
async def test_me(client):
    account = await register(client, 'erin')
    res = await client.get('/api/auth/me', headers=auth(account['accessToken']))
    assert res.status_code == 200
    user = res.json()['data']
    assert user['id'] == account['user']['id']
    assert 'hashedPassword' not in user


@pytest.mark.asyncio
@pytest.mark.parametrize('headers, error', [
    ({}, 'Authorization header required'),
    ({'Authorization': 'Token abc'}, 'Invalid authorization header format'),
    ({'Authorization': 'Bearer'}, 'Invalid authorization header format'),
    ({'Authorization': 'Bearer not.a.token'}, 'Invalid or expired token'),
])
async def test_me_requires_valid_bearer(client, headers, error):
    res = await client.get('/api/auth/me', headers=headers)
    assert res.status_code == 401
    assert res.json() == {'success': False, 'error': error}


@pytest.mark.asyncio
async def test_me_with_expired_token(client, app):
    account = await register(client, 'frank')
    expired = app.state.tokens.issue(account['user']['id'], 'frank@example.org', 'user', ttl_hours=-1)
    res = await client.get('/api/auth/me', headers=auth(expired))
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_me_for_deleted_user(client, db):
    account = await register(client, 'gina')
    async with db.sessionmaker() as session:
        await session.execute(delete(RefreshToken).where(RefreshToken.user_id == account['user']['id']))
        await session.execute(delete(User).where(User.id == account['user']['id']))
        await session.commit()
    res = await client.get('/api/auth/me', headers=auth(account['accessToken']))
    assert res.status_code == 404
    assert res.json()['error'] == 'user not found'


@pytest.mark.asyncio
async def test_logout_is_idempotent(client, db):
    account = await register(client, 'hank')
    headers = auth(account['accessToken'])
    body = {'refreshToken': account['refreshToken']}

    first = await client.post('/api/auth/logout', json=body, headers=headers)
    assert first.status_code == 200
    assert first.json() == {'success': True, 'message': 'Logged out successfully'}

    async with db.sessionmaker() as session:
        left = (await session.execute(select(RefreshToken).where(RefreshToken.token == account['refreshToken']))).scalars().first()
    assert left is None

    second = await client.post('/api/auth/logout', json=body, headers=headers)
    assert second.status_code == 200

    unknown = await client.post('/api/auth/logout', json={'refreshToken': 'never-issued'}, headers=headers)
    assert unknown.status_code == 200


@pytest.mark.asyncio
async def test_access_token_outlives_logout(client):
    account = await register(client, 'ivy')
    headers = auth(account['accessToken'])
    await client.post('/api/auth/logout', json={'refreshToken': account['refreshToken']}, headers=headers)
    res = await client.get('/api/auth/me', headers=headers)
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_logout_requirements(client):
    account = await register(client, 'jack')
    no_auth = await client.post('/api/auth/logout', json={'refreshToken': account['refreshToken']})
    assert no_auth.status_code == 401

    no_token = await client.post('/api/auth/logout', json={}, headers=auth(account['accessToken']))
    assert no_token.status_code == 400


class RecordingHasher(PasswordHasher):
    def __init__(self):
        super().__init__(rounds=4)
        self.threads = []

    def hash(self, password):
        self.threads.append(threading.get_ident())
        return super().hash(password)

    def verify(self, password, hashed):
        self.threads.append(threading.get_ident())
        return super().verify(password, hashed)


@pytest.mark.asyncio
async def test_password_work_runs_off_the_event_loop(client, app):
    hasher = RecordingHasher()
    app.state.hasher = hasher
    await register(client, 'kate')
    res = await client.post('/api/auth/login', json={'email': 'kate@example.org', 'password': 'secret1'})
    assert res.status_code == 200
    assert len(hasher.threads) == 2
    assert threading.get_ident() not in hasher.threads
