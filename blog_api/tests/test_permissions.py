import pytest
from blog_api.auth import Principal
from blog_api.errors import ForbiddenError
from blog_api.permissions import can_modify, ensure_can_modify


def test_owner_can_modify():
    assert can_modify(1, 1, 'user')


def test_admin_can_modify_anything():
    assert can_modify(1, 2, 'admin')


def test_stranger_cannot_modify():
    assert not can_modify(1, 2, 'user')
    assert not can_modify(1, 2, 'moderator')


def test_ensure_can_modify_raises_403():
    ensure_can_modify(5, Principal(user_id=5, email='a@x.com', role='user'))
    with pytest.raises(ForbiddenError) as info:
        ensure_can_modify(5, Principal(user_id=6, email='b@x.com', role='user'))
    assert info.value.status_code == 403
