from .auth import Principal
from .errors import ForbiddenError

ADMIN_ROLE = 'admin'


def can_modify(owner_id: int, requester_id: int, requester_role: str) -> bool:
    return owner_id == requester_id or requester_role == ADMIN_ROLE


def ensure_can_modify(owner_id: int, principal: Principal):
    if not can_modify(owner_id, principal.user_id, principal.role):
        raise ForbiddenError('permission denied')
