import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError, ExpiredSignatureError
from .config import Settings
from .errors import InvalidToken, ExpiredToken


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, handed to route handlers by deps.get_principal."""

    user_id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> 'Principal':
        return cls(user_id=claims.user_id, email=claims.email, role=claims.role)


class TokenService:
    """Issues and validates the HMAC-signed access and refresh tokens.

    Both token kinds carry the same claims; they only differ in lifetime.
    """

    def __init__(self, settings: Settings):
        if not settings.jwt_secret:
            raise RuntimeError('JWT secret is not configured')
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self.access_ttl_hours = settings.access_token_ttl_hours
        self.refresh_ttl_hours = settings.refresh_token_ttl_hours

    def issue(self, user_id: int, email: str, role: str, ttl_hours: float) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            'userId': user_id,
            'email': email,
            'role': role,
            'iat': now,
            'exp': now + timedelta(hours=ttl_hours),
            # keeps tokens minted in the same second distinct
            'jti': uuid.uuid4().hex,
        }
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def issue_access_token(self, user_id: int, email: str, role: str) -> str:
        return self.issue(user_id, email, role, self.access_ttl_hours)

    def issue_refresh_token(self, user_id: int, email: str, role: str) -> str:
        return self.issue(user_id, email, role, self.refresh_ttl_hours)

    def refresh_expires_at(self) -> datetime:
        return datetime.now(timezone.utc) + timedelta(hours=self.refresh_ttl_hours)

    def validate(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={'require_exp': True, 'require_iat': True},
            )
        except ExpiredSignatureError:
            raise ExpiredToken()
        except JWTError:
            raise InvalidToken()

        user_id = payload.get('userId')
        email = payload.get('email')
        role = payload.get('role')
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not email or not role:
            raise InvalidToken('invalid token payload')

        return TokenClaims(
            user_id=user_id,
            email=email,
            role=role,
            issued_at=datetime.fromtimestamp(payload['iat'], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload['exp'], tz=timezone.utc),
        )
