from passlib.context import CryptContext


class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self._ctx = CryptContext(schemes=['bcrypt'], deprecated='auto', bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._ctx.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        # passlib raises on hashes it cannot identify; treat those as a mismatch
        try:
            return self._ctx.verify(password, hashed)
        except (ValueError, TypeError):
            return False
