from passlib.context import CryptContext

from ...application.ports.password_hasher import PasswordHasher


class PasslibPasswordHasher(PasswordHasher):
    """bcrypt through passlib; salts are generated per hash."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return self.context.verify(password, password_hash)
        except ValueError:
            # malformed or unknown hash in storage
            return False

    def needs_update(self, password_hash: str) -> bool:
        return self.context.needs_update(password_hash)

    def dummy_verify(self) -> None:
        self.context.dummy_verify()
