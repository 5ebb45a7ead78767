import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import Any, Dict, List, Optional, Tuple

import pytest

from flodiary.application.ports.audit_logger import AuditLogger
from flodiary.application.ports.user_repo import UserRepository
from flodiary.application.services.auth_service import AuthService
from flodiary.domain.user import User
from flodiary.exceptions import UniqueConstraintViolation
from flodiary.infrastructure.security.jwt_codec import JwtTokenCodec
from flodiary.infrastructure.security.passlib_hasher import PasslibPasswordHasher

TEST_SECRET = "test-secret"


class FakeUserRepo(UserRepository):
    """In-memory store that round-trips users through their documents."""

    def __init__(self):
        self.documents: Dict[str, Tuple[Dict[str, Any], str]] = {}
        self.saves = 0

    def _load(self, user_id: str) -> User:
        document, password_hash = self.documents[user_id]
        return User.from_document(document, password_hash=password_hash)

    def _find(self, field: str, value: str) -> Optional[User]:
        value = value.strip().lower()
        for user_id, (document, _) in self.documents.items():
            if document[field] == value:
                return self._load(user_id)
        return None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return self._load(user_id) if user_id in self.documents else None

    async def find_by_username(self, username: str) -> Optional[User]:
        return self._find("username", username)

    async def find_by_email(self, email: str) -> Optional[User]:
        return self._find("email", email)

    async def username_exists(self, username: str) -> bool:
        return self._find("username", username) is not None

    async def email_exists(self, email: str) -> bool:
        return self._find("email", email) is not None

    async def save(self, user: User) -> User:
        user.check_invariants()
        for user_id, (document, _) in self.documents.items():
            if user_id == user.id:
                continue
            if document["username"] == user.username:
                raise UniqueConstraintViolation("username")
            if document["email"] == user.email:
                raise UniqueConstraintViolation("email")
        self.documents[user.id] = (user.to_dict(), user.password_hash)
        self.saves += 1
        return user


class RecordingAudit(AuditLogger):
    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def log(self, action, identifier, user_id=None, success=True, details=None):
        self.entries.append({
            "action": action,
            "identifier": identifier,
            "user_id": user_id,
            "success": success,
            "details": details or {},
        })


@pytest.fixture
def user_repo():
    return FakeUserRepo()


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture(scope="session")
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasslibPasswordHasher(rounds=4)


@pytest.fixture
def token_codec():
    return JwtTokenCodec(TEST_SECRET)


@pytest.fixture
def auth_service(user_repo, hasher, token_codec, audit):
    return AuthService(user_repo=user_repo, hasher=hasher, tokens=token_codec, audit=audit)


@pytest.fixture
def user():
    return User(first_name="Jane", last_name="Doe", username="jane_doe", email="jane@example.com")
