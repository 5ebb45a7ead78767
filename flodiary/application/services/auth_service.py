import asyncio
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from ...domain.user import User
from ...exceptions import Conflict, Forbidden, Unauthorized, ValidationFailed, validation_failed_from
from ..ports.audit_logger import AuditLogger
from ..ports.password_hasher import PasswordHasher
from ..ports.token_codec import TokenCodec
from ..ports.user_repo import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthService:
    """Password and session-token authentication for user aggregates.

    bcrypt is slow on purpose, so hashing and verification run in a worker
    thread instead of on the event loop.
    """
    user_repo: UserRepository
    hasher: PasswordHasher
    tokens: TokenCodec
    audit: AuditLogger
    min_password_length: int = 6

    def _check_password(self, raw_password: str, field_name: str = "password") -> None:
        if not raw_password or len(raw_password) < self.min_password_length:
            raise ValidationFailed(
                f"Password must be at least {self.min_password_length} characters",
                field=field_name,
            )

    async def _hash(self, raw_password: str) -> str:
        return await asyncio.to_thread(self.hasher.hash, raw_password)

    async def register(self, first_name: str, last_name: str, username: str, email: str, raw_password: str) -> User:
        self._check_password(raw_password)
        if await self.user_repo.username_exists(username):
            self.audit.log("register", username, success=False, details={"reason": "username_taken"})
            raise Conflict("username", "Username already taken")
        if await self.user_repo.email_exists(email):
            self.audit.log("register", email, success=False, details={"reason": "email_taken"})
            raise Conflict("email", "User with this email already exists")

        try:
            user = User(first_name=first_name, last_name=last_name, username=username, email=email)
        except ValidationError as exc:
            raise validation_failed_from(exc) from exc
        user.set_password_hash(await self._hash(raw_password))
        await self.user_repo.save(user)

        self.audit.log("register", user.email, user_id=user.id)
        logger.info(f"Registered user {user.id}")
        return user

    async def verify(self, identifier: str, raw_password: str) -> User:
        """Check a username-or-email and password pair."""
        user = await self.user_repo.find_by_username(identifier)
        if user is None:
            user = await self.user_repo.find_by_email(identifier)
        if user is None:
            # keep the timing close to a real comparison
            await asyncio.to_thread(self.hasher.dummy_verify)
            self.audit.log("login", identifier, success=False, details={"reason": "unknown_user"})
            raise Unauthorized("Invalid credentials")

        matches = await asyncio.to_thread(self.hasher.verify, raw_password, user.password_hash)
        if not matches:
            self.audit.log("login", identifier, user_id=user.id, success=False, details={"reason": "bad_password"})
            raise Unauthorized("Invalid credentials")

        if self.hasher.needs_update(user.password_hash):
            user.set_password_hash(await self._hash(raw_password))
            logger.info(f"Upgraded password hash for user {user.id}")
        self.audit.log("login", identifier, user_id=user.id)
        return user

    async def record_login(self, user: User) -> User:
        user.mark_logged_in()
        return await self.user_repo.save(user)

    def issue_token(self, user_id: str) -> str:
        return self.tokens.encode(user_id)

    async def authenticate(self, token: str) -> User:
        try:
            user_id = self.tokens.decode(token)
        except Forbidden as exc:
            self.audit.log("authenticate", "token", success=False, details={"reason": exc.reason})
            raise
        user = await self.user_repo.find_by_id(user_id)
        if user is None:
            self.audit.log("authenticate", user_id, user_id=user_id, success=False, details={"reason": "user_not_found"})
            raise Forbidden("user_not_found")
        if not user.is_active:
            self.audit.log("authenticate", user_id, user_id=user_id, success=False, details={"reason": "user_inactive"})
            raise Forbidden("user_inactive")
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> User:
        matches = await asyncio.to_thread(self.hasher.verify, current_password, user.password_hash)
        if not matches:
            self.audit.log("change_password", user.email, user_id=user.id, success=False)
            raise ValidationFailed("Current password is incorrect", field="currentPassword")
        self._check_password(new_password, field_name="newPassword")
        user.set_password_hash(await self._hash(new_password))
        await self.user_repo.save(user)
        self.audit.log("change_password", user.email, user_id=user.id)
        return user
