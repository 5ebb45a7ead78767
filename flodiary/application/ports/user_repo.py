from typing import Optional, Protocol

from ...domain.user import User


class UserRepository(Protocol):
    """Load/save access to user aggregates.

    Lookups by username and email are case-insensitive. ``save`` raises
    ``UniqueConstraintViolation`` when the username or email belongs to a
    different user and ``ValidationFailed`` when the document breaks an
    invariant.
    """

    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def find_by_username(self, username: str) -> Optional[User]:
        ...

    async def find_by_email(self, email: str) -> Optional[User]:
        ...

    async def save(self, user: User) -> User:
        ...

    async def username_exists(self, username: str) -> bool:
        ...

    async def email_exists(self, email: str) -> bool:
        ...
