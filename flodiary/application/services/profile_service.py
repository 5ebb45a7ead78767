from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from ...domain.user import ProfileUpdate, User
from ...exceptions import Conflict, NotFound, validation_failed_from
from ..ports.user_repo import UserRepository


@dataclass
class ProfileService:
    user_repo: UserRepository

    async def get_profile(self, user_id: str) -> User:
        user = await self.user_repo.find_by_id(user_id)
        if user is None:
            raise NotFound("User")
        return user

    async def update_profile(self, user: User, changes: Mapping[str, Any]) -> User:
        try:
            update = ProfileUpdate.model_validate(changes)
        except ValidationError as exc:
            raise validation_failed_from(exc) from exc

        # Friendlier errors than the unique constraint on save
        if update.username is not None and update.username != user.username:
            if await self.user_repo.username_exists(update.username):
                raise Conflict("username", "Username already taken")
        if update.email is not None and update.email != user.email:
            if await self.user_repo.email_exists(update.email):
                raise Conflict("email", "Email already taken")

        user.update_profile(update)
        return await self.user_repo.save(user)
