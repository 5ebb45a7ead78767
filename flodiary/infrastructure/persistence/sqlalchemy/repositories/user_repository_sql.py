import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from .....application.ports.user_repo import UserRepository
from .....domain.user import User
from .....exceptions import InternalFailure, UniqueConstraintViolation
from .....utils import utc_now
from ..models import UserRecord

logger = logging.getLogger(__name__)


class SqlUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, record: UserRecord) -> User:
        return User.from_document(record.document, password_hash=record.password_hash)

    async def _first(self, statement) -> Optional[UserRecord]:
        try:
            result = await self.session.exec(statement)
            return result.first()
        except SQLAlchemyError as e:
            logger.error(f"User lookup failed: {e}")
            raise InternalFailure("Storage unavailable") from e

    async def find_by_id(self, user_id: str) -> Optional[User]:
        record = await self._first(select(UserRecord).where(UserRecord.id == user_id))
        return self._to_domain(record) if record else None

    async def find_by_username(self, username: str) -> Optional[User]:
        record = await self._first(select(UserRecord).where(UserRecord.username == username.strip().lower()))
        return self._to_domain(record) if record else None

    async def find_by_email(self, email: str) -> Optional[User]:
        record = await self._first(select(UserRecord).where(UserRecord.email == email.strip().lower()))
        return self._to_domain(record) if record else None

    async def username_exists(self, username: str) -> bool:
        return await self._exists(UserRecord.username == username.strip().lower())

    async def email_exists(self, email: str) -> bool:
        return await self._exists(UserRecord.email == email.strip().lower())

    async def _exists(self, condition) -> bool:
        try:
            result = await self.session.exec(select(func.count()).select_from(UserRecord).where(condition))
            return result.one() > 0
        except SQLAlchemyError as e:
            logger.error(f"User existence check failed: {e}")
            raise InternalFailure("Storage unavailable") from e

    async def save(self, user: User) -> User:
        user.check_invariants()
        previous_updated_at = user.updated_at
        user.updated_at = utc_now()
        document = user.to_dict()
        try:
            record = await self.session.get(UserRecord, user.id)
            if record is None:
                record = UserRecord(id=user.id, created_at=user.created_at)
            record.username = user.username
            record.email = user.email
            record.password_hash = user.password_hash
            record.is_active = user.is_active
            record.updated_at = user.updated_at
            record.last_login_at = user.last_login_at
            record.document = document
            self.session.add(record)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            user.updated_at = previous_updated_at
            field = await self._colliding_field(user)
            logger.info(f"Save of user {user.id} rejected, duplicate {field}")
            raise UniqueConstraintViolation(field) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            user.updated_at = previous_updated_at
            logger.error(f"Saving user {user.id} failed: {e}")
            raise InternalFailure("Storage unavailable") from e
        return user

    async def _colliding_field(self, user: User) -> str:
        # The driver's message format differs per backend, so ask the table.
        for field, column in (("username", UserRecord.username), ("email", UserRecord.email)):
            statement = select(UserRecord.id).where(column == getattr(user, field), UserRecord.id != user.id)
            if (await self.session.exec(statement)).first() is not None:
                return field
        return "username"
