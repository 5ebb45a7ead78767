import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from ..application.ports.audit_logger import AuditLogger
from ..application.ports.password_hasher import PasswordHasher
from ..application.ports.token_codec import TokenCodec
from ..application.ports.user_repo import UserRepository
from ..application.services.auth_service import AuthService
from ..application.services.profile_service import ProfileService
from ..application.services.tracker_service import TrackerService
from ..core.config import settings
from ..domain.user import User
from ..exceptions import Unauthorized
from ..infrastructure.audit.std_logger import StdAuditLogger
from ..infrastructure.persistence.sqlalchemy.database import get_session
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..infrastructure.security.jwt_codec import JwtTokenCodec
from ..infrastructure.security.passlib_hasher import PasslibPasswordHasher

logger = logging.getLogger(__name__)

# Auth scheme
oauth2_scheme = HTTPBearer(auto_error=False)


def get_user_repository(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return SqlUserRepository(session)


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return PasslibPasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache()
def get_token_codec() -> TokenCodec:
    if settings.SECRET_KEY == "change-me-in-prod" and not settings.DEBUG:
        logger.warning("JWT_SECRET_KEY is not set, tokens are signed with the default key")
    return JwtTokenCodec(settings.SECRET_KEY, settings.ALGORITHM, settings.ACCESS_TOKEN_EXPIRE_DAYS)


@lru_cache()
def get_audit_logger() -> AuditLogger:
    return StdAuditLogger()


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenCodec = Depends(get_token_codec),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuthService:
    return AuthService(
        user_repo=user_repo,
        hasher=hasher,
        tokens=tokens,
        audit=audit,
        min_password_length=settings.MIN_PASSWORD_LENGTH,
    )


def get_profile_service(user_repo: UserRepository = Depends(get_user_repository)) -> ProfileService:
    return ProfileService(user_repo=user_repo)


def get_tracker_service(user_repo: UserRepository = Depends(get_user_repository)) -> TrackerService:
    return TrackerService(user_repo=user_repo)


# Dependency to get current user from JWT
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        # Fallback to cookie
        token = request.cookies.get("access_token")
    if not token:
        raise Unauthorized("Access token required")
    return await auth.authenticate(token)
