import logging
from datetime import timedelta

import jwt

from ...application.ports.token_codec import TokenCodec
from ...exceptions import Forbidden
from ...utils import utc_now

logger = logging.getLogger(__name__)


class JwtTokenCodec(TokenCodec):
    """Signed, time-limited session tokens carrying only the user id."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 7):
        if not secret_key:
            raise ValueError("SECRET_KEY not properly configured")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = timedelta(days=expire_days)

    def encode(self, user_id: str) -> str:
        issued_at = utc_now()
        payload = {"sub": user_id, "iat": issued_at, "exp": issued_at + self.lifetime}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> str:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise Forbidden("token_expired") from None
        except jwt.InvalidTokenError as e:
            logger.debug(f"JWT rejected: {e}")
            raise Forbidden("invalid_token") from None
        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise Forbidden("invalid_token")
        return user_id
