from typing import Protocol


class TokenCodec(Protocol):
    def encode(self, user_id: str) -> str:
        ...

    def decode(self, token: str) -> str:
        """Return the bound user id.

        Raises ``Forbidden`` with reason ``token_expired`` or ``invalid_token``.
        """
        ...
