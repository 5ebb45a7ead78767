from typing import Protocol


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str) -> bool:
        ...

    def needs_update(self, password_hash: str) -> bool:
        ...

    def dummy_verify(self) -> None:
        ...
