from typing import Optional

from pydantic import Field, model_validator

from .common import ApiModel


class SignupRequest(ApiModel):
    first_name: str = Field(..., description="User's first name")
    last_name: str = Field(..., description="User's last name")
    username: str = Field(..., description="3-30 letters, digits or underscores")
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="At least 6 characters")


class LoginRequest(ApiModel):
    username: Optional[str] = Field(None, description="Username (or use email)")
    email: Optional[str] = Field(None, description="Email (or use username)")
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _require_identifier(self) -> "LoginRequest":
        if not (self.username or self.email):
            raise ValueError("Please provide username or email")
        return self

    @property
    def identifier(self) -> str:
        return self.username or self.email
