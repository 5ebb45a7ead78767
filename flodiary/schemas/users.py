from pydantic import Field

from .common import ApiModel


class PasswordChangeRequest(ApiModel):
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., description="New password, at least 6 characters")
