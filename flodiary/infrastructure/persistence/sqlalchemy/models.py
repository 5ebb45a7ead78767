# flodiary/infrastructure/persistence/sqlalchemy/models.py
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from ....utils import utc_now


class UserRecord(SQLModel, table=True):
    """One row per user aggregate.

    ``document`` holds the whole aggregate (profile, cycles, daily entries,
    stats, predictions, app metadata). The scalar columns exist for the
    unique constraints, lookups and sorting, and are rewritten from the
    document on every save.
    """
    __tablename__ = "users"
    id: str = Field(primary_key=True, max_length=32)
    username: str = Field(max_length=30, unique=True, index=True)
    email: str = Field(max_length=254, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), index=True, nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), index=True, nullable=True))
    document: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
