"""Tables owned by the SALAK core.

Documents, categories and versions live in other tables that the core
never touches."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("email", String(255), unique=True, nullable=True),
    Column("name", String(255), nullable=False),
    Column("role", String(16), nullable=False, server_default="user"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now),
)

api_keys = Table(
    "api_keys",
    metadata,
    Column("id", String(36), primary_key=True, default=_uuid),
    Column("user_id", ForeignKey("users.id"), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("encrypted_key", Text(), nullable=False),
    Column("iv", String(32), nullable=False),
    Column("auth_tag", String(32), nullable=False),
    Column("is_active", Boolean(), nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now),
    Column("last_used_at", DateTime(timezone=True), nullable=True),
    UniqueConstraint("user_id", "name", name="uq_api_keys_user_name"),
)

system_logs = Table(
    "system_logs",
    metadata,
    Column("id", Integer(), primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=True, index=True),
    Column("action", String(255), nullable=False),
    Column("resource", Text(), nullable=True),
    Column("status", String(16), nullable=False),
    Column("ip_address", String(64), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now, index=True),
)
