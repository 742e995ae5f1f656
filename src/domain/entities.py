from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["owner", "admin", "editor", "support"]
UserStatus = Literal["active", "disabled"]
TokenKind = Literal["admin", "customer"]


def _now() -> datetime:
    return datetime.now(UTC)


# --- Admin users ---


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    display_name: str
    password_hash: str
    roles: list[RoleType] = Field(default_factory=list)
    status: UserStatus = "active"
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class CustomerPrincipal(BaseModel):
    """A storefront customer authenticated by email and order id."""

    customer_id: UUID
    email: str
