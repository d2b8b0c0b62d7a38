"""Member model backing subject profile lookups."""

import uuid

from sqlalchemy import Boolean, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sessiongate.models.base import BaseModel


class Member(BaseModel):
    """An account that can hold session credentials.

    Rows are written by the identity service (registration, password
    management). The session gate only reads the non-sensitive columns;
    ``password_hash`` is never selected here.
    """

    __tablename__ = "members"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="member")
    # Members without an organization authenticate but are not admitted
    organization_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Member {self.email}>"
