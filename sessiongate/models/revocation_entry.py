"""Revocation ledger rows - survive process restarts and are shared by every worker."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sessiongate.core.clock import utc_now
from sessiongate.core.database import Base


class RevocationEntry(Base):
    """A revoked session credential, or a password-change cutoff marker.

    One table serves two lookups:
    - exact credential match (unique ``credential`` index) for logout and
      admin revocations;
    - newest ``password_change`` row per subject (``subject_id, reason,
      created_at`` index) for the cutoff check.

    ``expires_at`` is the revoked credential's own expiry, so a row is only
    kept while the credential it blocks could still be presented.
    """

    __tablename__ = "revocation_entries"
    __table_args__ = (
        Index("ix_revocation_entries_subject_reason_created", "subject_id", "reason", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    credential: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return f"<RevocationEntry subject={self.subject_id!r} reason={self.reason!r}>"
