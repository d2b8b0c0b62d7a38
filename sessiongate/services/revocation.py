"""Revocation ledgers: per-credential revocations and per-subject password-change cutoffs.

Both capabilities share one physical table (``revocation_entries``) but are
exposed as separate protocols so callers, and tests, depend only on the
lookup they actually perform.

Ordering: a revocation is visible to every process once ``revoke`` or
``mark_password_changed`` returns (the write is committed before
returning). Requests that already passed the gate before that point are not
recalled; revocation takes effect from the next request.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sessiongate.core.clock import as_utc
from sessiongate.models.revocation_entry import RevocationEntry
from sessiongate.services.rejections import InvalidCredentialError
from sessiongate.services.token_codec import SessionClaims, TokenCodec

logger = logging.getLogger(__name__)


class RevocationReason(str, Enum):
    """Why a credential (or every credential of a subject) was revoked."""

    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"
    ADMIN_REVOKE = "admin_revoke"


class TokenRevocationLedger(Protocol):
    """Exact-credential revocations.

    ``revoke`` takes the entry's expiry from the credential's own claims and
    raises ``InvalidCredentialError`` when the credential is forged or belongs
    to another subject.
    """

    async def revoke(
        self, credential: str, subject_id: str, reason: RevocationReason
    ) -> bool: ...

    async def is_revoked(self, credential: str) -> bool: ...

    async def reason_for(self, credential: str) -> RevocationReason | None: ...

    async def sweep_expired(self, now: datetime) -> int: ...


class PasswordChangeCutoffLedger(Protocol):
    """Per-subject "everything issued before T is void" lookups."""

    async def mark_password_changed(self, subject_id: str, at: datetime) -> None: ...

    async def cutoff(self, subject_id: str) -> datetime | None: ...


def cutoff_key(subject_id: str, at: datetime) -> str:
    """Synthetic credential key for a password-change marker row."""
    micros = int(as_utc(at).timestamp() * 1_000_000)
    return f"password_change:{subject_id}:{micros}"


def revocation_claims(codec: TokenCodec, credential: str, subject_id: str) -> SessionClaims:
    """Claims that a revocation of ``credential`` is recorded under.

    Subject and expiry always come from the signed credential, never from the
    caller, so every entry is pruned exactly when its credential dies.

    Raises:
        InvalidCredentialError: if the signature is invalid or the credential
            was issued to a different subject.
    """
    claims = codec.peek(credential)
    if claims is None:
        raise InvalidCredentialError("Credential signature is invalid")
    if claims.subject_id != subject_id:
        raise InvalidCredentialError(f"Credential was not issued to subject {subject_id}")
    return claims


class SqlRevocationStore:
    """Database-backed ledger implementing both revocation capabilities.

    Each call uses its own short-lived session from ``session_factory`` so the
    store can be shared by middleware, routes and background tasks. ``codec``
    decodes revoked credentials; its TTL also bounds how long a cutoff row is
    kept.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], codec: TokenCodec):
        self._session_factory = session_factory
        self._codec = codec

    async def revoke(self, credential: str, subject_id: str, reason: RevocationReason) -> bool:
        """Record a revocation. Returns False if the credential was already listed."""
        claims = revocation_claims(self._codec, credential, subject_id)
        async with self._session_factory() as db:
            db.add(
                RevocationEntry(
                    credential=credential,
                    subject_id=claims.subject_id,
                    reason=reason.value,
                    expires_at=claims.expires_at,
                )
            )
            try:
                await db.commit()
            except IntegrityError:
                # Already listed, possibly by a concurrent writer; first reason wins
                await db.rollback()
                return False
        logger.info(f"Revoked credential for subject {subject_id} ({reason.value})")
        return True

    async def is_revoked(self, credential: str) -> bool:
        return await self.reason_for(credential) is not None

    async def reason_for(self, credential: str) -> RevocationReason | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(RevocationEntry.reason).where(RevocationEntry.credential == credential)
            )
            reason = result.scalar_one_or_none()
        return RevocationReason(reason) if reason is not None else None

    async def mark_password_changed(self, subject_id: str, at: datetime) -> None:
        at = as_utc(at)
        async with self._session_factory() as db:
            db.add(
                RevocationEntry(
                    credential=cutoff_key(subject_id, at),
                    subject_id=subject_id,
                    reason=RevocationReason.PASSWORD_CHANGE.value,
                    expires_at=at + self._codec.ttl,
                    created_at=at,
                )
            )
            try:
                await db.commit()
            except IntegrityError:
                # Same subject, same microsecond: the cutoff already exists
                await db.rollback()
                return
        logger.info(f"Password change cutoff recorded for subject {subject_id}")

    async def cutoff(self, subject_id: str) -> datetime | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(RevocationEntry.created_at)
                .where(
                    RevocationEntry.subject_id == subject_id,
                    RevocationEntry.reason == RevocationReason.PASSWORD_CHANGE.value,
                )
                .order_by(RevocationEntry.created_at.desc())
                .limit(1)
            )
            latest = result.scalar_one_or_none()
        return as_utc(latest) if latest is not None else None

    async def sweep_expired(self, now: datetime) -> int:
        """Delete entries whose credential has expired anyway. Returns count removed."""
        async with self._session_factory() as db:
            result: CursorResult[Any] = await db.execute(  # type: ignore[assignment]
                delete(RevocationEntry).where(RevocationEntry.expires_at < as_utc(now))
            )
            await db.commit()
        return result.rowcount or 0
