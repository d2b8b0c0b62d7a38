"""Per-request session gate.

Runs a request's bearer credential through every check in a fixed order and
produces a ``GateDecision``. Each step either rejects (and the request stops
there) or moves on:

    credential present -> signature/expiry -> not revoked
        -> not older than the latest password change -> profile exists
        -> membership -> admitted

Every rejection is a value, not an exception. Store failures are treated as
"could not confirm validity" and reject the request (fail-closed).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

from sessiongate.services.profiles import ProfileDirectory, SubjectProfile, is_member
from sessiongate.services.rejections import RejectionKind
from sessiongate.services.revocation import (
    PasswordChangeCutoffLedger,
    RevocationReason,
    TokenRevocationLedger,
)
from sessiongate.services.token_codec import SessionClaims, TokenCodec

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LOOKUP_TIMEOUT = 2.0

# Failures that mean "the store could not answer", not "the answer is no"
STORE_ERRORS: tuple[type[BaseException], ...] = (SQLAlchemyError, OSError, TimeoutError)

REJECTION_STATUS: dict[RejectionKind, int] = {
    RejectionKind.NO_CREDENTIAL: 401,
    RejectionKind.MALFORMED_CREDENTIAL: 401,
    RejectionKind.EXPIRED_CREDENTIAL: 401,
    RejectionKind.REVOKED: 401,
    RejectionKind.SUPERSEDED_BY_PASSWORD_CHANGE: 401,
    RejectionKind.UNKNOWN_SUBJECT: 401,
    RejectionKind.NOT_AUTHORIZED: 403,
    RejectionKind.STORE_UNAVAILABLE: 401,
}

REJECTION_MESSAGES: dict[RejectionKind, str] = {
    RejectionKind.NO_CREDENTIAL: "Access denied, no credential provided",
    RejectionKind.MALFORMED_CREDENTIAL: "Invalid credential",
    RejectionKind.EXPIRED_CREDENTIAL: "Credential expired, please log in again",
    RejectionKind.REVOKED: "Credential revoked, please log in again",
    RejectionKind.SUPERSEDED_BY_PASSWORD_CHANGE: "Password changed, please log in again",
    RejectionKind.UNKNOWN_SUBJECT: "User not found",
    RejectionKind.NOT_AUTHORIZED: "Access restricted to organization members",
    RejectionKind.STORE_UNAVAILABLE: "Could not verify credential, please log in again",
}

REVOCATION_MESSAGES: dict[RevocationReason, str] = {
    RevocationReason.LOGOUT: "Session expired, please log in again",
    RevocationReason.PASSWORD_CHANGE: "Password changed, please log in again",
    RevocationReason.ADMIN_REVOKE: "Session revoked by an administrator, please log in again",
}

for _table, _enum in (
    (REJECTION_STATUS, RejectionKind),
    (REJECTION_MESSAGES, RejectionKind),
    (REVOCATION_MESSAGES, RevocationReason),
):
    _missing = set(_enum) - set(_table)
    if _missing:
        raise RuntimeError(f"Unmapped {_enum.__name__} members: {sorted(m.value for m in _missing)}")


@dataclass(frozen=True)
class GateDecision:
    """Terminal state of one pass through the gate."""

    rejection: RejectionKind | None = None
    reason: RevocationReason | None = None
    claims: SessionClaims | None = None
    subject: SubjectProfile | None = None

    @property
    def admitted(self) -> bool:
        return self.rejection is None

    @property
    def status_code(self) -> int:
        if self.rejection is None:
            return 200
        return REJECTION_STATUS[self.rejection]

    @property
    def message(self) -> str:
        if self.rejection is None:
            return "ok"
        if self.rejection is RejectionKind.REVOKED and self.reason is not None:
            return REVOCATION_MESSAGES[self.reason]
        return REJECTION_MESSAGES[self.rejection]

    @classmethod
    def reject(
        cls,
        kind: RejectionKind,
        reason: RevocationReason | None = None,
        claims: SessionClaims | None = None,
    ) -> "GateDecision":
        return cls(rejection=kind, reason=reason, claims=claims)


def extract_bearer(authorization: str | None) -> str | None:
    """Return the credential from an ``Authorization: Bearer <credential>`` header."""
    if not authorization:
        return None
    scheme, _, credential = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    credential = credential.strip()
    return credential or None


class Gatekeeper:
    """Combines codec, ledgers, profile lookup and membership into one decision."""

    def __init__(
        self,
        codec: TokenCodec,
        revocations: TokenRevocationLedger,
        cutoffs: PasswordChangeCutoffLedger,
        profiles: ProfileDirectory,
        membership: Callable[[SubjectProfile], bool] = is_member,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
    ):
        self.codec = codec
        self.revocations = revocations
        self.cutoffs = cutoffs
        self.profiles = profiles
        self.membership = membership
        self.lookup_timeout = lookup_timeout

    async def check(self, authorization: str | None) -> GateDecision:
        """Decide whether a request carrying ``authorization`` may proceed."""
        credential = extract_bearer(authorization)
        if credential is None:
            return GateDecision.reject(RejectionKind.NO_CREDENTIAL)
        return await self.check_credential(credential)

    async def check_credential(self, credential: str) -> GateDecision:
        verification = self.codec.verify(credential)
        if verification.claims is None:
            return GateDecision.reject(
                verification.failure or RejectionKind.MALFORMED_CREDENTIAL
            )
        claims = verification.claims

        try:
            reason = await self._lookup(self.revocations.reason_for(credential))
            if reason is not None:
                return GateDecision.reject(RejectionKind.REVOKED, reason=reason, claims=claims)

            cutoff = await self._lookup(self.cutoffs.cutoff(claims.subject_id))
            if cutoff is not None and claims.issued_at < cutoff:
                return GateDecision.reject(
                    RejectionKind.SUPERSEDED_BY_PASSWORD_CHANGE, claims=claims
                )

            profile = await self._lookup(self.profiles.get_profile(claims.subject_id))
        except STORE_ERRORS as e:
            logger.error(
                f"Session store unavailable, rejecting request: {e!r}",
                extra={
                    "rejection": RejectionKind.STORE_UNAVAILABLE,
                    "subject_id": claims.subject_id,
                },
            )
            return GateDecision.reject(RejectionKind.STORE_UNAVAILABLE, claims=claims)

        if profile is None or not profile.is_active:
            return GateDecision.reject(RejectionKind.UNKNOWN_SUBJECT, claims=claims)

        if not self.membership(profile):
            return GateDecision.reject(RejectionKind.NOT_AUTHORIZED, claims=claims)

        return GateDecision(claims=claims, subject=profile)

    async def _lookup(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.lookup_timeout)
