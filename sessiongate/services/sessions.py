"""Entry points for login, logout, password-change and admin collaborators."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sessiongate.core.clock import Clock, utc_now
from sessiongate.services.rejections import InvalidCredentialError
from sessiongate.services.revocation import (
    PasswordChangeCutoffLedger,
    RevocationReason,
    TokenRevocationLedger,
)
from sessiongate.services.token_codec import TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    credential: str
    expires_at: datetime
    expires_in: int
    token_type: str = "bearer"


class SessionService:
    """Issues credentials and records revocations.

    Revocation never touches the codec: a signed credential stays
    cryptographically valid until it expires, so every revocation is a
    ledger write that the gate consults on the next request.
    """

    def __init__(
        self,
        codec: TokenCodec,
        revocations: TokenRevocationLedger,
        cutoffs: PasswordChangeCutoffLedger,
        clock: Clock = utc_now,
    ):
        self.codec = codec
        self.revocations = revocations
        self.cutoffs = cutoffs
        self._clock = clock

    def issue_session(self, subject_id: str) -> IssuedSession:
        """Mint a credential at login, registration or password reset."""
        credential, claims = self.codec.mint(subject_id)
        logger.info(f"Issued session for subject {subject_id}")
        return IssuedSession(
            credential=credential,
            expires_at=claims.expires_at,
            expires_in=int(self.codec.ttl.total_seconds()),
        )

    async def revoke_credential(self, credential: str, reason: RevocationReason) -> bool:
        """Revoke one credential until its own expiry.

        Subject and expiry come from the credential itself. Returns False when
        nothing was recorded (already revoked, or already expired).

        Raises:
            InvalidCredentialError: if the credential was not signed by us.
        """
        claims = self.codec.peek(credential)
        if claims is None:
            raise InvalidCredentialError("Credential signature is invalid")
        if claims.expires_at <= self._clock():
            # Expired credentials are rejected by the codec already
            return False
        return await self.revocations.revoke(credential, claims.subject_id, reason)

    async def logout(self, credential: str | None) -> bool:
        """Revoke the presented credential. Invalid or missing input is ignored.

        Membership and revocation status are not checked, so a credential
        already voided by a password change can still be logged out.
        """
        if not credential:
            return False
        try:
            return await self.revoke_credential(credential, RevocationReason.LOGOUT)
        except InvalidCredentialError:
            logger.debug("Logout with an invalid credential ignored")
            return False

    async def admin_revoke(self, credential: str) -> bool:
        revoked = await self.revoke_credential(credential, RevocationReason.ADMIN_REVOKE)
        if revoked:
            logger.warning("Credential revoked by administrator")
        return revoked

    async def password_changed(self, subject_id: str, at: datetime | None = None) -> datetime:
        """Void every credential for ``subject_id`` issued before ``at`` (default: now)."""
        at = at or self._clock()
        await self.cutoffs.mark_password_changed(subject_id, at)
        return at

    async def sweep_expired(self, now: datetime | None = None) -> int:
        return await self.revocations.sweep_expired(now or self._clock())
