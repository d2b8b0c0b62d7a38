"""Session credential signing and verification (JWT, HMAC)."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from sessiongate.core.clock import Clock, utc_now
from sessiongate.services.rejections import RejectionKind

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)
TOKEN_TYPE = "session"
REQUIRED_CLAIMS = ["sub", "iat", "exp", "jti"]


@dataclass(frozen=True)
class SessionClaims:
    """Decoded contents of a session credential."""

    subject_id: str
    issued_at: datetime
    expires_at: datetime
    token_id: str


@dataclass(frozen=True)
class Verification:
    """Result of verifying a credential: claims on success, a failure kind otherwise."""

    claims: SessionClaims | None = None
    failure: RejectionKind | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class TokenCodec:
    """Issues and verifies signed session credentials.

    Credentials carry ``sub``, ``iat`` and ``exp`` (plus a random ``jti`` so
    two credentials minted in the same instant never collide). ``iat`` keeps
    microsecond precision so that a credential issued right after a password
    change is never mistaken for one issued before it.
    """

    def __init__(
        self,
        secret: str,
        ttl: timedelta = DEFAULT_TTL,
        algorithm: str = "HS256",
        clock: Clock = utc_now,
    ):
        if not secret:
            raise ValueError("TokenCodec requires a non-empty secret")
        if ttl <= timedelta(0):
            raise ValueError("TokenCodec ttl must be positive")
        self._secret = secret
        self.ttl = ttl
        self.algorithm = algorithm
        self._clock = clock

    def issue(self, subject_id: str) -> str:
        """Create a signed credential for ``subject_id`` valid for one TTL."""
        credential, _ = self.mint(subject_id)
        return credential

    def mint(self, subject_id: str) -> tuple[str, SessionClaims]:
        """Like ``issue`` but also returns the claims that were signed."""
        issued_at = self._clock()
        claims = SessionClaims(
            subject_id=str(subject_id),
            issued_at=issued_at,
            expires_at=issued_at + self.ttl,
            token_id=secrets.token_hex(16),
        )
        payload = {
            "sub": claims.subject_id,
            "iat": claims.issued_at.timestamp(),
            "exp": claims.expires_at.timestamp(),
            "jti": claims.token_id,
            "type": TOKEN_TYPE,
        }
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(jwt.encode(payload, self._secret, algorithm=self.algorithm)), claims

    def verify(self, credential: str) -> Verification:
        """Check signature first, then expiry against the injected clock."""
        claims = self.peek(credential)
        if claims is None:
            return Verification(failure=RejectionKind.MALFORMED_CREDENTIAL)
        if not self._clock() < claims.expires_at:
            return Verification(failure=RejectionKind.EXPIRED_CREDENTIAL)
        return Verification(claims=claims)

    def peek(self, credential: str) -> SessionClaims | None:
        """Decode a credential with a valid signature, ignoring its expiry.

        Returns None for tampered, foreign or structurally invalid input.
        """
        try:
            payload = jwt.decode(
                credential,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except PyJWTError as e:
            logger.debug(f"Rejected credential: {e}")
            return None
        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict[str, Any]) -> SessionClaims | None:
    if payload.get("type") != TOKEN_TYPE:
        return None
    subject_id = payload.get("sub")
    token_id = payload.get("jti")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not isinstance(subject_id, str) or not subject_id or not isinstance(token_id, str):
        return None
    # bool is an int subclass; a boolean timestamp is never legitimate
    for value in (iat, exp):
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
    if exp <= iat:
        return None
    return SessionClaims(
        subject_id=subject_id,
        issued_at=datetime.fromtimestamp(iat, tz=UTC),
        expires_at=datetime.fromtimestamp(exp, tz=UTC),
        token_id=token_id,
    )
