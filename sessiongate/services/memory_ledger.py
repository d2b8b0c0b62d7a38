"""In-memory revocation store for tests and single-process development.

Not suitable for production: revocations written by one process are
invisible to every other process and are lost on restart.
"""

from dataclasses import dataclass
from datetime import datetime

from sessiongate.core.clock import Clock, as_utc, utc_now
from sessiongate.services.revocation import RevocationReason, cutoff_key, revocation_claims
from sessiongate.services.token_codec import TokenCodec


@dataclass(frozen=True)
class LedgerRecord:
    credential: str
    subject_id: str
    reason: RevocationReason
    expires_at: datetime
    created_at: datetime


class InMemoryRevocationStore:
    """Dict-backed implementation of both revocation capabilities."""

    def __init__(self, codec: TokenCodec, clock: Clock = utc_now):
        self._records: dict[str, LedgerRecord] = {}
        self._codec = codec
        self._clock = clock

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> list[LedgerRecord]:
        return list(self._records.values())

    async def revoke(self, credential: str, subject_id: str, reason: RevocationReason) -> bool:
        claims = revocation_claims(self._codec, credential, subject_id)
        if credential in self._records:
            return False
        self._records[credential] = LedgerRecord(
            credential=credential,
            subject_id=claims.subject_id,
            reason=reason,
            expires_at=claims.expires_at,
            created_at=self._clock(),
        )
        return True

    async def is_revoked(self, credential: str) -> bool:
        return credential in self._records

    async def reason_for(self, credential: str) -> RevocationReason | None:
        record = self._records.get(credential)
        return record.reason if record else None

    async def mark_password_changed(self, subject_id: str, at: datetime) -> None:
        at = as_utc(at)
        self._records.setdefault(
            cutoff_key(subject_id, at),
            LedgerRecord(
                credential=cutoff_key(subject_id, at),
                subject_id=subject_id,
                reason=RevocationReason.PASSWORD_CHANGE,
                expires_at=at + self._codec.ttl,
                created_at=at,
            ),
        )

    async def cutoff(self, subject_id: str) -> datetime | None:
        stamps = [
            r.created_at
            for r in self._records.values()
            if r.subject_id == subject_id and r.reason is RevocationReason.PASSWORD_CHANGE
        ]
        return max(stamps, default=None)

    async def sweep_expired(self, now: datetime) -> int:
        now = as_utc(now)
        expired = [key for key, r in self._records.items() if r.expires_at < now]
        for key in expired:
            del self._records[key]
        return len(expired)
