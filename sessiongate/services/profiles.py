"""Subject profile lookup and the membership predicate applied by the gate."""

import uuid
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sessiongate.models.member import Member


@dataclass(frozen=True)
class SubjectProfile:
    """Public view of a member. Never carries password hashes or other secrets."""

    id: str
    email: str
    display_name: str
    role: str
    organization_id: str | None
    is_active: bool = True


class ProfileDirectory(Protocol):
    async def get_profile(self, subject_id: str) -> SubjectProfile | None: ...


def is_member(profile: SubjectProfile) -> bool:
    """A subject is admitted only while it belongs to an organization."""
    return profile.organization_id is not None


class SqlProfileDirectory:
    """Looks up members by id, selecting only non-sensitive columns."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_profile(self, subject_id: str) -> SubjectProfile | None:
        try:
            member_id = uuid.UUID(subject_id)
        except ValueError:
            return None

        async with self._session_factory() as db:
            result = await db.execute(
                select(
                    Member.id,
                    Member.email,
                    Member.display_name,
                    Member.role,
                    Member.organization_id,
                    Member.is_active,
                ).where(Member.id == member_id)
            )
            row = result.one_or_none()

        if row is None:
            return None
        return SubjectProfile(
            id=str(row.id),
            email=row.email,
            display_name=row.display_name,
            role=row.role,
            organization_id=str(row.organization_id) if row.organization_id else None,
            is_active=row.is_active,
        )


class StaticProfileDirectory:
    """Fixed set of profiles held in memory."""

    def __init__(self, profiles: list[SubjectProfile] | None = None):
        self._profiles = {p.id: p for p in profiles or []}

    async def get_profile(self, subject_id: str) -> SubjectProfile | None:
        return self._profiles.get(subject_id)
