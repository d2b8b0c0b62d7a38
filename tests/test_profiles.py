"""Tests for subject profile lookups."""

import uuid

import pytest

from sessiongate.models import Member
from sessiongate.services.profiles import SqlProfileDirectory, SubjectProfile, is_member
from tests.conftest import MEMBER_ID, ORG_ID


@pytest.fixture
def directory(db_session_factory):
    return SqlProfileDirectory(db_session_factory)


async def add_member(session_factory, **kwargs) -> Member:
    values = {
        "id": uuid.UUID(MEMBER_ID),
        "email": "member@example.com",
        "display_name": "Member",
        "role": "editor",
        "organization_id": uuid.UUID(ORG_ID),
        "password_hash": "$argon2id$v=19$not-a-real-hash",
    }
    values.update(kwargs)
    member = Member(**values)
    async with session_factory() as db:
        db.add(member)
        await db.commit()
    return member


@pytest.mark.asyncio
async def test_profile_from_member_row(directory, db_session_factory):
    await add_member(db_session_factory)

    profile = await directory.get_profile(MEMBER_ID)

    assert profile == SubjectProfile(
        id=MEMBER_ID,
        email="member@example.com",
        display_name="Member",
        role="editor",
        organization_id=ORG_ID,
        is_active=True,
    )
    assert not hasattr(profile, "password_hash")


@pytest.mark.asyncio
async def test_member_without_organization(directory, db_session_factory):
    await add_member(db_session_factory, organization_id=None)

    profile = await directory.get_profile(MEMBER_ID)

    assert profile.organization_id is None
    assert not is_member(profile)


@pytest.mark.asyncio
async def test_inactive_member(directory, db_session_factory):
    await add_member(db_session_factory, is_active=False)

    assert (await directory.get_profile(MEMBER_ID)).is_active is False


@pytest.mark.asyncio
async def test_unknown_subject(directory):
    assert await directory.get_profile(str(uuid.uuid4())) is None


@pytest.mark.asyncio
async def test_non_uuid_subject(directory):
    assert await directory.get_profile("not-a-uuid") is None


@pytest.mark.asyncio
async def test_sql_backed_gate_admits_member(db_session_factory, sql_store, codec, clock):
    from sessiongate.services.gatekeeper import Gatekeeper

    await add_member(db_session_factory)
    gate = Gatekeeper(codec, sql_store, sql_store, SqlProfileDirectory(db_session_factory))

    decision = await gate.check(f"Bearer {codec.issue(MEMBER_ID)}")

    assert decision.admitted
    assert decision.subject.email == "member@example.com"
