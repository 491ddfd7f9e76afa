"""
Tests for profile_service and field_service.
"""

import pytest

from teammind.services import field_service, profile_service
from teammind.tests.conftest import create_future_match


@pytest.mark.asyncio
async def test_ensure_profile_creates_once(db_session):
    created = await profile_service.ensure_profile(db_session, "new-user", email="new@example.com")
    again = await profile_service.ensure_profile(db_session, "new-user", email="other@example.com")

    assert created["id"] == "new-user"
    assert created["email"] == "new@example.com"
    assert created["roles"] == []
    assert created["skill_level"] is None
    assert again["email"] == "new@example.com"


@pytest.mark.asyncio
async def test_complete_onboarding(db_session, home_field):
    profile = await profile_service.complete_onboarding(
        db_session,
        "user-1",
        skill_level="advanced",
        preferred_position="goalkeeper",
        preferred_match_type="competitive",
        home_field_id=home_field.id,
        role="captain",
        full_name="Keeper",
    )

    assert profile["skill_level"] == "advanced"
    assert profile["preferred_position"] == "goalkeeper"
    assert profile["preferred_match_type"] == "competitive"
    assert profile["home_field_id"] == home_field.id
    assert profile["full_name"] == "Keeper"
    assert profile["roles"] == ["captain"]


@pytest.mark.asyncio
async def test_complete_onboarding_rejects_bad_position(db_session):
    with pytest.raises(ValueError, match="Invalid position 'striker'"):
        await profile_service.complete_onboarding(
            db_session, "user-1", skill_level="beginner", preferred_position="striker"
        )


@pytest.mark.asyncio
async def test_update_profile_partial(db_session, player):
    updated = await profile_service.update_profile(
        db_session, player["id"], phone="555-0100", skill_level=None
    )

    assert updated["phone"] == "555-0100"
    assert updated["skill_level"] == "intermediate"


@pytest.mark.asyncio
async def test_update_profile_validates_home_field(db_session, player):
    with pytest.raises(ValueError, match="Field 999 not found"):
        await profile_service.update_profile(db_session, player["id"], home_field_id=999)


@pytest.mark.asyncio
async def test_update_profile_rejects_unknown_key(db_session, player):
    with pytest.raises(ValueError, match="Unknown profile field"):
        await profile_service.update_profile(db_session, player["id"], games_played=50)


@pytest.mark.asyncio
async def test_update_missing_profile_returns_none(db_session):
    assert await profile_service.update_profile(db_session, "ghost", phone="1") is None


@pytest.mark.asyncio
async def test_add_role_is_idempotent(db_session, player):
    await profile_service.add_role(db_session, player["id"], "player")
    await profile_service.add_role(db_session, player["id"], "staff")

    profile = await profile_service.get_profile(db_session, player["id"])
    assert profile["roles"] == ["player", "staff"]


def test_position_label():
    assert profile_service.position_label("forward") == "Forward"
    assert profile_service.position_label("sweeper") == "sweeper"
    assert profile_service.position_label(None) == ""


# ============================================================================
# Fields
# ============================================================================


@pytest.mark.asyncio
async def test_seed_default_fields_is_idempotent(db_session):
    first = await field_service.seed_default_fields(db_session)
    second = await field_service.seed_default_fields(db_session)
    fields = await field_service.list_fields(db_session)

    assert first == 2
    assert second == 0
    assert {f["slug"] for f in fields} == {"lubetkin", "frederick-douglass"}


@pytest.mark.asyncio
async def test_get_field_counts_upcoming_matches(db_session, organizer, home_field, away_field):
    await create_future_match(db_session, organizer.id, home_field.id)
    await create_future_match(db_session, organizer.id, home_field.id, is_public=False)

    field = await field_service.get_field(db_session, home_field.id)
    other = await field_service.get_field(db_session, away_field.id)

    assert field["upcoming_matches"] == 1
    assert other["upcoming_matches"] == 0
    assert await field_service.get_field(db_session, 999) is None


@pytest.mark.asyncio
async def test_get_or_create_field(db_session):
    first = await field_service.get_or_create_field(db_session, "Riverbank Park", "1 River Rd")
    second = await field_service.get_or_create_field(db_session, "Riverbank Park", "Elsewhere")

    assert first.id == second.id
    assert second.location == "1 River Rd"
