"""
Tests for daily availability and home-screen stats.
"""

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytz

from teammind.services import availability_service, match_service
from teammind.services.realtime_manager import (
    AVAILABILITY_CHANNEL,
    get_realtime_manager,
    pending_events,
    publish_pending,
)
from teammind.tests.conftest import add_profile, create_future_match
from teammind.utils.datetime_utils import utcnow


@pytest.mark.asyncio
async def test_set_availability_inserts_then_updates(db_session, player):
    first = await availability_service.set_daily_availability(db_session, player["id"], "morning")
    second = await availability_service.set_daily_availability(db_session, player["id"], "night")

    assert first["status"] == "looking"
    assert second["time_slot"] == "night"

    status = await availability_service.get_today_status(db_session, player["id"])
    assert status["time_slot"] == "night"
    assert status["status"] == "looking"


@pytest.mark.asyncio
async def test_set_availability_rejects_unknown_slot(db_session, player):
    with pytest.raises(ValueError, match="Invalid time slot 'midnight'"):
        await availability_service.set_daily_availability(db_session, player["id"], "midnight")


@pytest.mark.asyncio
async def test_set_availability_broadcasts(db_session, player):
    manager = get_realtime_manager()
    socket = AsyncMock()
    await manager.subscribe(AVAILABILITY_CHANNEL, socket)

    await availability_service.set_daily_availability(db_session, player["id"], "afternoon")
    await availability_service.set_daily_availability(db_session, player["id"], "night")
    assert socket.send_text.await_count == 0

    await db_session.commit()
    assert await publish_pending(db_session) == 2

    assert socket.send_text.await_count == 2
    first_event = socket.send_text.await_args_list[0].args[0]
    assert '"event": "INSERT"' in first_event
    assert '"afternoon"' in first_event


@pytest.mark.asyncio
async def test_rolled_back_availability_is_not_broadcast(db_session, player):
    socket = AsyncMock()
    await get_realtime_manager().subscribe(AVAILABILITY_CHANNEL, socket)

    await availability_service.set_daily_availability(db_session, player["id"], "night")
    await db_session.rollback()

    assert pending_events(db_session) == []
    assert await publish_pending(db_session) == 0
    socket.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_clear_availability(db_session, player):
    assert await availability_service.clear_daily_availability(db_session, player["id"]) is None

    await availability_service.set_daily_availability(db_session, player["id"], "morning")
    cleared = await availability_service.clear_daily_availability(db_session, player["id"])

    assert cleared["status"] == "not_looking"


@pytest.mark.asyncio
async def test_status_is_per_day(db_session, player):
    await availability_service.set_daily_availability(
        db_session, player["id"], "morning", day=date(2025, 6, 1)
    )

    assert await availability_service.get_today_status(
        db_session, player["id"], day=date(2025, 6, 2)
    ) is None


@pytest.mark.asyncio
async def test_get_availability_stats(db_session, player, organizer, home_field):
    await add_profile(db_session, "p2")
    await availability_service.set_daily_availability(db_session, player["id"], "night")
    await availability_service.set_daily_availability(db_session, "p2", "night")
    await availability_service.clear_daily_availability(db_session, "p2")
    await create_future_match(db_session, organizer.id, home_field.id, hours_ahead=240)

    stats = await availability_service.get_availability_stats(db_session)

    assert stats["players_looking"] == 1
    assert stats["community_members"] == 3
    assert stats["games_today"] == 0


@pytest.mark.asyncio
async def test_games_today_uses_local_day(db_session, organizer, home_field, monkeypatch):
    monkeypatch.setenv("APP_TIMEZONE", "America/New_York")
    tz = pytz.timezone("America/New_York")
    tomorrow = (utcnow().astimezone(tz) + timedelta(days=1)).date()
    evening = tz.localize(datetime(tomorrow.year, tomorrow.month, tomorrow.day, 21, 0))
    for when in (evening, evening + timedelta(hours=3)):
        await match_service.create_match(
            db_session, created_by=organizer.id, field_id=home_field.id, scheduled_at=when
        )

    stats = await availability_service.get_availability_stats(db_session, day=tomorrow)

    # The midnight game belongs to the following day
    assert stats["games_today"] == 1
