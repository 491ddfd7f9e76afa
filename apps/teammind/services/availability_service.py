"""
Availability service - daily "looking for a game" status and live stats.
"""

import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.database.models import (
    AvailabilityStatus,
    Profile,
    TimeSlot,
    UserAvailability,
)
from teammind.services import match_service
from teammind.services.realtime_manager import AVAILABILITY_CHANNEL, queue_broadcast
from teammind.utils.datetime_utils import day_bounds, today_local

logger = logging.getLogger(__name__)


def availability_to_dict(row: UserAvailability) -> Dict:
    return {
        "user_id": row.user_id,
        "date": row.date,
        "time_slot": row.time_slot,
        "status": row.status,
    }


async def _get_row(session: AsyncSession, user_id: str, day: date) -> Optional[UserAvailability]:
    result = await session.execute(
        select(UserAvailability).where(
            UserAvailability.user_id == user_id, UserAvailability.date == day
        )
    )
    return result.scalar_one_or_none()


async def set_daily_availability(
    session: AsyncSession, user_id: str, time_slot, day: Optional[date] = None
) -> Dict:
    """
    Put the user in the pool for a time slot (one row per user per day).

    Raises:
        ValueError: If time_slot is not morning, afternoon or night
    """
    try:
        slot = TimeSlot(getattr(time_slot, "value", time_slot)).value
    except ValueError:
        raise ValueError(f"Invalid time slot '{time_slot}'")

    day = day or today_local()
    row = await _get_row(session, user_id, day)
    if row is None:
        row = UserAvailability(user_id=user_id, date=day, time_slot=slot)
        session.add(row)
        event = "INSERT"
    else:
        row.time_slot = slot
        event = "UPDATE"
    row.status = AvailabilityStatus.LOOKING.value
    await session.flush()

    logger.info(f"User {user_id} is looking for {slot} games on {day}")
    data = availability_to_dict(row)
    queue_broadcast(session, AVAILABILITY_CHANNEL, event, data)
    return data


async def clear_daily_availability(
    session: AsyncSession, user_id: str, day: Optional[date] = None
) -> Optional[Dict]:
    """
    Take the user out of the pool for the day.

    Returns:
        Updated status dict, or None if no status was set
    """
    day = day or today_local()
    row = await _get_row(session, user_id, day)
    if row is None:
        return None
    row.status = AvailabilityStatus.NOT_LOOKING.value
    await session.flush()

    data = availability_to_dict(row)
    queue_broadcast(session, AVAILABILITY_CHANNEL, "UPDATE", data)
    return data


async def get_today_status(
    session: AsyncSession, user_id: str, day: Optional[date] = None
) -> Optional[Dict]:
    """The user's availability row for the day, or None."""
    row = await _get_row(session, user_id, day or today_local())
    return availability_to_dict(row) if row else None


async def get_availability_stats(session: AsyncSession, day: Optional[date] = None) -> Dict:
    """
    Live counters shown on the home screen.

    Returns:
        Dict with players_looking, community_members, games_today
    """
    day = day or today_local()

    looking = await session.execute(
        select(func.count(UserAvailability.id)).where(
            UserAvailability.date == day,
            UserAvailability.status == AvailabilityStatus.LOOKING.value,
        )
    )
    members = await session.execute(select(func.count(Profile.id)))
    start, end = day_bounds(day)
    games = await match_service.count_matches_between(session, start, end)

    return {
        "players_looking": looking.scalar() or 0,
        "community_members": members.scalar() or 0,
        "games_today": games,
    }
