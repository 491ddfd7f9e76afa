"""
Profile service for player profiles, onboarding and roles.
"""

import logging
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teammind.database.models import (
    AppRole,
    Field,
    MatchType,
    PlayerPosition,
    Profile,
    SkillLevel,
    UserRole,
)
from teammind.utils.constants import POSITION_LABELS

logger = logging.getLogger(__name__)


def position_label(position: Optional[str]) -> str:
    """Human readable label for a position; unknown values pass through."""
    if position is None:
        return ""
    return POSITION_LABELS.get(position, position)


def _enum_value(enum_cls, value, field_name: str) -> Optional[str]:
    """Validate a value against an enum and return its string value."""
    if value is None:
        return None
    try:
        return enum_cls(getattr(value, "value", value)).value
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValueError(f"Invalid {field_name} '{value}'. Must be one of: {allowed}")


def profile_to_dict(profile: Profile) -> Dict:
    """Serialize a profile (roles must be loaded)."""
    return {
        "id": profile.id,
        "email": profile.email,
        "full_name": profile.full_name,
        "phone": profile.phone,
        "avatar_url": profile.avatar_url,
        "skill_level": profile.skill_level,
        "preferred_position": profile.preferred_position,
        "preferred_match_type": profile.preferred_match_type,
        "home_field_id": profile.home_field_id,
        "games_played": profile.games_played or 0,
        "win_rate": profile.win_rate,
        "attendance_rate": profile.attendance_rate,
        "fair_play_rating": profile.fair_play_rating,
        "roles": sorted(r.role for r in profile.roles),
    }


async def get_profile_model(session: AsyncSession, user_id: str) -> Optional[Profile]:
    """Load a profile with its roles, or None."""
    result = await session.execute(
        select(Profile)
        .options(selectinload(Profile.roles))
        .where(Profile.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_profile(session: AsyncSession, user_id: str) -> Optional[Dict]:
    """
    Get a profile as a dict.

    Args:
        session: Database session
        user_id: Auth subject / profile id

    Returns:
        Profile dict or None if not found
    """
    profile = await get_profile_model(session, user_id)
    return profile_to_dict(profile) if profile else None


async def ensure_profile(
    session: AsyncSession, user_id: str, email: Optional[str] = None
) -> Dict:
    """
    Get the profile for an authenticated user, creating an empty one on first sight.

    Returns:
        Profile dict
    """
    profile = await get_profile_model(session, user_id)
    if profile is not None:
        return profile_to_dict(profile)

    profile = Profile(id=user_id, email=email or "", games_played=0, roles=[])
    session.add(profile)
    await session.flush()
    logger.info(f"Created profile for user {user_id}")

    profile = await get_profile_model(session, user_id)
    return profile_to_dict(profile)


async def _validate_home_field(session: AsyncSession, home_field_id: Optional[int]) -> None:
    if home_field_id is None:
        return
    result = await session.execute(select(Field.id).where(Field.id == home_field_id))
    if result.scalar_one_or_none() is None:
        raise ValueError(f"Field {home_field_id} not found")


async def add_role(session: AsyncSession, user_id: str, role) -> None:
    """Grant a role to a user; no-op if already granted."""
    role_value = _enum_value(AppRole, role, "role")
    profile = await get_profile_model(session, user_id)
    if profile is None:
        raise ValueError(f"Profile {user_id} not found")
    if role_value not in {r.role for r in profile.roles}:
        profile.roles.append(UserRole(role=role_value))
        await session.flush()


async def update_profile(session: AsyncSession, user_id: str, **updates) -> Optional[Dict]:
    """
    Apply a partial update to a profile. Keys with value None are ignored.

    Returns:
        Updated profile dict, or None if the profile does not exist

    Raises:
        ValueError: If an enum value or home field is invalid
    """
    profile = await get_profile_model(session, user_id)
    if profile is None:
        return None

    validators = {
        "skill_level": (SkillLevel, "skill level"),
        "preferred_position": (PlayerPosition, "position"),
        "preferred_match_type": (MatchType, "match type"),
    }
    for key, value in updates.items():
        if value is None:
            continue
        if key in validators:
            enum_cls, label = validators[key]
            value = _enum_value(enum_cls, value, label)
        elif key == "home_field_id":
            await _validate_home_field(session, value)
        elif key not in ("full_name", "phone", "avatar_url"):
            raise ValueError(f"Unknown profile field '{key}'")
        setattr(profile, key, value)

    await session.flush()
    return profile_to_dict(profile)


async def complete_onboarding(
    session: AsyncSession,
    user_id: str,
    skill_level,
    preferred_position,
    preferred_match_type=None,
    home_field_id: Optional[int] = None,
    role=AppRole.PLAYER,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
) -> Dict:
    """
    Save onboarding answers and grant the chosen role.

    Raises:
        ValueError: If any value is invalid
    """
    await ensure_profile(session, user_id, email=email)
    profile = await update_profile(
        session,
        user_id,
        full_name=full_name,
        skill_level=skill_level,
        preferred_position=preferred_position,
        preferred_match_type=preferred_match_type,
        home_field_id=home_field_id,
    )
    await add_role(session, user_id, role)
    logger.info(f"User {user_id} completed onboarding as {profile['skill_level']} {profile['preferred_position']}")
    return await get_profile(session, user_id)
