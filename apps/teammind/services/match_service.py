"""
Match service - game creation, listing, details, joining and team rosters.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teammind.database.models import (
    Field,
    Match,
    MatchParticipant,
    MatchType,
    ParticipantStatus,
    Profile,
    SkillLevel,
    Team,
    TeamMember,
)
from teammind.utils.constants import (
    DEFAULT_MATCH_DURATION_MINUTES,
    DEFAULT_TEAMS,
    MAX_MATCH_PLAYERS,
    MIN_MATCH_PLAYERS,
)
from teammind.utils.datetime_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def _match_options():
    return (
        selectinload(Match.field),
        selectinload(Match.creator),
        selectinload(Match.teams).selectinload(Team.members).selectinload(TeamMember.user),
    )


def _player_count(match: Match) -> int:
    return sum(len(team.members) for team in match.teams)


def member_to_dict(member: TeamMember) -> Dict:
    user = member.user
    return {
        "user_id": member.user_id,
        "full_name": user.full_name if user else None,
        "skill_level": user.skill_level if user else None,
        "preferred_position": user.preferred_position if user else None,
        "assigned_position": member.assigned_position,
        "is_captain": bool(member.is_captain),
    }


def team_to_dict(team: Team) -> Dict:
    return {
        "id": team.id,
        "match_id": team.match_id,
        "name": team.name,
        "color": team.color,
        "members": [member_to_dict(m) for m in team.members],
    }


def match_summary(match: Match, current_players: Optional[int] = None) -> Dict:
    """Serialize a match; teams must be loaded unless current_players is given."""
    if current_players is None:
        current_players = _player_count(match)
    return {
        "id": match.id,
        "scheduled_at": ensure_utc(match.scheduled_at),
        "field_id": match.field_id,
        "field_name": match.field.name if match.field else None,
        "match_type": match.match_type,
        "skill_level": match.skill_level,
        "max_players": match.max_players,
        "current_players": current_players,
        "fairness_score": match.fairness_score,
        "is_public": match.is_public,
    }


async def get_match_model(session: AsyncSession, match_id: int) -> Optional[Match]:
    """Load a match with field, creator and rosters."""
    result = await session.execute(
        select(Match)
        .options(*_match_options())
        .where(Match.id == match_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_match(
    session: AsyncSession,
    created_by: str,
    field_id: int,
    scheduled_at: datetime,
    match_type=MatchType.CASUAL,
    skill_level=SkillLevel.INTERMEDIATE,
    max_players: int = 14,
    is_public: bool = True,
    duration_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Create a match with its two default teams.

    Raises:
        ValueError: If the field does not exist, max_players is out of range,
            the match is in the past or an enum value is invalid
    """
    if await session.get(Field, field_id) is None:
        raise ValueError("Please select a valid field")

    if max_players is None or max_players < MIN_MATCH_PLAYERS or max_players > MAX_MATCH_PLAYERS:
        raise ValueError(
            f"Max players must be between {MIN_MATCH_PLAYERS} and {MAX_MATCH_PLAYERS}"
        )

    scheduled_at = ensure_utc(scheduled_at)
    if scheduled_at < (ensure_utc(now) if now else utcnow()):
        raise ValueError("Cannot create a game in the past")

    try:
        match_type_value = MatchType(getattr(match_type, "value", match_type)).value
        skill_value = SkillLevel(getattr(skill_level, "value", skill_level)).value
    except ValueError as e:
        raise ValueError(f"Invalid match settings: {e}")

    match = Match(
        field_id=field_id,
        scheduled_at=scheduled_at,
        match_type=match_type_value,
        skill_level=skill_value,
        max_players=max_players,
        is_public=is_public,
        auto_balance=False,
        duration_minutes=duration_minutes or DEFAULT_MATCH_DURATION_MINUTES,
        created_by=created_by,
    )
    match.teams = [Team(name=name, color=color, members=[]) for name, color in DEFAULT_TEAMS]
    session.add(match)
    await session.flush()
    logger.info(f"User {created_by} created match {match.id} at field {field_id}")

    match = await get_match_model(session, match.id)
    return match_summary(match)


async def list_upcoming_matches(
    session: AsyncSession,
    limit: int = 20,
    offset: int = 0,
    now: Optional[datetime] = None,
) -> List[Dict]:
    """Public matches that haven't started yet, soonest first."""
    now = now or utcnow()
    result = await session.execute(
        select(Match)
        .options(*_match_options())
        .where(Match.is_public == True)  # noqa: E712
        .where(Match.scheduled_at >= now)
        .order_by(Match.scheduled_at.asc(), Match.id.asc())
        .limit(limit)
        .offset(offset)
        .execution_options(populate_existing=True)
    )
    return [match_summary(m) for m in result.scalars().all()]


async def count_matches_between(session: AsyncSession, start: datetime, end: datetime) -> int:
    """Count matches scheduled in [start, end)."""
    result = await session.execute(
        select(func.count(Match.id)).where(Match.scheduled_at >= start, Match.scheduled_at < end)
    )
    return result.scalar() or 0


def _find_user_team(match: Match, user_id: Optional[str]) -> Optional[Team]:
    if not user_id:
        return None
    for team in match.teams:
        if any(m.user_id == user_id for m in team.members):
            return team
    return None


async def get_match_details(
    session: AsyncSession, match_id: int, user_id: Optional[str] = None
) -> Optional[Dict]:
    """
    Match with field, creator and team rosters.

    Args:
        session: Database session
        match_id: Match ID
        user_id: Optional caller, used to report which team they are on

    Returns:
        Match dict or None if not found
    """
    match = await get_match_model(session, match_id)
    if match is None:
        return None

    user_team = _find_user_team(match, user_id)
    details = match_summary(match)
    details.update(
        {
            "field_location": match.field.location if match.field else None,
            "created_by_name": match.creator.full_name if match.creator else None,
            "duration_minutes": match.duration_minutes,
            "teams": [team_to_dict(t) for t in match.teams],
            "user_team_id": user_team.id if user_team else None,
        }
    )
    return details


async def join_match(session: AsyncSession, match_id: int, user_id: str) -> Dict:
    """
    Join a match and place the user on the team with the fewest players.

    Returns:
        Dict with match_id, team_id, team_name, assigned_position

    Raises:
        ValueError: If the match doesn't exist, has started, is full, or the
            user is already on one of its teams
    """
    match = await get_match_model(session, match_id)
    if match is None:
        raise ValueError("Match not found")

    if ensure_utc(match.scheduled_at) < utcnow():
        raise ValueError("Cannot join a match that has already started")

    profile = await session.get(Profile, user_id)
    if profile is None:
        raise ValueError("Profile not found")

    if _find_user_team(match, user_id) is not None:
        raise ValueError("You have already joined this match")

    if match.max_players is not None and _player_count(match) >= match.max_players:
        raise ValueError("Match is full")

    if not match.teams:
        match.teams = [Team(name=name, color=color, members=[]) for name, color in DEFAULT_TEAMS]
        await session.flush()

    # Fewest players first; min() keeps the earliest team on ties
    team = min(match.teams, key=lambda t: len(t.members))
    team.members.append(
        TeamMember(user_id=user_id, assigned_position=profile.preferred_position, is_captain=False)
    )

    result = await session.execute(
        select(MatchParticipant).where(
            MatchParticipant.match_id == match_id, MatchParticipant.user_id == user_id
        )
    )
    participant = result.scalar_one_or_none()
    if participant is None:
        session.add(
            MatchParticipant(
                match_id=match_id, user_id=user_id, status=ParticipantStatus.JOINED.value
            )
        )
    else:
        participant.status = ParticipantStatus.JOINED.value

    await session.flush()
    logger.info(f"User {user_id} joined match {match_id} on team {team.id} ({team.name})")

    return {
        "match_id": match_id,
        "team_id": team.id,
        "team_name": team.name,
        "assigned_position": profile.preferred_position,
    }


async def get_team_model(session: AsyncSession, team_id: int) -> Optional[Team]:
    result = await session.execute(
        select(Team)
        .options(selectinload(Team.members).selectinload(TeamMember.user))
        .where(Team.id == team_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_team_details(session: AsyncSession, team_id: int) -> Optional[Dict]:
    """
    Team roster with its match and the opposing team.

    Returns:
        Team dict or None if not found
    """
    result = await session.execute(select(Team.match_id).where(Team.id == team_id))
    match_id = result.scalar_one_or_none()
    if match_id is None:
        return None

    # The match graph already carries both rosters
    match = await get_match_model(session, match_id)
    team = next(t for t in match.teams if t.id == team_id)
    opponent = next((t for t in match.teams if t.id != team_id), None)
    details = team_to_dict(team)
    details["match"] = match_summary(match)
    details["opponent"] = team_to_dict(opponent) if opponent else None
    return details


async def is_team_member(session: AsyncSession, team_id: int, user_id: str) -> Optional[TeamMember]:
    """Return the membership row if the user is on the team."""
    result = await session.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def leave_team(session: AsyncSession, team_id: int, user_id: str) -> bool:
    """
    Remove the user from a team and mark their participation as left.

    Raises:
        ValueError: If the user is not on the team
    """
    team = await get_team_model(session, team_id)
    if team is None:
        raise ValueError("Team not found")

    member = next((m for m in team.members if m.user_id == user_id), None)
    if member is None:
        raise ValueError("You are not a member of this team")

    team.members.remove(member)
    await session.delete(member)

    result = await session.execute(
        select(MatchParticipant).where(
            MatchParticipant.match_id == team.match_id, MatchParticipant.user_id == user_id
        )
    )
    participant = result.scalar_one_or_none()
    if participant is not None:
        participant.status = ParticipantStatus.LEFT.value

    await session.flush()
    logger.info(f"User {user_id} left team {team_id}")
    return True
