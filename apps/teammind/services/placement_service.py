"""
Auto-placement service.

Scores upcoming public matches against a player's preferences, ranks them
and places the player onto the chosen match.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.database.models import Match, Field, Team, TeamMember
from teammind.models.schemas import (
    CandidateMatch,
    PlacementPreferences,
    PlacementRanking,
    ScoredMatch,
)
from teammind.services import match_service, profile_service
from teammind.utils.constants import (
    DEFAULT_PLACEMENT_WEIGHTS,
    PARTIAL_SKILL_PAIRS,
    PLACEMENT_ALTERNATIVES,
    PLACEMENT_CANDIDATE_LIMIT,
    TIME_SLOT_HOURS,
    PlacementWeights,
)
from teammind.utils.datetime_utils import ensure_utc, format_match_time, to_local, utcnow

logger = logging.getLogger(__name__)


class NoMatchesAvailableError(Exception):
    """Raised when there are no candidate matches to rank."""

    def __init__(self, message: str = "No matches available"):
        super().__init__(message)


# ============================================================================
# Scoring
# ============================================================================


def _value(enum_or_str) -> Optional[str]:
    if enum_or_str is None:
        return None
    return getattr(enum_or_str, "value", enum_or_str)


def skill_points(candidate_skill, user_skill, weights: PlacementWeights) -> int:
    """Exact skill match, partial (adjacent) match, or nothing."""
    candidate_skill = _value(candidate_skill)
    user_skill = _value(user_skill)
    if candidate_skill is None or user_skill is None:
        return 0
    if candidate_skill == user_skill:
        return weights.skill_exact
    if frozenset([candidate_skill, user_skill]) in PARTIAL_SKILL_PAIRS:
        return weights.skill_partial
    return 0


def position_likely_open(candidate: CandidateMatch, weights: PlacementWeights) -> bool:
    """
    Rough estimate of whether the player's position is still free.

    Only aggregate headcount is tracked, so a position counts as open when the
    roster has at least ``min_open_slots`` free places.
    """
    return candidate.max_players - candidate.current_players >= weights.min_open_slots


def fairness_points(fairness_score: Optional[float], weights: PlacementWeights) -> int:
    """Bonus for well-balanced matches."""
    if fairness_score is None:
        return 0
    if fairness_score > weights.fairness_high_threshold:
        return weights.fairness_high
    if fairness_score > weights.fairness_mid_threshold:
        return weights.fairness_mid
    return 0


def home_field_points(
    field_id: Optional[int], home_field_id: Optional[int], weights: PlacementWeights
) -> int:
    """Bonus when the match is at the player's home field."""
    if home_field_id is None or field_id is None:
        return 0
    return weights.home_field if field_id == home_field_id else 0


def score_candidate(
    candidate: CandidateMatch,
    user_skill,
    user_position=None,
    user_home_field_id: Optional[int] = None,
    weights: PlacementWeights = DEFAULT_PLACEMENT_WEIGHTS,
) -> int:
    """
    Score a candidate match for a player on a 0-100 scale.

    ``user_position`` does not affect the score; it is accepted so callers
    can pass the full preference set and is only used for role labelling.

    Returns:
        Integer score, capped at ``weights.max_score``
    """
    total = skill_points(candidate.skill_level, user_skill, weights)
    if position_likely_open(candidate, weights):
        total += weights.slot_open
    total += fairness_points(candidate.fairness_score, weights)
    total += home_field_points(candidate.field_id, user_home_field_id, weights)
    return max(0, min(total, weights.max_score))


def role_label(position) -> str:
    """Display label for a player position, defaulting to Midfielder."""
    return profile_service.position_label(_value(position) or "midfielder")


def build_scored_match(
    candidate: CandidateMatch,
    preferences: PlacementPreferences,
    weights: PlacementWeights = DEFAULT_PLACEMENT_WEIGHTS,
    now: Optional[datetime] = None,
) -> ScoredMatch:
    """Score a candidate and attach the fields needed for display."""
    score = score_candidate(
        candidate,
        preferences.skill_level,
        preferences.preferred_position,
        preferences.home_field_id,
        weights,
    )
    return ScoredMatch(
        match=candidate,
        score=score,
        position_likely_open=position_likely_open(candidate, weights),
        field_name=candidate.field_name or "Unknown field",
        formatted_time=format_match_time(candidate.scheduled_at, now=now),
        role_label=role_label(preferences.preferred_position),
        occupancy=f"{candidate.current_players}/{candidate.max_players}",
        score_percent=f"{score}%",
    )


def rank_candidates(
    candidates: Sequence[CandidateMatch],
    preferences: PlacementPreferences,
    weights: PlacementWeights = DEFAULT_PLACEMENT_WEIGHTS,
    now: Optional[datetime] = None,
) -> PlacementRanking:
    """
    Rank candidates by score, highest first.

    Ties keep their input order. The first entry is the recommended match and
    the next ``PLACEMENT_ALTERNATIVES`` entries are alternatives.

    Raises:
        NoMatchesAvailableError: If ``candidates`` is empty
    """
    if not candidates:
        raise NoMatchesAvailableError()

    scored = [build_scored_match(c, preferences, weights, now=now) for c in candidates]
    # sorted() is stable, so equal scores stay in input order
    ranked = sorted(scored, key=lambda s: s.score, reverse=True)

    return PlacementRanking(
        recommended=ranked[0],
        alternatives=ranked[1 : 1 + PLACEMENT_ALTERNATIVES],
    )


# ============================================================================
# Candidate fetch
# ============================================================================


def _in_time_slot(scheduled_at: datetime, time_slot) -> bool:
    start, end = TIME_SLOT_HOURS[_value(time_slot)]
    return start <= to_local(scheduled_at).hour < end


async def get_candidate_matches(
    session: AsyncSession,
    limit: int = PLACEMENT_CANDIDATE_LIMIT,
    now: Optional[datetime] = None,
    field_id: Optional[int] = None,
    time_slot=None,
) -> List[CandidateMatch]:
    """
    Load upcoming public matches as scoring snapshots.

    Occupancy is the number of team members across a match's teams.

    Args:
        session: Database session
        limit: Maximum number of candidates
        now: Reference time (defaults to current UTC time)
        field_id: Only matches at this field
        time_slot: Only matches starting inside this availability slot

    Returns:
        Candidates ordered by scheduled time ascending
    """
    now = now or utcnow()

    occupancy = (
        select(Team.match_id.label("match_id"), func.count(TeamMember.id).label("players"))
        .join(TeamMember, TeamMember.team_id == Team.id)
        .group_by(Team.match_id)
        .subquery()
    )

    query = (
        select(Match, Field.name, func.coalesce(occupancy.c.players, 0))
        .outerjoin(Field, Field.id == Match.field_id)
        .outerjoin(occupancy, occupancy.c.match_id == Match.id)
        .where(Match.is_public == True)  # noqa: E712
        .where(Match.scheduled_at >= now)
        .order_by(Match.scheduled_at.asc(), Match.id.asc())
    )
    if field_id is not None:
        query = query.where(Match.field_id == field_id)
    if time_slot is None:
        query = query.limit(limit)

    result = await session.execute(query)

    candidates = []
    for match, field_name, players in result.all():
        if time_slot is not None and not _in_time_slot(match.scheduled_at, time_slot):
            continue
        candidates.append(
            CandidateMatch(
                id=match.id,
                scheduled_at=ensure_utc(match.scheduled_at),
                field_id=match.field_id,
                field_name=field_name,
                skill_level=match.skill_level,
                max_players=match.max_players or 0,
                current_players=players or 0,
                fairness_score=match.fairness_score,
            )
        )
        if len(candidates) >= limit:
            break
    return candidates


# ============================================================================
# Placement flow
# ============================================================================


async def get_preferences(session: AsyncSession, user_id: str) -> Optional[PlacementPreferences]:
    """
    Build placement preferences from a profile.

    Returns:
        Preferences or None if the profile does not exist or onboarding
        has not set a skill level and position yet
    """
    profile = await profile_service.get_profile_model(session, user_id)
    if profile is None or not profile.skill_level or not profile.preferred_position:
        return None
    return PlacementPreferences(
        skill_level=profile.skill_level,
        preferred_position=profile.preferred_position,
        home_field_id=profile.home_field_id,
    )


async def find_placement(
    session: AsyncSession,
    user_id: str,
    field_id: Optional[int] = None,
    time_slot=None,
    weights: Optional[PlacementWeights] = None,
) -> PlacementRanking:
    """
    Recommend a match for a player.

    Raises:
        ValueError: If the player has not completed onboarding
        NoMatchesAvailableError: If there are no candidate matches
    """
    preferences = await get_preferences(session, user_id)
    if preferences is None:
        raise ValueError("Complete your profile (skill level and position) before auto placement")

    weights = weights or PlacementWeights.from_env()
    candidates = await get_candidate_matches(session, field_id=field_id, time_slot=time_slot)
    logger.debug(f"Scoring {len(candidates)} candidate matches for user {user_id}")

    ranking = rank_candidates(candidates, preferences, weights)
    logger.info(
        f"Placement for user {user_id}: match {ranking.recommended.match.id} "
        f"scored {ranking.recommended.score} ({len(ranking.alternatives)} alternatives)"
    )
    return ranking


async def confirm_placement(session: AsyncSession, user_id: str, match_id: int) -> dict:
    """
    Accept a placement by joining the match.

    Returns:
        Dict with match_id, team_id, team_name, position, match_time, field
    """
    joined = await match_service.join_match(session, match_id, user_id)
    match = await match_service.get_match_model(session, match_id)

    return {
        "match_id": match_id,
        "team_id": joined["team_id"],
        "team_name": joined["team_name"],
        "position": role_label(joined["assigned_position"]),
        "match_time": format_match_time(match.scheduled_at),
        "field": match.field.name if match.field else "Unknown field",
    }
