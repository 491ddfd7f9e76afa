"""Match and team route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.api.auth_dependencies import get_current_user_optional, require_user
from teammind.database.db import get_db_session
from teammind.models.schemas import (
    CreateMatchRequest,
    JoinMatchResponse,
    MatchDetailResponse,
    MatchSummary,
    TeamDetailResponse,
)
from teammind.services import match_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/matches", response_model=MatchSummary)
async def create_match(
    payload: CreateMatchRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a game with two default teams."""
    try:
        return await match_service.create_match(
            session,
            created_by=user["id"],
            field_id=payload.field_id,
            scheduled_at=payload.scheduled_at,
            match_type=payload.match_type,
            skill_level=payload.skill_level,
            max_players=payload.max_players,
            is_public=payload.is_public,
            duration_minutes=payload.duration_minutes,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating match: {e}")
        raise HTTPException(status_code=500, detail="Error creating game")


@router.get("/api/matches", response_model=List[MatchSummary])
async def list_upcoming_matches(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
):
    """Upcoming public games, soonest first (public)."""
    try:
        return await match_service.list_upcoming_matches(session, limit=limit, offset=offset)
    except Exception as e:
        logger.error(f"Error listing matches: {e}")
        raise HTTPException(status_code=500, detail="Error listing matches")


@router.get("/api/matches/{match_id}", response_model=MatchDetailResponse)
async def get_match(
    match_id: int,
    user: Optional[dict] = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_db_session),
):
    """Match details with rosters; reports the caller's team when signed in."""
    try:
        details = await match_service.get_match_details(
            session, match_id, user_id=user["id"] if user else None
        )
        if details is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return details
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading match {match_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading match")


@router.post("/api/matches/{match_id}/join", response_model=JoinMatchResponse)
async def join_match(
    match_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Join a match; the caller is placed on the smaller team."""
    try:
        return await match_service.join_match(session, match_id, user["id"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error joining match {match_id}: {e}")
        raise HTTPException(status_code=500, detail="Error joining match")


@router.get("/api/teams/{team_id}", response_model=TeamDetailResponse)
async def get_team(team_id: int, session: AsyncSession = Depends(get_db_session)):
    """Team roster with its match and opponent (public)."""
    try:
        team = await match_service.get_team_details(session, team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return team
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading team {team_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading team")


@router.delete("/api/teams/{team_id}/membership")
async def leave_team(
    team_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Leave a team."""
    try:
        await match_service.leave_team(session, team_id, user["id"])
        return {"status": "ok", "message": "You have left the team"}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error leaving team {team_id}: {e}")
        raise HTTPException(status_code=500, detail="Error leaving team")
