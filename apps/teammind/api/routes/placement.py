"""Auto-placement route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.api.auth_dependencies import require_onboarded_player
from teammind.api.routes import limiter
from teammind.database.db import get_db_session
from teammind.models.schemas import (
    PlacementConfirmRequest,
    PlacementConfirmResponse,
    PlacementRanking,
    PlacementSearchRequest,
)
from teammind.services import placement_service
from teammind.services.placement_service import NoMatchesAvailableError
from teammind.utils.constants import PlacementConfigError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/placement/search", response_model=PlacementRanking)
@limiter.limit("30/minute")
async def search_placement(
    request: Request,
    payload: Optional[PlacementSearchRequest] = None,
    user: dict = Depends(require_onboarded_player),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Score upcoming public matches for the caller and return the best one
    plus up to two alternatives.
    """
    payload = payload or PlacementSearchRequest()
    try:
        return await placement_service.find_placement(
            session, user["id"], field_id=payload.field_id, time_slot=payload.time_slot
        )
    except NoMatchesAvailableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PlacementConfigError as e:
        logger.error(f"Invalid placement configuration: {e}")
        raise HTTPException(status_code=500, detail="Placement is not configured correctly")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading placement candidates: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Could not load candidate matches")


@router.post("/api/placement/confirm", response_model=PlacementConfirmResponse)
async def confirm_placement(
    payload: PlacementConfirmRequest,
    user: dict = Depends(require_onboarded_player),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept a placement and join the match."""
    try:
        return await placement_service.confirm_placement(session, user["id"], payload.match_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error confirming placement: {e}")
        raise HTTPException(status_code=500, detail="Error confirming placement")
