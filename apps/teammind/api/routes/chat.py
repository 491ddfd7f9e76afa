"""Team chat and realtime subscription route handlers."""

import asyncio
import logging
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.api.auth_dependencies import require_user
from teammind.database.db import AsyncSessionLocal, get_db_session
from teammind.models.schemas import MessageResponse, SendMessageRequest
from teammind.services import auth_service, chat_service, match_service
from teammind.services.realtime_manager import (
    AVAILABILITY_CHANNEL,
    POSTS_CHANNEL,
    WEBSOCKET_TIMEOUT_SECONDS,
    get_realtime_manager,
)
from teammind.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()

PUBLIC_CHANNELS = {AVAILABILITY_CHANNEL, POSTS_CHANNEL}


@router.get("/api/teams/{team_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    team_id: int,
    limit: int = Query(100, ge=1, le=500),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Team chat history, oldest first. Members only."""
    try:
        return await chat_service.list_messages(session, team_id, user["id"], limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        logger.error(f"Error listing messages for team {team_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading messages")


@router.post("/api/teams/{team_id}/messages", response_model=MessageResponse)
async def send_message(
    team_id: int,
    payload: SendMessageRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Post to the team chat."""
    try:
        return await chat_service.send_message(
            session,
            team_id,
            user["id"],
            payload.content,
            is_captain_only=payload.is_captain_only,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error sending message to team {team_id}: {e}")
        raise HTTPException(status_code=500, detail="Error sending message")


async def _can_subscribe(channel: str, user_id: str) -> bool:
    if channel in PUBLIC_CHANNELS:
        return True
    prefix, _, team_id = channel.partition(":")
    if prefix != "team" or not team_id.isdigit():
        return False
    async with AsyncSessionLocal() as session:
        member = await match_service.is_team_member(session, int(team_id), user_id)
    return member is not None


@router.websocket("/api/ws/{channel}")
async def websocket_channel(websocket: WebSocket, channel: str):
    """
    WebSocket endpoint for realtime row events.

    Channels: "availability", "posts", "team:<id>" (members only).
    Requires JWT token in query parameter: ?token=<jwt_token>
    """
    await websocket.accept()

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008, reason="Missing authentication token")
        return

    payload = auth_service.verify_token(token)
    if payload is None:
        await websocket.close(code=1008, reason="Invalid authentication token")
        return

    user_id = auth_service.get_subject(payload)
    if user_id is None:
        await websocket.close(code=1008, reason="Invalid token payload")
        return

    if not await _can_subscribe(channel, user_id):
        await websocket.close(code=1008, reason="Channel not available")
        return

    manager = get_realtime_manager()
    await manager.subscribe(channel, websocket)

    try:
        last_activity = utcnow()
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(), timeout=WEBSOCKET_TIMEOUT_SECONDS
                )
                last_activity = utcnow()
                await manager.update_activity(websocket)
                if data == "ping":
                    await websocket.send_text("pong")
            except asyncio.TimeoutError:
                if utcnow() - last_activity > timedelta(seconds=WEBSOCKET_TIMEOUT_SECONDS):
                    logger.info(f"WebSocket timeout on {channel} for user {user_id}")
                    await websocket.close(code=1000, reason="Connection timeout")
                    break
                try:
                    await websocket.send_text("ping")
                except Exception:
                    break
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected from {channel} for user {user_id}")
    except Exception as e:
        logger.error(f"WebSocket error on {channel} for user {user_id}: {e}")
    finally:
        await manager.unsubscribe(channel, websocket)
