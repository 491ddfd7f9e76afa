"""
Team chat service.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.database.models import Message, Profile, Team
from teammind.services import match_service
from teammind.services.realtime_manager import queue_broadcast, team_channel

logger = logging.getLogger(__name__)


def _message_to_dict(message: Message, sender_name) -> Dict:
    return {
        "id": message.id,
        "match_id": message.match_id,
        "team_id": message.team_id,
        "sender_id": message.sender_id,
        "sender_name": sender_name,
        "content": message.content,
        "message_type": message.message_type,
        "is_captain_only": bool(message.is_captain_only),
        "created_at": message.created_at,
    }


async def list_messages(
    session: AsyncSession, team_id: int, user_id: str, limit: int = 100
) -> List[Dict]:
    """
    Messages for a team, oldest first.

    Captain-only messages are hidden from non-captains.

    Raises:
        ValueError: If the user is not on the team
    """
    member = await match_service.is_team_member(session, team_id, user_id)
    if member is None:
        raise ValueError("You are not a member of this team")

    query = (
        select(Message, Profile.full_name)
        .outerjoin(Profile, Profile.id == Message.sender_id)
        .where(Message.team_id == team_id)
    )
    if not member.is_captain:
        query = query.where(Message.is_captain_only == False)  # noqa: E712
    result = await session.execute(
        query.order_by(Message.created_at.asc(), Message.id.asc()).limit(limit)
    )
    return [_message_to_dict(m, name) for m, name in result.all()]


async def send_message(
    session: AsyncSession,
    team_id: int,
    sender_id: str,
    content: str,
    is_captain_only: bool = False,
) -> Dict:
    """
    Post a message to a team chat and push it to subscribers.

    Raises:
        ValueError: If the team doesn't exist, the sender isn't on it, a
            non-captain sends a captain-only message, or content is empty
    """
    if not content or not content.strip():
        raise ValueError("Message cannot be empty")

    team = await session.get(Team, team_id)
    if team is None:
        raise ValueError("Team not found")

    member = await match_service.is_team_member(session, team_id, sender_id)
    if member is None:
        raise ValueError("You are not a member of this team")
    if is_captain_only and not member.is_captain:
        raise ValueError("Only captains can send captain-only messages")

    message = Message(
        match_id=team.match_id,
        team_id=team_id,
        sender_id=sender_id,
        content=content.strip(),
        message_type="text",
        is_captain_only=is_captain_only,
    )
    session.add(message)
    await session.flush()
    await session.refresh(message)

    sender = await session.execute(select(Profile.full_name).where(Profile.id == sender_id))
    data = _message_to_dict(message, sender.scalar_one_or_none())
    if not is_captain_only:
        queue_broadcast(session, team_channel(team_id), "INSERT", data)
    logger.debug(f"User {sender_id} posted message {message.id} to team {team_id}")
    return data
