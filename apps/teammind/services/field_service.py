"""
Field service - venue catalogue and default field seeding.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.database.models import Field, Match
from teammind.utils.constants import DEFAULT_FIELDS
from teammind.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


def field_to_dict(field: Field, upcoming_matches: Optional[int] = None) -> Dict:
    return {
        "id": field.id,
        "name": field.name,
        "slug": field.slug,
        "location": field.location,
        "latitude": field.latitude,
        "longitude": field.longitude,
        "capacity": field.capacity,
        "status": field.status,
        "upcoming_matches": upcoming_matches,
    }


async def list_fields(session: AsyncSession) -> List[Dict]:
    """List all fields ordered by name."""
    result = await session.execute(select(Field).order_by(Field.name.asc()))
    return [field_to_dict(f) for f in result.scalars().all()]


async def get_field(session: AsyncSession, field_id: int) -> Optional[Dict]:
    """
    Get a field with the number of upcoming public matches scheduled there.

    Returns:
        Field dict or None if not found
    """
    field = await session.get(Field, field_id)
    if field is None:
        return None
    result = await session.execute(
        select(func.count(Match.id)).where(
            Match.field_id == field_id,
            Match.is_public == True,  # noqa: E712
            Match.scheduled_at >= utcnow(),
        )
    )
    return field_to_dict(field, upcoming_matches=result.scalar() or 0)


async def get_or_create_field(
    session: AsyncSession,
    name: str,
    location: str,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    slug: Optional[str] = None,
) -> Field:
    """Look up a field by name, creating it if missing."""
    result = await session.execute(select(Field).where(Field.name == name))
    field = result.scalar_one_or_none()
    if field is not None:
        return field

    field = Field(
        name=name,
        slug=slug,
        location=location,
        latitude=latitude,
        longitude=longitude,
        status="open",
    )
    session.add(field)
    await session.flush()
    logger.info(f"Created field '{name}' (id={field.id})")
    return field


async def seed_default_fields(session: AsyncSession) -> int:
    """
    Ensure the default venues exist.

    Returns:
        Number of fields created
    """
    created = 0
    for slug, name, address, lat, lng in DEFAULT_FIELDS:
        result = await session.execute(select(Field.id).where(Field.name == name))
        if result.scalar_one_or_none() is None:
            await get_or_create_field(session, name, address, lat, lng, slug=slug)
            created += 1
    return created
