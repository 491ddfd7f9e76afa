"""Field route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.database.db import get_db_session
from teammind.models.schemas import FieldResponse
from teammind.services import field_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/fields", response_model=List[FieldResponse])
async def list_fields(session: AsyncSession = Depends(get_db_session)):
    """List playing fields (public)."""
    try:
        return await field_service.list_fields(session)
    except Exception as e:
        logger.error(f"Error listing fields: {e}")
        raise HTTPException(status_code=500, detail="Error listing fields")


@router.get("/api/fields/{field_id}", response_model=FieldResponse)
async def get_field(field_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a field with its upcoming match count (public)."""
    try:
        field = await field_service.get_field(session, field_id)
        if field is None:
            raise HTTPException(status_code=404, detail="Field not found")
        return field
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting field {field_id}: {e}")
        raise HTTPException(status_code=500, detail="Error getting field")
