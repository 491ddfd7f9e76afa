"""Community feed route handlers."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.api.auth_dependencies import get_current_user_optional, require_user
from teammind.api.routes import limiter
from teammind.database.db import get_db_session
from teammind.models.schemas import (
    CommentResponse,
    CreateCommentRequest,
    CreatePostRequest,
    LikeToggleResponse,
    PostResponse,
)
from teammind.services import feed_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/posts", response_model=List[PostResponse])
async def list_posts(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: Optional[dict] = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_db_session),
):
    """Newest posts first (public; liked_by_me needs a token)."""
    try:
        return await feed_service.list_posts(
            session, viewer_id=user["id"] if user else None, limit=limit, offset=offset
        )
    except Exception as e:
        logger.error(f"Error listing posts: {e}")
        raise HTTPException(status_code=500, detail="Error listing posts")


@router.post("/api/posts", response_model=PostResponse)
@limiter.limit("10/minute")
async def create_post(
    request: Request,
    payload: CreatePostRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Publish a post."""
    try:
        return await feed_service.create_post(
            session,
            user["id"],
            payload.content,
            media_url=payload.media_url,
            match_tag=payload.match_tag,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating post: {e}")
        raise HTTPException(status_code=500, detail="Error creating post")


@router.post("/api/posts/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Like or unlike a post."""
    try:
        return await feed_service.toggle_like(session, post_id, user["id"])
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error toggling like on post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Error updating like")


@router.get("/api/posts/{post_id}/comments", response_model=List[CommentResponse])
async def list_comments(post_id: int, session: AsyncSession = Depends(get_db_session)):
    """Comments on a post, oldest first (public)."""
    try:
        return await feed_service.list_comments(session, post_id)
    except Exception as e:
        logger.error(f"Error listing comments for post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Error listing comments")


@router.post("/api/posts/{post_id}/comments", response_model=CommentResponse)
async def add_comment(
    post_id: int,
    payload: CreateCommentRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Comment on a post."""
    try:
        return await feed_service.add_comment(session, post_id, user["id"], payload.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error commenting on post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Error adding comment")
