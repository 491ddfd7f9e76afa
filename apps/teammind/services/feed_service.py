"""
Feed service - community posts, likes and comments.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.database.models import Post, PostComment, PostLike, Profile
from teammind.services.realtime_manager import POSTS_CHANNEL, queue_broadcast

logger = logging.getLogger(__name__)


async def _author_name(session: AsyncSession, user_id: str) -> Optional[str]:
    result = await session.execute(select(Profile.full_name).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def create_post(
    session: AsyncSession,
    user_id: str,
    content: str,
    media_url: Optional[str] = None,
    match_tag: Optional[str] = None,
) -> Dict:
    """
    Publish a post to the community feed.

    Raises:
        ValueError: If content is empty
    """
    if not content or not content.strip():
        raise ValueError("Post content cannot be empty")

    post = Post(user_id=user_id, content=content.strip(), media_url=media_url, match_tag=match_tag)
    session.add(post)
    await session.flush()
    await session.refresh(post)

    data = {
        "id": post.id,
        "user_id": post.user_id,
        "author_name": await _author_name(session, user_id),
        "content": post.content,
        "media_url": post.media_url,
        "match_tag": post.match_tag,
        "created_at": post.created_at,
        "like_count": 0,
        "comment_count": 0,
        "liked_by_me": False,
    }
    queue_broadcast(session, POSTS_CHANNEL, "INSERT", data)
    return data


async def list_posts(
    session: AsyncSession,
    viewer_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict]:
    """
    Newest posts first, with author, like/comment counts and whether the
    viewer has liked each one.
    """
    like_counts = (
        select(PostLike.post_id, func.count(PostLike.id).label("likes"))
        .group_by(PostLike.post_id)
        .subquery()
    )
    comment_counts = (
        select(PostComment.post_id, func.count(PostComment.id).label("comments"))
        .group_by(PostComment.post_id)
        .subquery()
    )

    result = await session.execute(
        select(
            Post,
            Profile.full_name,
            func.coalesce(like_counts.c.likes, 0),
            func.coalesce(comment_counts.c.comments, 0),
        )
        .outerjoin(Profile, Profile.id == Post.user_id)
        .outerjoin(like_counts, like_counts.c.post_id == Post.id)
        .outerjoin(comment_counts, comment_counts.c.post_id == Post.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = result.all()

    liked = set()
    if viewer_id and rows:
        liked_result = await session.execute(
            select(PostLike.post_id).where(
                PostLike.user_id == viewer_id,
                PostLike.post_id.in_([post.id for post, _, _, _ in rows]),
            )
        )
        liked = set(liked_result.scalars().all())

    return [
        {
            "id": post.id,
            "user_id": post.user_id,
            "author_name": author_name,
            "content": post.content,
            "media_url": post.media_url,
            "match_tag": post.match_tag,
            "created_at": post.created_at,
            "like_count": likes or 0,
            "comment_count": comments or 0,
            "liked_by_me": post.id in liked,
        }
        for post, author_name, likes, comments in rows
    ]


async def toggle_like(session: AsyncSession, post_id: int, user_id: str) -> Dict:
    """
    Like a post, or remove the like if it already exists.

    Returns:
        Dict with post_id, liked (new state) and like_count

    Raises:
        ValueError: If the post does not exist
    """
    if await session.get(Post, post_id) is None:
        raise ValueError("Post not found")

    result = await session.execute(
        select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        await session.delete(existing)
        liked = False
    else:
        session.add(PostLike(post_id=post_id, user_id=user_id))
        liked = True
    await session.flush()

    count = await session.execute(
        select(func.count(PostLike.id)).where(PostLike.post_id == post_id)
    )
    return {"post_id": post_id, "liked": liked, "like_count": count.scalar() or 0}


def _comment_to_dict(comment: PostComment, author_name: Optional[str]) -> Dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "author_name": author_name,
        "content": comment.content,
        "created_at": comment.created_at,
    }


async def list_comments(session: AsyncSession, post_id: int) -> List[Dict]:
    """Comments on a post, oldest first."""
    result = await session.execute(
        select(PostComment, Profile.full_name)
        .outerjoin(Profile, Profile.id == PostComment.user_id)
        .where(PostComment.post_id == post_id)
        .order_by(PostComment.created_at.asc(), PostComment.id.asc())
    )
    return [_comment_to_dict(c, name) for c, name in result.all()]


async def add_comment(session: AsyncSession, post_id: int, user_id: str, content: str) -> Dict:
    """
    Comment on a post.

    Raises:
        ValueError: If the post does not exist or content is empty
    """
    if not content or not content.strip():
        raise ValueError("Comment cannot be empty")
    if await session.get(Post, post_id) is None:
        raise ValueError("Post not found")

    comment = PostComment(post_id=post_id, user_id=user_id, content=content.strip())
    session.add(comment)
    await session.flush()
    await session.refresh(comment)

    data = _comment_to_dict(comment, await _author_name(session, user_id))
    queue_broadcast(session, POSTS_CHANNEL, "COMMENT", data)
    return data
