import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_lookup.deps.admin import is_admin
from library_lookup.models.book_model import Book
from library_lookup.models.comment_model import Comment
from library_lookup.models.user_model import User
from library_lookup.services.book_service import resolve_or_create_book

logger = logging.getLogger(__name__)


def _clean_text(text: str) -> str:
    text = (text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Comment text required")
    return text


async def add_comment(
    session: AsyncSession,
    user: User,
    google_book_id: str,
    text: str,
) -> Comment:
    if not (google_book_id or "").strip():
        raise HTTPException(status_code=400, detail="Book ID and comment required")
    text = _clean_text(text)

    book = await resolve_or_create_book(session, google_book_id)

    comment = Comment(book_id=book.id, user_id=user.id, comment=text)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return comment


async def list_comments(session: AsyncSession, google_book_id: str) -> List[dict]:
    rows = await session.execute(
        select(Comment, User.username)
        .join(Book, Book.id == Comment.book_id)
        .join(User, User.id == Comment.user_id)
        .where(Book.google_book_id == google_book_id)
        .order_by(Comment.created_at.desc(), Comment.comment_id.desc())
    )
    return [
        {
            "comment_id": c.comment_id,
            "comment": c.comment,
            "created_at": c.created_at,
            "updated_at": c.updated_at,
            "is_edited": bool(c.is_edited),
            "username": username,
        }
        for c, username in rows.all()
    ]


async def edit_comment(
    session: AsyncSession,
    comment_id: int,
    user: User,
    text: str,
) -> Comment:
    text = _clean_text(text)

    comment = await session.get(Comment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    if not (is_admin(user) or comment.user_id == user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized to edit this comment",
        )

    comment.comment = text
    comment.is_edited = True
    comment.updated_at = func.now()

    await session.commit()
    await session.refresh(comment)
    return comment


async def delete_comment(session: AsyncSession, comment_id: int) -> None:
    comment = await session.get(Comment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    await session.delete(comment)
    await session.commit()


async def list_for_user(session: AsyncSession, user: User) -> List[dict]:
    """Admins get every comment in the system; anyone else gets their own."""
    stmt = (
        select(Comment, User.username, Book.google_book_id, Book.title, Book.image_url)
        .join(Book, Book.id == Comment.book_id)
        .join(User, User.id == Comment.user_id)
        .order_by(Comment.created_at.desc(), Comment.comment_id.desc())
    )
    if not is_admin(user):
        stmt = stmt.where(Comment.user_id == user.id)

    rows = await session.execute(stmt)
    return [
        {
            "comment_id": c.comment_id,
            "comment": c.comment,
            "created_at": c.created_at,
            "updated_at": c.updated_at,
            "is_edited": bool(c.is_edited),
            "username": username,
            "google_book_id": google_book_id,
            "title": title,
            "image_url": image_url,
        }
        for c, username, google_book_id, title, image_url in rows.all()
    ]
