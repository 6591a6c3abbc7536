import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_lookup.database import upsert
from library_lookup.models.book_model import Book
from library_lookup.models.rating_model import Rating
from library_lookup.models.user_model import User
from library_lookup.services.book_service import resolve_or_create_book

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


async def set_rating(
    session: AsyncSession,
    user: User,
    google_book_id: str,
    value: Optional[int],
) -> Rating:
    if isinstance(value, bool) or not isinstance(value, int) or not (MIN_RATING <= value <= MAX_RATING):
        raise HTTPException(status_code=400, detail="Rating must be an integer between 1 and 5")

    book = await resolve_or_create_book(session, google_book_id)

    # one row per (user, book); a second vote replaces the first
    stmt = upsert(session, Rating).values(user_id=user.id, book_id=book.id, rating=value)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Rating.user_id, Rating.book_id],
        set_={"rating": stmt.excluded.rating},
    )
    await session.execute(stmt)
    await session.commit()

    return await session.scalar(
        select(Rating)
        .where(Rating.user_id == user.id, Rating.book_id == book.id)
        .execution_options(populate_existing=True)
    )


async def list_ratings(session: AsyncSession, google_book_id: str) -> List[dict]:
    rows = await session.execute(
        select(Rating.rating, User.username, Rating.created_at)
        .join(Book, Book.id == Rating.book_id)
        .join(User, User.id == Rating.user_id)
        .where(Book.google_book_id == google_book_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    return [
        {"rating": rating, "reviewer": username, "created_at": created_at}
        for rating, username, created_at in rows.all()
    ]


async def average_rating(session: AsyncSession, google_book_id: str) -> dict:
    """AVG/COUNT over the book's ratings; an unknown or unrated book is {0, 0}."""
    row = (
        await session.execute(
            select(func.avg(Rating.rating), func.count(Rating.rating))
            .join(Book, Book.id == Rating.book_id)
            .where(Book.google_book_id == google_book_id)
        )
    ).one()
    avg, count = row
    return {
        "average": round(float(avg), 2) if avg is not None else 0,
        "count": int(count or 0),
    }


async def user_rating(session: AsyncSession, user: User, book: Book) -> Optional[int]:
    return await session.scalar(
        select(Rating.rating).where(Rating.user_id == user.id, Rating.book_id == book.id)
    )
