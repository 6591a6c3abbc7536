import logging
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from library_lookup.database import upsert
from library_lookup.models.book_model import Book, Tag, BookTag, UNKNOWN_TITLE

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("title", "authors", "description", "image_url", "isbn")


def book_to_dict(book: Book, tags: Optional[Iterable[str]] = None) -> dict:
    data = {
        "id": book.id,
        "google_book_id": book.google_book_id,
        "title": book.title,
        "authors": list(book.authors or []),
        "description": book.description,
        "image_url": book.image_url,
        "isbn": book.isbn,
        "featured": bool(book.featured),
    }
    if tags is not None:
        data["tags"] = sorted(tags)
    return data


async def get_book(session: AsyncSession, google_book_id: str) -> Optional[Book]:
    return await session.scalar(
        select(Book).where(Book.google_book_id == google_book_id)
    )


async def require_book(session: AsyncSession, google_book_id: str) -> Book:
    book = await get_book(session, google_book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


async def resolve_or_create_book(
    session: AsyncSession,
    google_book_id: str,
    title: Optional[str] = None,
    authors: Optional[List[str]] = None,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    isbn: Optional[str] = None,
) -> Book:
    """
    Map a Google Books id to its local row, creating the row on first sight.

    The insert and the "already there" decision happen in one
    INSERT ... ON CONFLICT statement, so two requests racing on a new id still
    end up with a single row. Metadata passed in overwrites the stored values;
    omitted (None) fields are left alone. The caller owns the commit.
    """
    google_book_id = (google_book_id or "").strip()
    if not google_book_id:
        raise HTTPException(status_code=400, detail="Book ID is required")

    supplied = {
        "title": (title or "").strip() or None,
        "authors": authors,
        "description": description,
        "image_url": image_url,
        "isbn": isbn,
    }
    supplied = {k: v for k, v in supplied.items() if v is not None}

    stmt = upsert(session, Book).values(
        google_book_id=google_book_id,
        title=supplied.get("title", UNKNOWN_TITLE),
        authors=supplied.get("authors", []),
        description=supplied.get("description"),
        image_url=supplied.get("image_url"),
        isbn=supplied.get("isbn"),
        featured=False,
    )
    if supplied:
        stmt = stmt.on_conflict_do_update(
            index_elements=[Book.google_book_id],
            set_={k: stmt.excluded[k] for k in supplied},
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=[Book.google_book_id])
    await session.execute(stmt)

    return await session.scalar(
        select(Book)
        .where(Book.google_book_id == google_book_id)
        .execution_options(populate_existing=True)
    )


async def cache_catalog_books(session: AsyncSession, books: List[dict]) -> None:
    """Remember search hits locally without touching rows that already exist."""
    rows = {}
    for b in books:
        gid = b.get("google_book_id")
        if not gid or gid in rows:
            continue
        rows[gid] = {
            "google_book_id": gid,
            "title": b.get("title") or UNKNOWN_TITLE,
            "authors": b.get("authors") or [],
            "description": b.get("description"),
            "image_url": b.get("image_url"),
            "isbn": b.get("isbn"),
            "featured": False,
        }
    if not rows:
        return
    stmt = upsert(session, Book).values(list(rows.values()))
    await session.execute(
        stmt.on_conflict_do_nothing(index_elements=[Book.google_book_id])
    )
    await session.commit()


async def list_featured(session: AsyncSession, tag: Optional[str] = None) -> List[dict]:
    stmt = (
        select(Book)
        .options(selectinload(Book.tags))
        .where(Book.featured.is_(True))
        .order_by(Book.title, Book.id)
    )
    if tag:
        stmt = stmt.where(Book.tags.any(Tag.name == tag))

    books = (await session.execute(stmt)).scalars().all()
    return [book_to_dict(b, [t.name for t in b.tags]) for b in books]


async def tag_names(session: AsyncSession, book: Book) -> List[str]:
    rows = await session.execute(
        select(Tag.name)
        .join(BookTag, BookTag.tag_id == Tag.tag_id)
        .where(BookTag.book_id == book.id)
        .order_by(Tag.name)
    )
    return list(rows.scalars().all())


async def mark_featured(session: AsyncSession, google_book_id: str) -> Book:
    book = await require_book(session, google_book_id)
    book.featured = True
    await session.commit()
    await session.refresh(book)
    logger.info("Book %s marked as featured", google_book_id)
    return book


async def add_tag(session: AsyncSession, google_book_id: str, tag_name: str) -> None:
    name = (tag_name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Tag name required")

    book = await require_book(session, google_book_id)

    await session.execute(
        upsert(session, Tag).values(name=name).on_conflict_do_nothing(index_elements=[Tag.name])
    )
    tag_id = await session.scalar(select(Tag.tag_id).where(Tag.name == name))

    # linking twice is a no-op
    await session.execute(
        upsert(session, BookTag)
        .values(book_id=book.id, tag_id=tag_id)
        .on_conflict_do_nothing()
    )
    await session.commit()
    logger.info("Tag %r added to book %s", name, google_book_id)


async def remove_tag(session: AsyncSession, google_book_id: str, tag_name: str) -> None:
    book = await require_book(session, google_book_id)

    tag_id = await session.scalar(select(Tag.tag_id).where(Tag.name == tag_name))
    if tag_id is None:
        raise HTTPException(status_code=404, detail="Tag not found")

    result = await session.execute(
        delete(BookTag).where(BookTag.book_id == book.id, BookTag.tag_id == tag_id)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Tag not associated with book")

    await session.commit()
    logger.info("Tag %r removed from book %s", tag_name, google_book_id)
