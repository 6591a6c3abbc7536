from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from library_lookup.database import get_async_session
from library_lookup.deps.admin import require_admin
from library_lookup.models.user_model import User
from library_lookup.schemas.book_schemas import (
    BookUpsert, BookEnvelope, BookDetailOut, FeatureResponse, TagIn, MessageOut
)
from library_lookup.services import book_service, rating_service
from library_lookup.utils import google_books
from library_lookup.utils.token_utils import get_current_user_optional

router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("")
async def search_books(
    q: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_session),
):
    """
    No query: featured books. `tag`: featured books carrying that tag.
    `q`: a Google Books search, returned as the catalog sent it.
    """
    if not q and not tag:
        return {"items": await book_service.list_featured(db)}

    if tag:
        return {"items": await book_service.list_featured(db, tag=tag)}

    payload = await google_books.search_volumes(q)
    hits = [google_books.volume_to_book_fields(item) for item in payload.get("items") or []]
    await book_service.cache_catalog_books(db, hits)
    return payload


@router.post("", response_model=BookEnvelope, status_code=201)
async def upsert_book(payload: BookUpsert, db: AsyncSession = Depends(get_async_session)):
    book = await book_service.resolve_or_create_book(
        db,
        payload.google_book_id,
        title=payload.title,
        authors=payload.authors,
        description=payload.description,
        image_url=payload.image_url,
    )
    await db.commit()
    await db.refresh(book)
    return {"book": book_service.book_to_dict(book)}


@router.get("/{google_book_id}", response_model=BookDetailOut)
async def get_book_detail(
    google_book_id: str,
    db: AsyncSession = Depends(get_async_session),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    book = await book_service.require_book(db, google_book_id)
    tags = await book_service.tag_names(db, book)
    aggregate = await rating_service.average_rating(db, google_book_id)

    data = book_service.book_to_dict(book, tags)
    data["average_rating"] = aggregate["average"]
    data["rating_count"] = aggregate["count"]
    data["my_rating"] = await rating_service.user_rating(db, viewer, book) if viewer else None
    return data


@router.post("/{google_book_id}/feature", response_model=FeatureResponse)
async def feature_book(
    google_book_id: str,
    db: AsyncSession = Depends(get_async_session),
    _admin: User = Depends(require_admin),
):
    book = await book_service.mark_featured(db, google_book_id)
    return {"message": "Book marked as featured", "book": book_service.book_to_dict(book)}


@router.post("/{google_book_id}/tags", response_model=MessageOut)
async def add_book_tag(
    google_book_id: str,
    payload: TagIn,
    db: AsyncSession = Depends(get_async_session),
    _admin: User = Depends(require_admin),
):
    await book_service.add_tag(db, google_book_id, payload.tag_name)
    return {"message": "Tag added to book"}


@router.delete("/{google_book_id}/tags/{tag_name}", response_model=MessageOut)
async def remove_book_tag(
    google_book_id: str,
    tag_name: str,
    db: AsyncSession = Depends(get_async_session),
    _admin: User = Depends(require_admin),
):
    await book_service.remove_tag(db, google_book_id, tag_name)
    return {"message": "Tag removed from book"}
