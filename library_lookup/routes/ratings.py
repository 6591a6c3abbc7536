from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from library_lookup.database import get_async_session
from library_lookup.models.user_model import User
from library_lookup.schemas.rating_schemas import (
    RatingIn, RatingSaved, RatingOut, RatingListOut, AverageRatingOut
)
from library_lookup.services import rating_service
from library_lookup.utils.token_utils import get_current_user

router = APIRouter(prefix="/api/ratings", tags=["ratings"])


@router.post("", response_model=RatingSaved, status_code=201)
async def save_rating(
    payload: RatingIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    rating = await rating_service.set_rating(db, user, payload.google_book_id, payload.rating)
    return RatingSaved(
        message="Rating saved successfully",
        rating=RatingOut.model_validate(rating),
    )


@router.get("/{google_book_id}", response_model=RatingListOut)
async def get_ratings(google_book_id: str, db: AsyncSession = Depends(get_async_session)):
    return {"ratings": await rating_service.list_ratings(db, google_book_id)}


@router.get("/{google_book_id}/average", response_model=AverageRatingOut)
async def get_average_rating(google_book_id: str, db: AsyncSession = Depends(get_async_session)):
    return await rating_service.average_rating(db, google_book_id)
