from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, StrictInt


class RatingIn(BaseModel):
    google_book_id: str = ""
    # strict: JSON true or "4" must not slip through as a rating;
    # range is checked by the service
    rating: Optional[StrictInt] = None


class RatingOut(BaseModel):
    id: int
    user_id: int
    book_id: int
    rating: int
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class RatingSaved(BaseModel):
    message: str
    rating: RatingOut


class ReviewerRatingOut(BaseModel):
    rating: int
    reviewer: str
    created_at: Optional[datetime] = None


class RatingListOut(BaseModel):
    ratings: List[ReviewerRatingOut] = []


class AverageRatingOut(BaseModel):
    average: float
    count: int
