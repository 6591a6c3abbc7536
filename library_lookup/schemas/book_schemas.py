from pydantic import BaseModel
from typing import List, Optional


class BookUpsert(BaseModel):
    google_book_id: str = ""
    title: Optional[str] = None
    authors: Optional[List[str]] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


class BookOut(BaseModel):
    id: int
    google_book_id: str
    title: str
    authors: List[str] = []
    description: Optional[str] = None
    image_url: Optional[str] = None
    isbn: Optional[str] = None
    featured: bool = False

    model_config = {
        "from_attributes": True
    }


class BookWithTagsOut(BookOut):
    tags: List[str] = []


class BookDetailOut(BookWithTagsOut):
    average_rating: float = 0
    rating_count: int = 0
    my_rating: Optional[int] = None


class BookEnvelope(BaseModel):
    book: BookOut


class FeatureResponse(BaseModel):
    message: str
    book: BookOut


class TagIn(BaseModel):
    tag_name: str = ""


class MessageOut(BaseModel):
    message: str
