from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional


class CommentIn(BaseModel):
    google_book_id: str = ""
    comment: str = ""


class CommentUpdateIn(BaseModel):
    comment: str = ""


class CommentOut(BaseModel):
    comment_id: int
    book_id: int
    user_id: int
    comment: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_edited: bool = False

    model_config = {
        "from_attributes": True
    }


class CommentSaved(BaseModel):
    message: str
    comment: CommentOut


class BookCommentOut(BaseModel):
    comment_id: int
    comment: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_edited: bool = False
    username: Optional[str] = None


class BookCommentsOut(BaseModel):
    comments: List[BookCommentOut] = []


class UserCommentOut(BookCommentOut):
    google_book_id: str
    title: str
    image_url: Optional[str] = None


class UserCommentsOut(BaseModel):
    comments: List[UserCommentOut] = []
