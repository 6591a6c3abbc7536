import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from library_lookup.database import get_async_session
from library_lookup.deps.admin import require_admin
from library_lookup.models.user_model import User
from library_lookup.schemas.book_schemas import MessageOut
from library_lookup.schemas.comment_schemas import (
    CommentIn, CommentUpdateIn, CommentOut, CommentSaved, BookCommentsOut, UserCommentsOut
)
from library_lookup.services import comment_service
from library_lookup.utils.token_utils import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("/user/comments", response_model=UserCommentsOut)
async def my_comments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return {"comments": await comment_service.list_for_user(db, user)}


@router.post("", response_model=CommentSaved, status_code=201)
async def add_comment(
    payload: CommentIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    comment = await comment_service.add_comment(db, user, payload.google_book_id, payload.comment)
    return CommentSaved(
        message="Comment added successfully",
        comment=CommentOut.model_validate(comment),
    )


@router.get("/{google_book_id}", response_model=BookCommentsOut)
async def get_comments(google_book_id: str, db: AsyncSession = Depends(get_async_session)):
    return {"comments": await comment_service.list_comments(db, google_book_id)}


@router.put("/{comment_id}", response_model=CommentSaved)
async def edit_comment(
    comment_id: int,
    payload: CommentUpdateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    comment = await comment_service.edit_comment(db, comment_id, user, payload.comment)
    return CommentSaved(
        message="Comment updated successfully",
        comment=CommentOut.model_validate(comment),
    )


@router.delete("/{comment_id}", response_model=MessageOut)
async def delete_comment(
    comment_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    await comment_service.delete_comment(db, comment_id)
    logger.info("Comment %s deleted by admin %s", comment_id, admin.id)
    return {"message": "Comment deleted successfully"}
