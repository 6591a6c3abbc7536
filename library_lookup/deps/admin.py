# library_lookup/deps/admin.py
from fastapi import Depends, HTTPException, status
from library_lookup.models.user_model import User
from library_lookup.utils.token_utils import get_current_user


def is_admin(user: User) -> bool:
    return (getattr(user, "role", "") or "").lower() == "admin"


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    Requires the authenticated user to have role=admin.
    get_current_user loads the user row on every request, so a demoted admin
    holding an older token is rejected here.
    Raises 403 if not an admin.
    """
    if not is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
