import logging
from typing import Optional

import httpx
from fastapi import HTTPException

from library_lookup.config import (
    GOOGLE_BOOKS_API_URL,
    GOOGLE_BOOKS_API_KEY,
    GOOGLE_BOOKS_TIMEOUT,
)

logger = logging.getLogger(__name__)


async def search_volumes(query: str, client: Optional[httpx.AsyncClient] = None) -> dict:
    """
    Search the Google Books volumes endpoint and return its JSON payload as-is.

    Any transport error or non-2xx answer becomes a 502 with a generic message;
    the request is not retried.
    """
    params = {"q": query}
    if GOOGLE_BOOKS_API_KEY:
        params["key"] = GOOGLE_BOOKS_API_KEY

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=GOOGLE_BOOKS_TIMEOUT) as own_client:
                res = await own_client.get(GOOGLE_BOOKS_API_URL, params=params)
        else:
            res = await client.get(GOOGLE_BOOKS_API_URL, params=params)
        res.raise_for_status()
        data = res.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Google Books search failed for %r: %s", query, e)
        raise HTTPException(status_code=502, detail="Failed to fetch books")

    if not isinstance(data, dict):
        logger.error("Google Books returned a %s payload for %r", type(data).__name__, query)
        raise HTTPException(status_code=502, detail="Failed to fetch books")
    return data


def _isbn_13(volume_info: dict) -> Optional[str]:
    for ident in volume_info.get("industryIdentifiers") or []:
        if ident.get("type") == "ISBN_13":
            return ident.get("identifier")
    return None


def volume_to_book_fields(item: dict) -> dict:
    vi = item.get("volumeInfo") or {}
    images = vi.get("imageLinks") or {}
    return {
        "google_book_id": item.get("id"),
        "title": vi.get("title") or None,
        "authors": list(vi.get("authors") or []),
        "description": vi.get("description"),
        "image_url": images.get("thumbnail") or images.get("smallThumbnail"),
        "isbn": _isbn_13(vi),
    }
