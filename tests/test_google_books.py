import httpx
import pytest
from fastapi import HTTPException

from library_lookup.utils.google_books import search_volumes, volume_to_book_fields


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_search_returns_catalog_payload():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"totalItems": 0, "items": []})

    async with _client(handler) as client:
        data = await search_volumes("harry potter", client=client)

    assert data == {"totalItems": 0, "items": []}
    assert requests[0].url.params["q"] == "harry potter"
    assert "key" not in requests[0].url.params


@pytest.mark.parametrize("status", [403, 500, 503])
async def test_non_2xx_becomes_502(status):
    async with _client(lambda request: httpx.Response(status)) as client:
        with pytest.raises(HTTPException) as exc:
            await search_volumes("x", client=client)
    assert exc.value.status_code == 502
    assert exc.value.detail == "Failed to fetch books"


@pytest.mark.parametrize("body", [[], None, "text"])
async def test_non_object_payload_becomes_502(body):
    async with _client(lambda request: httpx.Response(200, json=body)) as client:
        with pytest.raises(HTTPException) as exc:
            await search_volumes("x", client=client)
    assert exc.value.status_code == 502
    assert exc.value.detail == "Failed to fetch books"


async def test_transport_error_becomes_502():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(HTTPException) as exc:
            await search_volumes("x", client=client)
    assert exc.value.status_code == 502


def test_volume_mapping_prefers_isbn13_and_thumbnail():
    fields = volume_to_book_fields(
        {
            "id": "abc",
            "volumeInfo": {
                "title": "The Hobbit",
                "authors": ["J. R. R. Tolkien"],
                "description": "There and back again.",
                "industryIdentifiers": [
                    {"type": "ISBN_10", "identifier": "054792822X"},
                    {"type": "ISBN_13", "identifier": "9780547928227"},
                ],
                "imageLinks": {"smallThumbnail": "s.jpg", "thumbnail": "t.jpg"},
            },
        }
    )
    assert fields == {
        "google_book_id": "abc",
        "title": "The Hobbit",
        "authors": ["J. R. R. Tolkien"],
        "description": "There and back again.",
        "image_url": "t.jpg",
        "isbn": "9780547928227",
    }


def test_volume_mapping_tolerates_sparse_items():
    fields = volume_to_book_fields({"id": "bare"})
    assert fields["google_book_id"] == "bare"
    assert fields["title"] is None
    assert fields["authors"] == []
    assert fields["isbn"] is None
    assert fields["image_url"] is None
