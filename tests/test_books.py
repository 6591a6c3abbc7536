"""Book upsert, catalog search, featured listing and admin tag management."""
from fastapi import HTTPException

from library_lookup.utils import google_books


async def test_upsert_book_creates_then_updates(client):
    res = await client.post(
        "/api/books",
        json={"google_book_id": "X1", "title": "First", "authors": ["A"]},
    )
    assert res.status_code == 201
    book = res.json()["book"]
    assert book["title"] == "First"
    assert book["featured"] is False

    res = await client.post(
        "/api/books",
        json={
            "google_book_id": "X1",
            "title": "Second",
            "authors": ["A", "B"],
            "description": "d",
            "image_url": "http://img",
        },
    )
    assert res.status_code == 201
    updated = res.json()["book"]
    assert updated["id"] == book["id"]
    assert updated["title"] == "Second"
    assert updated["authors"] == ["A", "B"]
    assert updated["image_url"] == "http://img"


async def test_upsert_book_requires_id(client):
    res = await client.post("/api/books", json={"title": "No id"})
    assert res.status_code == 400
    assert res.json() == {"error": "Book ID is required"}


async def test_feature_and_tag_require_admin(client, signup):
    await client.post("/api/books", json={"google_book_id": "X2", "title": "T"})

    res = await client.post("/api/books/X2/feature")
    assert res.status_code == 401

    _, headers = await signup("plain")
    res = await client.post("/api/books/X2/feature", headers=headers)
    assert res.status_code == 403
    assert res.json() == {"error": "Admin access required"}

    res = await client.post("/api/books/X2/tags", json={"tag_name": "scifi"}, headers=headers)
    assert res.status_code == 403
    res = await client.delete("/api/books/X2/tags/scifi", headers=headers)
    assert res.status_code == 403


async def test_role_is_read_from_storage_not_token(client, signup, set_role):
    await client.post("/api/books", json={"google_book_id": "X3", "title": "T"})
    user, headers = await signup("flipper")

    await set_role(user["id"], "admin")
    res = await client.post("/api/books/X3/feature", headers=headers)
    assert res.status_code == 200

    # the token still claims role=user either way; the stored role decides
    await set_role(user["id"], "user")
    res = await client.post("/api/books/X3/feature", headers=headers)
    assert res.status_code == 403


async def test_feature_unknown_book_is_404(client, admin):
    _, headers = await admin()
    res = await client.post("/api/books/missing/feature", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Book not found"}


async def test_featured_listing_and_tag_filter(client, admin):
    _, headers = await admin()
    for gid, title in [("F1", "Alpha"), ("F2", "Beta"), ("N1", "Not featured")]:
        await client.post("/api/books", json={"google_book_id": gid, "title": title})
    for gid in ("F1", "F2"):
        assert (await client.post(f"/api/books/{gid}/feature", headers=headers)).status_code == 200

    assert (await client.post("/api/books/F1/tags", json={"tag_name": "scifi"}, headers=headers)).status_code == 200
    assert (await client.post("/api/books/F1/tags", json={"tag_name": "classic"}, headers=headers)).status_code == 200
    assert (await client.post("/api/books/N1/tags", json={"tag_name": "scifi"}, headers=headers)).status_code == 200

    res = await client.get("/api/books")
    items = res.json()["items"]
    assert [b["google_book_id"] for b in items] == ["F1", "F2"]
    assert items[0]["tags"] == ["classic", "scifi"]
    assert items[1]["tags"] == []

    res = await client.get("/api/books", params={"tag": "scifi"})
    assert [b["google_book_id"] for b in res.json()["items"]] == ["F1"]

    res = await client.get("/api/books", params={"tag": "nothing"})
    assert res.json() == {"items": []}


async def test_adding_same_tag_twice_is_a_noop(client, admin):
    _, headers = await admin()
    await client.post("/api/books", json={"google_book_id": "T1", "title": "T"})

    for _ in range(2):
        res = await client.post("/api/books/T1/tags", json={"tag_name": "fantasy"}, headers=headers)
        assert res.status_code == 200
        assert res.json() == {"message": "Tag added to book"}

    detail = await client.get("/api/books/T1")
    assert detail.json()["tags"] == ["fantasy"]


async def test_add_tag_validation(client, admin):
    _, headers = await admin()
    res = await client.post("/api/books/none/tags", json={"tag_name": ""}, headers=headers)
    assert res.status_code == 400
    res = await client.post("/api/books/none/tags", json={"tag_name": "x"}, headers=headers)
    assert res.status_code == 404


async def test_remove_tag(client, admin):
    _, headers = await admin()
    await client.post("/api/books", json={"google_book_id": "R1", "title": "T"})
    await client.post("/api/books", json={"google_book_id": "R2", "title": "T"})
    await client.post("/api/books/R1/tags", json={"tag_name": "horror"}, headers=headers)

    res = await client.delete("/api/books/missing/tags/horror", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Book not found"}

    res = await client.delete("/api/books/R1/tags/unknown", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Tag not found"}

    res = await client.delete("/api/books/R2/tags/horror", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Tag not associated with book"}

    res = await client.delete("/api/books/R1/tags/horror", headers=headers)
    assert res.status_code == 200
    assert (await client.get("/api/books/R1")).json()["tags"] == []


async def test_book_detail_includes_aggregate_and_own_rating(client, signup):
    assert (await client.get("/api/books/D1")).status_code == 404

    _, headers = await signup("detail")
    await client.post("/api/ratings", json={"google_book_id": "D1", "rating": 3}, headers=headers)

    anonymous = (await client.get("/api/books/D1")).json()
    assert anonymous["average_rating"] == 3
    assert anonymous["rating_count"] == 1
    assert anonymous["my_rating"] is None

    mine = (await client.get("/api/books/D1", headers=headers)).json()
    assert mine["my_rating"] == 3


async def test_search_proxies_catalog_and_caches_hits(client, signup, monkeypatch):
    payload = {
        "totalItems": 1,
        "items": [
            {
                "id": "dune-id",
                "volumeInfo": {
                    "title": "Dune",
                    "authors": ["Frank Herbert"],
                    "industryIdentifiers": [
                        {"type": "ISBN_10", "identifier": "0441172717"},
                        {"type": "ISBN_13", "identifier": "9780441172719"},
                    ],
                    "imageLinks": {"thumbnail": "http://covers/dune.jpg"},
                },
            }
        ],
    }
    seen = []

    async def fake_search(query, client=None):
        seen.append(query)
        return payload

    monkeypatch.setattr(google_books, "search_volumes", fake_search)

    res = await client.get("/api/books", params={"q": "dune"})
    assert res.status_code == 200
    assert res.json() == payload
    assert seen == ["dune"]

    cached = (await client.get("/api/books/dune-id")).json()
    assert cached["title"] == "Dune"
    assert cached["authors"] == ["Frank Herbert"]
    assert cached["isbn"] == "9780441172719"
    assert cached["featured"] is False


async def test_search_upstream_failure_is_502(client, monkeypatch):
    async def broken(query, client=None):
        raise HTTPException(status_code=502, detail="Failed to fetch books")

    monkeypatch.setattr(google_books, "search_volumes", broken)
    res = await client.get("/api/books", params={"q": "anything"})
    assert res.status_code == 502
    assert res.json() == {"error": "Failed to fetch books"}
