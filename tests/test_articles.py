"""
Article endpoint tests — CRUD, hashtag extraction through the API,
search, hashtag search, pagination bar and diagnostic response headers.

Each test creates the users and articles it needs through the API, so
test order does not matter.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user(client: AsyncClient, username: str, nickname: str | None = None) -> int:
    resp = await client.post("/api/v1/users", json={
        "username": username,
        "email": f"{username}@example.com",
        "nickname": nickname,
    })
    assert resp.status_code == 201
    return resp.json()["id"]


async def _create_article(client: AsyncClient, user_id: int, content: str, title: str = "Title") -> dict:
    resp = await client.post("/api/v1/articles", json={
        "title": title,
        "content": content,
        "user_id": user_id,
    })
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Infrastructure / health
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_response_diagnostic_headers(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles")
    assert float(resp.headers["x-response-time-ms"]) >= 0
    assert int(resp.headers["x-query-count"]) >= 1


# ---------------------------------------------------------------------------
# Create + get
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_get_article(async_client: AsyncClient):
    user_id = await _create_user(async_client, "writer", nickname="Writer")
    article = await _create_article(
        async_client, user_id, "Notes on #java and #spring, plus #부트", title="Test Article"
    )
    assert article["title"] == "Test Article"
    assert article["hashtags"] == ["java", "spring", "부트"]
    assert article["nickname"] == "Writer"

    resp = await async_client.get(f"/api/v1/articles/{article['id']}")
    assert resp.status_code == 200
    detail = resp.json()
    assert detail["content"] == "Notes on #java and #spring, plus #부트"
    assert detail["hashtags"] == ["java", "spring", "부트"]
    assert detail["comments"] == []


@pytest.mark.asyncio
async def test_create_article_unknown_user(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/articles", json={
        "title": "Orphan",
        "content": "#java",
        "user_id": 99999,
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_article_validation(async_client: AsyncClient):
    user_id = await _create_user(async_client, "validator")
    resp = await async_client.post("/api/v1/articles", json={
        "title": "",
        "content": "content",
        "user_id": user_id,
    })
    assert resp.status_code == 422

    resp = await async_client.post("/api/v1/articles", json={
        "title": "Too long",
        "content": "x" * 10001,
        "user_id": user_id,
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_article_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles/99999")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_article_rederives_hashtags(async_client: AsyncClient):
    user_id = await _create_user(async_client, "editor")
    article = await _create_article(async_client, user_id, "#java #spring")

    resp = await async_client.put(f"/api/v1/articles/{article['id']}", json={
        "content": "Now only #springboot",
        "user_id": user_id,
    })
    assert resp.status_code == 200
    assert resp.json()["hashtags"] == ["springboot"]

    resp = await async_client.get("/api/v1/articles/hashtags")
    assert resp.json() == ["springboot"]

    resp = await async_client.get("/api/v1/metrics")
    assert resp.json()["total_hashtags"] == 1


@pytest.mark.asyncio
async def test_update_article_by_other_user_forbidden(async_client: AsyncClient):
    author_id = await _create_user(async_client, "author")
    other_id = await _create_user(async_client, "intruder")
    article = await _create_article(async_client, author_id, "#java", title="Original")

    resp = await async_client.put(f"/api/v1/articles/{article['id']}", json={
        "title": "Hijacked",
        "user_id": other_id,
    })
    assert resp.status_code == 403

    resp = await async_client.get(f"/api/v1/articles/{article['id']}")
    assert resp.json()["title"] == "Original"


@pytest.mark.asyncio
async def test_update_nonexistent_article(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/articles/99999", json={"title": "Ghost", "user_id": 1})
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_article_cleans_up_hashtags(async_client: AsyncClient):
    user_id = await _create_user(async_client, "deleter")
    doomed = await _create_article(async_client, user_id, "#java #spring")
    await _create_article(async_client, user_id, "#spring")

    resp = await async_client.delete(f"/api/v1/articles/{doomed['id']}", params={"user_id": user_id})
    assert resp.status_code == 204

    resp = await async_client.get(f"/api/v1/articles/{doomed['id']}")
    assert resp.status_code == 404
    resp = await async_client.get("/api/v1/articles/hashtags")
    assert resp.json() == ["spring"]
    resp = await async_client.get("/api/v1/metrics")
    assert resp.json()["total_hashtags"] == 1


@pytest.mark.asyncio
async def test_delete_article_by_other_user_forbidden(async_client: AsyncClient):
    author_id = await _create_user(async_client, "keeper")
    other_id = await _create_user(async_client, "remover")
    article = await _create_article(async_client, author_id, "content")

    resp = await async_client.delete(f"/api/v1/articles/{article['id']}", params={"user_id": other_id})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_nonexistent_article(async_client: AsyncClient):
    resp = await async_client.delete("/api/v1/articles/99999", params={"user_id": 1})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_article_requires_user_id(async_client: AsyncClient):
    resp = await async_client.delete("/api/v1/articles/1")
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# List, search, pagination
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_articles_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles")
    assert resp.status_code == 200
    data = resp.json()
    assert data["items"] == []
    assert data["total"] == 0
    assert data["pagination_bar"] == []
    assert data["bar_length"] == 5


@pytest.mark.asyncio
async def test_article_pagination(async_client: AsyncClient):
    user_id = await _create_user(async_client, "paginator")
    for i in range(5):
        await _create_article(async_client, user_id, f"Content {i}", title=f"Article {i}")

    resp = await async_client.get("/api/v1/articles", params={"page": 2, "page_size": 2})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["items"]) == 1
    assert data["total"] == 5
    assert data["pages"] == 3
    assert data["page"] == 2
    assert data["pagination_bar"] == [0, 1, 2]


@pytest.mark.asyncio
async def test_article_list_sorted_by_title(async_client: AsyncClient):
    user_id = await _create_user(async_client, "sorter")
    for title in ("Bravo", "Alpha", "Charlie"):
        await _create_article(async_client, user_id, "content", title=title)

    resp = await async_client.get("/api/v1/articles", params={"sort_by": "title", "sort_order": "asc"})
    assert [a["title"] for a in resp.json()["items"]] == ["Alpha", "Bravo", "Charlie"]


@pytest.mark.asyncio
async def test_article_list_rejects_negative_page(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles", params={"page": -1})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_search_articles_by_content(async_client: AsyncClient):
    user_id = await _create_user(async_client, "searcher")
    await _create_article(async_client, user_id, "all about FastAPI", title="One")
    await _create_article(async_client, user_id, "all about Django", title="Two")

    resp = await async_client.get(
        "/api/v1/articles", params={"search_type": "content", "search_value": "fastapi"}
    )
    assert resp.status_code == 200
    assert [a["title"] for a in resp.json()["items"]] == ["One"]


@pytest.mark.asyncio
async def test_search_without_value_lists_everything(async_client: AsyncClient):
    user_id = await _create_user(async_client, "lister")
    await _create_article(async_client, user_id, "a")
    await _create_article(async_client, user_id, "b")

    resp = await async_client.get("/api/v1/articles", params={"search_type": "title"})
    assert resp.json()["total"] == 2


@pytest.mark.asyncio
async def test_search_via_hashtag(async_client: AsyncClient):
    user_id = await _create_user(async_client, "hashtagger")
    await _create_article(async_client, user_id, "#java", title="Java")
    await _create_article(async_client, user_id, "#Java", title="Capital Java")

    resp = await async_client.get("/api/v1/articles/search-hashtag", params={"hashtag": "java"})
    assert resp.status_code == 200
    data = resp.json()
    assert [a["title"] for a in data["items"]] == ["Java"]
    assert data["hashtags"] == ["Java", "java"]
    assert data["pagination_bar"] == [0]


@pytest.mark.asyncio
async def test_search_via_long_hashtag(async_client: AsyncClient):
    user_id = await _create_user(async_client, "longtagger")
    long_name = "tag" * 100
    await _create_article(async_client, user_id, f"#{long_name}", title="Long")

    resp = await async_client.get("/api/v1/articles/search-hashtag", params={"hashtag": long_name})
    assert resp.status_code == 200
    assert [a["title"] for a in resp.json()["items"]] == ["Long"]


@pytest.mark.asyncio
async def test_search_via_hashtag_without_hashtag(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles/search-hashtag")
    assert resp.status_code == 200
    data = resp.json()
    assert data["items"] == []
    assert data["total"] == 0


@pytest.mark.asyncio
async def test_article_count(async_client: AsyncClient):
    user_id = await _create_user(async_client, "counter")
    await _create_article(async_client, user_id, "a")
    await _create_article(async_client, user_id, "b")

    resp = await async_client.get("/api/v1/articles/count")
    assert resp.json() == {"count": 2}
