"""
Pinned behaviours that are deliberate but look like bugs at first glance.

Each test documents a current behaviour so a change to it is a conscious
decision rather than an accident:

1. ``articlesCount`` is the size of the returned page, not the total number
   of matching articles.  LIKELY LATENT DEFECT: clients paginating with it
   will believe there is never a next page.
2. Every article submission stores fresh tag rows; tag texts are not
   deduplicated in storage.
3. Any authenticated user can update or delete any article.
4. Articles whose titles normalise alike share a slug; lookups return the
   oldest and deletion removes all of them.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.models import Tag, User
from conduit.schemas import ArticleCreate
from conduit.services.article_service import ArticleService
from conduit.services.identity import Authenticated
from conduit.store import Store


async def _post(client: AsyncClient, headers: dict, title: str, tags: list[str] | None = None):
    resp = await client.post("/api/articles", json={
        "article": {"title": title, "description": "d", "body": "b", "tagList": tags or []},
    }, headers=headers)
    assert resp.status_code == 200
    return resp.json()["article"]


# ---------------------------------------------------------------------------
# 1. articlesCount equals page size (known limitation)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_articles_count_is_page_size_not_total(async_client: AsyncClient, register):
    _, alice = await register("alice")
    for i in range(3):
        await _post(async_client, alice, f"Post {i}")

    resp = await async_client.get("/api/articles", params={"limit": 2})
    data = resp.json()
    assert len(data["articles"]) == 2
    # Three articles exist, but the reported count is the page size.
    assert data["articlesCount"] == 2


# ---------------------------------------------------------------------------
# 2. Fresh tag rows per submission
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tag_rows_are_not_deduplicated(db_session: AsyncSession):
    store = Store(db_session)
    alice = await store.users.add(User(username="alice", email="a@example.com", password_hash="x"))
    articles = ArticleService(store)
    identity = Authenticated(user=alice, token="unused")
    await articles.create(identity, ArticleCreate(title="A", description="d", body="b", tagList=["py"]))
    await articles.create(identity, ArticleCreate(title="B", description="d", body="b", tagList=["py"]))

    rows = (await db_session.execute(select(func.count()).select_from(Tag).where(Tag.tag == "py"))).scalar_one()
    assert rows == 2
    # The public tag list still shows each text once.
    assert await articles.tags() == ["py"]


# ---------------------------------------------------------------------------
# 3. No ownership check on article writes (open question)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_any_user_can_update_and_delete_an_article(async_client: AsyncClient, register):
    _, alice = await register("alice")
    _, mallory = await register("mallory")
    await _post(async_client, alice, "Alice Writes")

    resp = await async_client.put(
        "/api/articles/alice-writes", json={"article": {"body": "rewritten"}}, headers=mallory
    )
    assert resp.status_code == 200
    assert resp.json()["article"]["author"]["username"] == "alice"

    resp = await async_client.delete("/api/articles/alice-writes", headers=mallory)
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# 4. Shared slugs
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_shared_slug_resolves_to_oldest_and_deletes_all(async_client: AsyncClient, register):
    _, alice = await register("alice")
    await _post(async_client, alice, "Twin")
    await async_client.put("/api/articles/twin", json={"article": {"body": "first"}}, headers=alice)
    await _post(async_client, alice, "TWIN!")

    resp = await async_client.get("/api/articles/twin")
    assert resp.json()["body"] == "first"

    await async_client.delete("/api/articles/twin", headers=alice)
    resp = await async_client.get("/api/articles")
    assert resp.json()["articles"] == []
