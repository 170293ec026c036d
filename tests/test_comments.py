"""
Comment endpoint tests — adding, listing with the viewer-relative
``following`` annotation, and deleting comments.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _article(client: AsyncClient, headers: dict, title: str = "Commentable") -> str:
    resp = await client.post("/api/articles", json={
        "article": {"title": title, "description": "d", "body": "b", "tagList": []},
    }, headers=headers)
    assert resp.status_code == 200
    return resp.json()["article"]["slug"]


async def _comment(client: AsyncClient, slug: str, headers: dict, body: str = "Great article!") -> dict:
    resp = await client.post(
        f"/api/articles/{slug}/comments", json={"comment": {"body": body}}, headers=headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["comment"]


# ---------------------------------------------------------------------------
# Add comment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    comment = await _comment(async_client, slug, alice)
    assert comment["body"] == "Great article!"
    assert comment["author"]["username"] == "alice"
    assert comment["author"]["following"] is False
    assert {"id", "createdAt", "updatedAt"} <= set(comment)


@pytest.mark.asyncio
async def test_add_comment_requires_token(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    resp = await async_client.post(f"/api/articles/{slug}/comments", json={"comment": {"body": "x"}})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_add_comment_unknown_article(async_client: AsyncClient, register):
    _, alice = await register("alice")
    resp = await async_client.post(
        "/api/articles/ghost/comments", json={"comment": {"body": "x"}}, headers=alice
    )
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"slug": ["slug not found"]}}


@pytest.mark.asyncio
async def test_add_empty_comment(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    resp = await async_client.post(
        f"/api/articles/{slug}/comments", json={"comment": {"body": ""}}, headers=alice
    )
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"body": ["body cannot be empty"]}}


# ---------------------------------------------------------------------------
# List comments
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_comments_anonymous(async_client: AsyncClient, register):
    _, alice = await register("alice")
    _, bob = await register("bob")
    slug = await _article(async_client, alice)
    await _comment(async_client, slug, alice, "first")
    await _comment(async_client, slug, bob, "second")

    resp = await async_client.get(f"/api/articles/{slug}/comments")
    assert resp.status_code == 200
    comments = resp.json()["comments"]
    assert [c["body"] for c in comments] == ["first", "second"]
    assert all(c["author"]["following"] is False for c in comments)


@pytest.mark.asyncio
async def test_list_comments_marks_followed_authors(async_client: AsyncClient, register):
    _, alice = await register("alice")
    _, bob = await register("bob")
    _, carol = await register("carol")
    slug = await _article(async_client, alice)
    await _comment(async_client, slug, alice, "from alice")
    await _comment(async_client, slug, bob, "from bob")
    await async_client.post("/api/profiles/bob/follow", headers=carol)

    resp = await async_client.get(f"/api/articles/{slug}/comments", headers=carol)
    following = {c["author"]["username"]: c["author"]["following"] for c in resp.json()["comments"]}
    assert following == {"alice": False, "bob": True}


@pytest.mark.asyncio
async def test_list_comments_unknown_article(async_client: AsyncClient):
    resp = await async_client.get("/api/articles/ghost/comments")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_comments_with_bad_token(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    resp = await async_client.get(
        f"/api/articles/{slug}/comments", headers={"Authorization": "Token nope"}
    )
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Delete comment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_own_comment(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    comment = await _comment(async_client, slug, alice)

    resp = await async_client.delete(f"/api/articles/{slug}/comments/{comment['id']}", headers=alice)
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    resp = await async_client.get(f"/api/articles/{slug}/comments")
    assert resp.json()["comments"] == []


@pytest.mark.asyncio
async def test_delete_someone_elses_comment_is_forbidden(async_client: AsyncClient, register):
    _, alice = await register("alice")
    _, bob = await register("bob")
    slug = await _article(async_client, alice)
    comment = await _comment(async_client, slug, alice)

    resp = await async_client.delete(f"/api/articles/{slug}/comments/{comment['id']}", headers=bob)
    assert resp.status_code == 403
    assert resp.json() == {"errors": {"comment": ["forbidden"]}}


@pytest.mark.asyncio
async def test_delete_unknown_comment(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    resp = await async_client.delete(f"/api/articles/{slug}/comments/999", headers=alice)
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"comment": ["comment not found"]}}


@pytest.mark.asyncio
async def test_comments_removed_with_article(async_client: AsyncClient, register):
    _, alice = await register("alice")
    slug = await _article(async_client, alice)
    await _comment(async_client, slug, alice)
    await async_client.delete(f"/api/articles/{slug}", headers=alice)

    slug = await _article(async_client, alice)
    resp = await async_client.get(f"/api/articles/{slug}/comments")
    assert resp.json()["comments"] == []
