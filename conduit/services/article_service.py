"""
Article service — business logic for the Article aggregate.

Design notes
------------
- ``slug`` and ``favoritesCount`` are derived values.  ``slugify`` runs
  whenever a title is written; ``favorites_count`` runs on every read over
  the article's favorited-by id set.  Neither is maintained by persistence
  hooks.
- Viewer-relative fields (``favorited`` and the author's ``following``) are
  computed per call from the viewer's edge sets, loaded once per call
  rather than once per article.
- Any authenticated user may update or delete an article; authorship is
  only recorded, not enforced.
- Only the tag list is cached (cache-aside); article payloads depend on the
  viewer and are always read from the database.
- Service methods flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import logging
import re
import unicodedata
from typing import Iterable

from conduit.cache import TAGS_CACHE_KEY, CacheManager, cache as default_cache
from conduit.config import settings
from conduit.errors import Forbidden, NotFound, ValidationError
from conduit.models import Article, User
from conduit.schemas import ArticleCreate, ArticleFilters, ArticleUpdate
from conduit.services.identity import Authenticated
from conduit.services.profile_service import profile_to_dict
from conduit.store import Store

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase, hyphenated slug derived from *text*."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def favorites_count(favorited_by: Iterable[int]) -> int:
    return len(set(favorited_by))


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def article_to_dict(
    article: Article,
    favorited_by: set[int],
    viewer_id: int | None = None,
    following_author: bool = False,
) -> dict:
    return {
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "tagList": [t.tag for t in article.tags],
        "createdAt": _iso(article.created_at),
        "updatedAt": _iso(article.updated_at),
        "favorited": viewer_id is not None and viewer_id in favorited_by,
        "favoritesCount": favorites_count(favorited_by),
        "author": profile_to_dict(article.author, following=following_author),
    }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ArticleService:
    def __init__(self, store: Store, cache: CacheManager | None = None) -> None:
        self.store = store
        self.cache = cache or default_cache

    async def _render(self, articles: list[Article], viewer: User | None = None) -> list[dict]:
        """Serialise *articles* with viewer-relative fields in two queries."""
        favorited = await self.store.favorites.lefts_of_many(a.id for a in articles)
        followed = await self.store.follows.rights_of(viewer.id) if viewer else set()
        viewer_id = viewer.id if viewer else None
        return [
            article_to_dict(
                a,
                favorited[a.id],
                viewer_id=viewer_id,
                following_author=a.author_id in followed,
            )
            for a in articles
        ]

    async def _render_one(self, article: Article, viewer: User | None = None) -> dict:
        return (await self._render([article], viewer))[0]

    async def _by_slug(self, slug: str) -> Article:
        article = await self.store.articles.by_slug(slug)
        if article is None:
            raise NotFound.single("slug", "slug not found")
        return article

    async def get(self, slug: str, viewer: User | None = None) -> dict:
        return await self._render_one(await self._by_slug(slug), viewer)

    async def list_articles(self, filters: ArticleFilters, viewer: User | None = None) -> dict:
        """
        Return one page of articles, most recently updated first.

        ``articlesCount`` is the number of articles on the returned page,
        not the number matching the filters.
        """
        author_id = favorited_by = None
        if filters.author is not None:
            author = await self.store.users.by_username(filters.author)
            if author is None:
                return {"articles": [], "articlesCount": 0}
            author_id = author.id
        if filters.favorited is not None:
            fan = await self.store.users.by_username(filters.favorited)
            if fan is None:
                return {"articles": [], "articlesCount": 0}
            favorited_by = fan.id

        articles = await self.store.articles.find(
            author_id=author_id,
            tag=filters.tag,
            favorited_by=favorited_by,
            limit=filters.limit,
            offset=filters.offset,
        )
        rendered = await self._render(articles, viewer)
        return {"articles": rendered, "articlesCount": len(rendered)}

    async def create(self, identity: Authenticated, data: ArticleCreate) -> dict:
        """
        Create an article authored by the caller.

        Fields are checked in order (title, description, body) and the
        first empty one is reported alone.
        """
        for name in ("title", "description", "body"):
            if not getattr(data, name):
                raise ValidationError.single(name, f"{name} cannot be empty")

        author = await self.store.users.by_username(identity.user.username)
        if author is None:
            raise Forbidden.single("username", "username not found")

        tags = await self.store.tags.create_fresh(data.tagList)
        article = await self.store.articles.add(
            Article(
                title=data.title,
                slug=slugify(data.title),
                description=data.description,
                body=data.body,
                author=author,
                tags=tags,
            )
        )
        logger.info("Article id=%s slug=%r created by user id=%s", article.id, article.slug, author.id)

        if tags:
            await self.cache.invalidate_tags()
        return await self._render_one(article, author)

    async def update(self, slug: str, identity: Authenticated, data: ArticleUpdate) -> dict:
        """Overwrite the non-empty supplied fields; a new title re-derives the slug."""
        article = await self._by_slug(slug)

        if data.title:
            article.title = data.title
            article.slug = slugify(data.title)
        if data.description:
            article.description = data.description
        if data.body:
            article.body = data.body

        await self.store.articles.save(article)
        logger.info("Article id=%s updated by user id=%s", article.id, identity.user.id)
        return await self._render_one(article, identity.user)

    async def delete(self, slug: str, identity: Authenticated) -> dict:
        """Delete every article with *slug*.  Unknown slugs still succeed."""
        removed = await self.store.articles.delete_by_slug(slug)
        logger.info("Deleted %d article(s) slug=%r by user id=%s", removed, slug, identity.user.id)
        if removed:
            await self.cache.invalidate_tags()
        return {"status": "ok"}

    async def favorite(self, slug: str, identity: Authenticated) -> dict:
        article = await self._by_slug(slug)
        if await self.store.favorites.add(identity.user.id, article.id):
            logger.debug("User id=%s favorited article id=%s", identity.user.id, article.id)
        return await self._render_one(article, identity.user)

    async def unfavorite(self, slug: str, identity: Authenticated) -> dict:
        article = await self._by_slug(slug)
        if await self.store.favorites.remove(identity.user.id, article.id):
            logger.debug("User id=%s unfavorited article id=%s", identity.user.id, article.id)
        return await self._render_one(article, identity.user)

    async def tags(self) -> list[str]:
        """Distinct tag texts in alphabetical order (cache-aside)."""
        cached = await self.cache.get(TAGS_CACHE_KEY)
        if cached is not None:
            return cached
        tags = await self.store.tags.distinct_texts()
        await self.cache.set(TAGS_CACHE_KEY, tags, ttl=settings.CACHE_TTL_TAGS)
        return tags
