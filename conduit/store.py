"""
Persistence layer — repositories and edge sets over one ``AsyncSession``.

Design notes
------------
- A ``Store`` is built per request from the session owned by ``get_db`` and
  handed to each service at construction.  Nothing here is a module-level
  singleton.
- Many-to-many relations that carry viewer-relative meaning (follows,
  favorites) are not ORM collections.  They are association tables wrapped
  in ``JoinTable``, which adds, removes and queries individual edge rows.
  A single row backs both directions of the relation, so the forward and
  inverse views can never disagree.
- Relationship loading is explicit: ``joinedload`` for many-to-one
  (author), ``selectinload`` for collections (tags).
- Repositories flush but never commit; the transaction boundary belongs to
  ``get_db``.
"""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import Table, delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from conduit.models import Article, Comment, Tag, User, article_tags, favorites, follows

# Dialects whose INSERT supports ON CONFLICT DO NOTHING.
_CONFLICT_FREE_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


# ---------------------------------------------------------------------------
# Edge sets
# ---------------------------------------------------------------------------

class JoinTable:
    """
    Directed edge set stored as ``(left, right)`` rows of *table*.

    ``rights_of(x)`` is the forward view (e.g. users *x* follows) and
    ``lefts_of(y)`` the inverse view (e.g. users following *y*).
    """

    def __init__(self, db: AsyncSession, table: Table, left: str, right: str) -> None:
        self.db = db
        self.table = table
        self.left = table.c[left]
        self.right = table.c[right]

    async def contains(self, left_id: int, right_id: int) -> bool:
        q = (
            select(func.count())
            .select_from(self.table)
            .where(self.left == left_id, self.right == right_id)
        )
        return (await self.db.execute(q)).scalar_one() > 0

    async def add(self, left_id: int, right_id: int) -> bool:
        """
        Insert the edge unless present.  Returns True when a row was added.

        An existing row is skipped rather than rejected, so concurrent adds
        of the same edge all succeed and leave exactly one row.
        """
        values = {self.left.name: left_id, self.right.name: right_id}
        make_insert = _CONFLICT_FREE_INSERTS.get(self.db.get_bind().dialect.name)
        if make_insert is None:
            try:
                async with self.db.begin_nested():
                    await self.db.execute(insert(self.table).values(values))
            except IntegrityError:
                return False
            return True

        result = await self.db.execute(
            make_insert(self.table).values(values).on_conflict_do_nothing()
        )
        return result.rowcount > 0

    async def remove(self, left_id: int, right_id: int) -> bool:
        """Delete the edge if present.  Returns True when a row was removed."""
        result = await self.db.execute(
            delete(self.table).where(self.left == left_id, self.right == right_id)
        )
        return result.rowcount > 0

    async def rights_of(self, left_id: int) -> set[int]:
        rows = await self.db.execute(select(self.right).where(self.left == left_id))
        return set(rows.scalars().all())

    async def lefts_of(self, right_id: int) -> set[int]:
        rows = await self.db.execute(select(self.left).where(self.right == right_id))
        return set(rows.scalars().all())

    async def lefts_of_many(self, right_ids: Iterable[int]) -> dict[int, set[int]]:
        """Inverse view for several right-hand ids in one query."""
        ids = list(right_ids)
        grouped: dict[int, set[int]] = {rid: set() for rid in ids}
        if not ids:
            return grouped
        rows = await self.db.execute(
            select(self.right, self.left).where(self.right.in_(ids))
        )
        for right_id, left_id in rows.all():
            grouped[right_id].add(left_id)
        return grouped


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

class UserRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def identities(self) -> tuple[list[str], list[str]]:
        """Return ``(emails, usernames)`` of every stored user."""
        rows = (await self.db.execute(select(User.email, User.username))).all()
        return [r.email for r in rows], [r.username for r in rows]

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def save(self, user: User) -> User:
        await self.db.flush()
        return user


class TagRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_fresh(self, texts: Iterable[str]) -> list[Tag]:
        """Store one new ``Tag`` row per text, without reusing existing rows."""
        tags = [Tag(tag=text) for text in texts]
        self.db.add_all(tags)
        await self.db.flush()
        return tags

    async def distinct_texts(self) -> list[str]:
        rows = await self.db.execute(select(Tag.tag).distinct().order_by(Tag.tag))
        return list(rows.scalars().all())


class ArticleRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _with_relations(self):
        return select(Article).options(joinedload(Article.author), selectinload(Article.tags))

    async def by_slug(self, slug: str) -> Article | None:
        """Oldest article carrying *slug* (slugs are not unique)."""
        q = self._with_relations().where(Article.slug == slug).order_by(Article.id).limit(1)
        result = await self.db.execute(q)
        return result.unique().scalars().first()

    async def find(
        self,
        author_id: int | None = None,
        tag: str | None = None,
        favorited_by: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Article]:
        q = self._with_relations()
        if author_id is not None:
            q = q.where(Article.author_id == author_id)
        if tag is not None:
            tagged = (
                select(article_tags.c.article_id)
                .join(Tag, Tag.id == article_tags.c.tag_id)
                .where(Tag.tag == tag)
            )
            q = q.where(Article.id.in_(tagged))
        if favorited_by is not None:
            liked = select(favorites.c.article_id).where(favorites.c.user_id == favorited_by)
            q = q.where(Article.id.in_(liked))
        q = (
            q.order_by(Article.updated_at.desc(), Article.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(q)
        return list(result.unique().scalars().all())

    async def add(self, article: Article) -> Article:
        self.db.add(article)
        await self.db.flush()
        return article

    async def save(self, article: Article) -> Article:
        await self.db.flush()
        return article

    async def delete_by_slug(self, slug: str) -> int:
        """
        Delete every article carrying *slug* together with its comments,
        tag rows and favorite edges.  Returns the number of articles removed.
        """
        ids = list((await self.db.execute(select(Article.id).where(Article.slug == slug))).scalars())
        if not ids:
            return 0
        tag_ids = list(
            (
                await self.db.execute(
                    select(article_tags.c.tag_id).where(article_tags.c.article_id.in_(ids))
                )
            ).scalars()
        )
        await self.db.execute(delete(favorites).where(favorites.c.article_id.in_(ids)))
        await self.db.execute(delete(Comment).where(Comment.article_id.in_(ids)))
        await self.db.execute(delete(article_tags).where(article_tags.c.article_id.in_(ids)))
        if tag_ids:
            await self.db.execute(delete(Tag).where(Tag.id.in_(tag_ids)))
        await self.db.execute(delete(Article).where(Article.id.in_(ids)))
        return len(ids)


class CommentRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, comment_id: int) -> Comment | None:
        return await self.db.get(Comment, comment_id)

    async def for_article(self, article_id: int) -> list[Comment]:
        q = (
            select(Comment)
            .where(Comment.article_id == article_id)
            .options(joinedload(Comment.author))
            .order_by(Comment.created_at, Comment.id)
        )
        result = await self.db.execute(q)
        return list(result.unique().scalars().all())

    async def add(self, comment: Comment) -> Comment:
        self.db.add(comment)
        await self.db.flush()
        return comment

    async def delete(self, comment: Comment) -> None:
        await self.db.delete(comment)
        await self.db.flush()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class Store:
    """Request-scoped handle bundling every repository and edge set."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.users = UserRepository(db)
        self.articles = ArticleRepository(db)
        self.tags = TagRepository(db)
        self.comments = CommentRepository(db)
        # follower_id -> followed_id
        self.follows = JoinTable(db, follows, "follower_id", "followed_id")
        # user_id -> article_id
        self.favorites = JoinTable(db, favorites, "user_id", "article_id")
