"""
Comment service — comments attached to articles.

Comments cannot be edited.  Listing annotates each comment's author with
``following`` relative to the (optional) viewer; the viewer's follow set is
loaded once and membership tested per comment.
"""
import logging

from conduit.errors import Forbidden, NotFound, ValidationError
from conduit.models import Article, Comment, User
from conduit.schemas import CommentCreate
from conduit.services.identity import Authenticated
from conduit.services.profile_service import profile_to_dict
from conduit.store import Store

logger = logging.getLogger(__name__)


def comment_to_dict(comment: Comment, following_author: bool = False) -> dict:
    return {
        "id": comment.id,
        "createdAt": comment.created_at.isoformat() if comment.created_at else None,
        "updatedAt": comment.updated_at.isoformat() if comment.updated_at else None,
        "body": comment.body,
        "author": profile_to_dict(comment.author, following=following_author),
    }


class CommentService:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def _article(self, slug: str) -> Article:
        article = await self.store.articles.by_slug(slug)
        if article is None:
            raise NotFound.single("slug", "slug not found")
        return article

    async def create(self, slug: str, identity: Authenticated, data: CommentCreate) -> dict:
        """
        Attach a comment by the caller to the article identified by *slug*.

        The caller's own record is re-read first; if it has vanished the
        request is forbidden.
        """
        author = await self.store.users.by_username(identity.user.username)
        if author is None:
            raise Forbidden.single("username", "username not found")

        article = await self._article(slug)
        if not data.body:
            raise ValidationError.single("body", "body cannot be empty")

        comment = await self.store.comments.add(
            Comment(body=data.body, author=author, article_id=article.id)
        )
        logger.info("Comment id=%s added to article id=%s by user id=%s", comment.id, article.id, author.id)
        # Nobody follows themselves, so the author flag is always false here.
        return comment_to_dict(comment, following_author=False)

    async def list_for_article(self, slug: str, viewer: User | None = None) -> list[dict]:
        article = await self._article(slug)
        comments = await self.store.comments.for_article(article.id)
        followed = await self.store.follows.rights_of(viewer.id) if viewer else set()
        return [comment_to_dict(c, following_author=c.author_id in followed) for c in comments]

    async def delete(self, slug: str, comment_id: int, identity: Authenticated) -> dict:
        """Delete one of the caller's own comments."""
        article = await self._article(slug)
        comment = await self.store.comments.get(comment_id)
        if comment is None or comment.article_id != article.id:
            raise NotFound.single("comment", "comment not found")
        if comment.author_id != identity.user.id:
            raise Forbidden.single("comment", "forbidden")

        await self.store.comments.delete(comment)
        logger.info("Comment id=%s deleted by user id=%s", comment_id, identity.user.id)
        return {"status": "ok"}
