"""
FastAPI dependencies — request-scoped store, identity and services.

FastAPI caches a dependency's value for the duration of one request, so
every service built for a request shares the same ``Store`` (and the same
``AsyncSession``) as the identity resolver.
"""
from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.config import settings
from conduit.database import get_db
from conduit.models import User
from conduit.schemas import ArticleFilters
from conduit.services.article_service import ArticleService
from conduit.services.comment_service import CommentService
from conduit.services.credentials import CredentialStore
from conduit.services.identity import (
    Authenticated,
    IdentityResolver,
    MissingToken,
    ResolvedIdentity,
)
from conduit.services.profile_service import ProfileService
from conduit.services.tokens import TokenService
from conduit.services.user_service import UserService
from conduit.store import Store


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

async def get_store(db: AsyncSession = Depends(get_db)) -> Store:
    return Store(db)


def get_token_service() -> TokenService:
    return TokenService()


def get_credential_store() -> CredentialStore:
    return CredentialStore()


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

async def get_identity(
    authorization: str | None = Header(None),
    store: Store = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
) -> ResolvedIdentity:
    return await IdentityResolver(store, tokens).resolve(authorization)


async def require_identity(identity: ResolvedIdentity = Depends(get_identity)) -> Authenticated:
    """Reject every request that is not fully authenticated."""
    if isinstance(identity, Authenticated):
        return identity
    raise identity.error()


async def optional_viewer(identity: ResolvedIdentity = Depends(get_identity)) -> User | None:
    """
    Viewer for endpoints with optional auth.

    A missing header means an anonymous viewer (``None``); a header that
    fails to resolve is still rejected.
    """
    if isinstance(identity, Authenticated):
        return identity.user
    if isinstance(identity, MissingToken):
        return None
    raise identity.error()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

def get_user_service(
    store: Store = Depends(get_store),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> UserService:
    return UserService(store, credentials, tokens)


def get_profile_service(store: Store = Depends(get_store)) -> ProfileService:
    return ProfileService(store)


def get_article_service(store: Store = Depends(get_store)) -> ArticleService:
    return ArticleService(store)


def get_comment_service(store: Store = Depends(get_store)) -> CommentService:
    return CommentService(store)


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------

class ArticleFilterParams:
    """
    Reusable dependency that parses article listing filters.

    Usage in a router::

        @router.get("/articles")
        async def list_articles(params: ArticleFilterParams = Depends()):
            ...

    ``limit`` above ``settings.MAX_PAGE_SIZE`` is clamped by ``ArticleFilters``
    rather than rejected.
    """

    def __init__(
        self,
        author: str | None = Query(None, description="Only articles by this username."),
        tag: str | None = Query(None, description="Only articles carrying this tag."),
        favorited: str | None = Query(None, description="Only articles favorited by this username."),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description="Maximum number of articles returned.",
        ),
        offset: int = Query(0, ge=0, description="Number of articles to skip."),
    ) -> None:
        self.filters = ArticleFilters(
            author=author,
            tag=tag,
            favorited=favorited,
            limit=limit,
            offset=offset,
        )
