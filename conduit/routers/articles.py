from fastapi import APIRouter, Depends

from conduit.dependencies import (
    ArticleFilterParams,
    get_article_service,
    get_comment_service,
    optional_viewer,
    require_identity,
)
from conduit.models import User
from conduit.schemas import (
    ArticleCreateRequest,
    ArticleUpdateRequest,
    CommentCreateRequest,
    StatusResponse,
)
from conduit.services.article_service import ArticleService
from conduit.services.comment_service import CommentService
from conduit.services.identity import Authenticated

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("")
async def list_articles(
    params: ArticleFilterParams = Depends(),
    articles: ArticleService = Depends(get_article_service),
):
    return await articles.list_articles(params.filters)


@router.get("/{slug}")
async def get_article(slug: str, articles: ArticleService = Depends(get_article_service)):
    # Unwrapped on purpose: clients read the article object directly.
    return await articles.get(slug)


@router.post("")
async def create_article(
    data: ArticleCreateRequest,
    identity: Authenticated = Depends(require_identity),
    articles: ArticleService = Depends(get_article_service),
):
    return {"article": await articles.create(identity, data.article)}


@router.put("/{slug}")
async def update_article(
    slug: str,
    data: ArticleUpdateRequest,
    identity: Authenticated = Depends(require_identity),
    articles: ArticleService = Depends(get_article_service),
):
    return {"article": await articles.update(slug, identity, data.article)}


@router.delete("/{slug}", response_model=StatusResponse)
async def delete_article(
    slug: str,
    identity: Authenticated = Depends(require_identity),
    articles: ArticleService = Depends(get_article_service),
):
    return await articles.delete(slug, identity)


@router.post("/{slug}/favorite")
async def favorite_article(
    slug: str,
    identity: Authenticated = Depends(require_identity),
    articles: ArticleService = Depends(get_article_service),
):
    return {"article": await articles.favorite(slug, identity)}


@router.delete("/{slug}/favorite")
async def unfavorite_article(
    slug: str,
    identity: Authenticated = Depends(require_identity),
    articles: ArticleService = Depends(get_article_service),
):
    return {"article": await articles.unfavorite(slug, identity)}


@router.post("/{slug}/comments")
async def add_comment(
    slug: str,
    data: CommentCreateRequest,
    identity: Authenticated = Depends(require_identity),
    comments: CommentService = Depends(get_comment_service),
):
    return {"comment": await comments.create(slug, identity, data.comment)}


@router.get("/{slug}/comments")
async def list_comments(
    slug: str,
    viewer: User | None = Depends(optional_viewer),
    comments: CommentService = Depends(get_comment_service),
):
    return {"comments": await comments.list_for_article(slug, viewer)}


@router.delete("/{slug}/comments/{comment_id}", response_model=StatusResponse)
async def delete_comment(
    slug: str,
    comment_id: int,
    identity: Authenticated = Depends(require_identity),
    comments: CommentService = Depends(get_comment_service),
):
    return await comments.delete(slug, comment_id, identity)
