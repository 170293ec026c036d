from fastapi import APIRouter, Depends

from conduit.dependencies import get_article_service
from conduit.schemas import TagsResponse
from conduit.services.article_service import ArticleService

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=TagsResponse)
async def list_tags(articles: ArticleService = Depends(get_article_service)):
    return {"tags": await articles.tags()}
