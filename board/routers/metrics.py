from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from board.cache import cache
from board.database import get_db
from board.models import Article, ArticleComment, Hashtag, UserAccount
from board.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    total_articles = await _count(db, Article)
    total_comments = await _count(db, ArticleComment)
    avg_comments = total_comments / total_articles if total_articles > 0 else 0

    return MetricsResponse(
        total_articles=total_articles,
        total_comments=total_comments,
        total_users=await _count(db, UserAccount),
        total_hashtags=await _count(db, Hashtag),
        avg_comments_per_article=round(avg_comments, 2),
        cache_info=cache.stats,
    )
