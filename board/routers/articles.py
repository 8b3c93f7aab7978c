from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from board.database import get_db
from board.dependencies import PaginationParams, SearchParams
from board.exceptions import InvalidParentComment, NotAuthorError
from board.schemas import (
    ArticleCreate,
    ArticleDetail,
    ArticleResponse,
    ArticleUpdate,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    HashtagSearchResponse,
    PaginatedResponse,
)
from board.services import article_service, comment_service, hashtag_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


@router.get("", response_model=PaginatedResponse)
async def list_articles(
    search: SearchParams = Depends(),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.search_articles(
        db,
        search.search_type if search.active else None,
        search.search_value if search.active else None,
        pagination.page,
        pagination.page_size,
        pagination.sort_by,
        pagination.sort_order,
    )


@router.get("/search-hashtag", response_model=HashtagSearchResponse)
async def search_articles_via_hashtag(
    hashtag: str | None = Query(None, max_length=10000),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.search_articles_via_hashtag(
        db,
        hashtag,
        pagination.page,
        pagination.page_size,
        pagination.sort_by,
        pagination.sort_order,
    )


@router.get("/hashtags", response_model=list[str])
async def list_hashtags(db: AsyncSession = Depends(get_db)):
    return await hashtag_service.list_hashtag_names(db)


@router.get("/count")
async def count_articles(db: AsyncSession = Depends(get_db)):
    return {"count": await article_service.get_article_count(db)}


@router.get("/{article_id}", response_model=ArticleDetail)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    article = await article_service.get_article_with_comments(db, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(data: ArticleCreate, db: AsyncSession = Depends(get_db)):
    article = await article_service.create_article(db, data)
    if not article:
        raise HTTPException(status_code=404, detail="User not found")
    return article


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(article_id: int, data: ArticleUpdate, db: AsyncSession = Depends(get_db)):
    try:
        article = await article_service.update_article(db, article_id, data)
    except NotAuthorError:
        raise HTTPException(status_code=403, detail="Only the author can edit this article")
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.delete("/{article_id}", status_code=204)
async def delete_article(article_id: int, user_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    try:
        deleted = await article_service.delete_article(db, article_id, user_id)
    except NotAuthorError:
        raise HTTPException(status_code=403, detail="Only the author can delete this article")
    if not deleted:
        raise HTTPException(status_code=404, detail="Article not found")


# --- Comments ---

@router.post("/{article_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(article_id: int, data: CommentCreate, db: AsyncSession = Depends(get_db)):
    try:
        comment = await comment_service.add_comment(db, article_id, data)
    except InvalidParentComment as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not comment:
        raise HTTPException(status_code=404, detail="Article or user not found")
    return comment


@router.put("/{article_id}/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    article_id: int, comment_id: int, data: CommentUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        comment = await comment_service.update_comment(db, article_id, comment_id, data)
    except NotAuthorError:
        raise HTTPException(status_code=403, detail="Only the author can edit this comment")
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.delete("/{article_id}/comments/{comment_id}", status_code=204)
async def delete_comment(
    article_id: int, comment_id: int, user_id: int = Query(...), db: AsyncSession = Depends(get_db)
):
    try:
        deleted = await comment_service.delete_comment(db, article_id, comment_id, user_id)
    except NotAuthorError:
        raise HTTPException(status_code=403, detail="Only the author can delete this comment")
    if not deleted:
        raise HTTPException(status_code=404, detail="Comment not found")
