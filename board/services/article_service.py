"""
Article service — business logic for the Article aggregate.

Design notes
------------
- Hashtags follow the content.  Every create/update parses the content,
  resolves the names through ``HashtagCatalog`` and replaces the article's
  hashtag set.  Hashtags dropped by an update or a delete are handed to
  ``HashtagCatalog.cleanup_orphans`` after the association change has been
  flushed, in the same session, so the reference count it sees is the one
  that will be committed.
- List and detail reads go through the cache-aside pattern (Redis, then
  DB).  Cache keys encode every dimension that affects the result.
- Eager loading via ``joinedload`` (many-to-one: author) and
  ``selectinload`` (many-to-many: hashtags) avoids N+1 queries; every
  relationship is ``lazy="noload"`` so a missing option shows up as an
  empty collection instead of a hidden query.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency.
"""
import logging
import math

from sqlalchemy import ColumnElement, asc, delete, desc, func, select, true
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from board.cache import article_detail_key, cache
from board.config import settings
from board.dependencies import SearchType
from board.exceptions import NotAuthorError
from board.models import Article, ArticleComment, Hashtag, UserAccount
from board.schemas import (
    ArticleCreate,
    ArticleUpdate,
    HashtagSearchResponse,
    PaginatedResponse,
)
from board.services.comment_service import get_comment_threads, thread_to_dict
from board.services.hashtag_service import (
    hashtag_catalog,
    list_hashtag_names,
    parse_hashtag_names,
)
from board.services.pagination_service import pagination

logger = logging.getLogger(__name__)

# Columns that are safe to sort by; guards against arbitrary attribute access.
_SORTABLE_COLUMNS: frozenset[str] = frozenset({"created_at", "modified_at", "title"})


def _resolve_sort_column(sort_by: str):
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(Article, sort_by)
    return Article.created_at


def _search_condition(search_type: SearchType | None, search_value: str | None) -> ColumnElement:
    """Case-insensitive containment filter for the article search box."""
    if search_type is None or not search_value:
        return true()
    pattern = f"%{search_value}%"
    if search_type is SearchType.TITLE:
        return Article.title.ilike(pattern)
    if search_type is SearchType.CONTENT:
        return Article.content.ilike(pattern)
    if search_type is SearchType.USERNAME:
        return Article.user_account.has(UserAccount.username.ilike(pattern))
    if search_type is SearchType.NICKNAME:
        return Article.user_account.has(UserAccount.nickname.ilike(pattern))
    return Article.hashtags.any(Hashtag.name.ilike(pattern))


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article) -> dict:
    """Serialise an Article with its author and hashtags loaded."""
    author = article.user_account
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "hashtags": sorted(h.name for h in article.hashtags),
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "modified_at": article.modified_at.isoformat() if article.modified_at else None,
        "user_id": article.user_id,
        "nickname": author.display_name if author is not None else None,
    }


async def _load_article(db: AsyncSession, article_id: int) -> Article | None:
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(joinedload(Article.user_account), selectinload(Article.hashtags))
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def _paginate(
    db: AsyncSession,
    condition: ColumnElement,
    page: int,
    page_size: int,
    sort_by: str,
    sort_order: str,
) -> PaginatedResponse:
    total: int = (
        await db.execute(select(func.count()).select_from(Article).where(condition))
    ).scalar_one()

    sort_col = _resolve_sort_column(sort_by)
    order_expr = desc(sort_col) if sort_order == "desc" else asc(sort_col)
    q = (
        select(Article)
        .where(condition)
        .options(joinedload(Article.user_account), selectinload(Article.hashtags))
        .order_by(order_expr, desc(Article.id))
        .offset(page * page_size)
        .limit(page_size)
    )
    articles = (await db.execute(q)).unique().scalars().all()

    pages = math.ceil(total / page_size) if total > 0 else 0
    return PaginatedResponse(
        items=[_article_to_dict(a) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
        pagination_bar=pagination.window(page, pages),
        bar_length=pagination.current_bar_length(),
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def search_articles(
    db: AsyncSession,
    search_type: SearchType | None = None,
    search_value: str | None = None,
    page: int = 0,
    page_size: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> PaginatedResponse:
    """
    Return one page of articles, optionally filtered by *search_type*.

    The response carries the pagination bar for *page* so the client
    does not need to compute it.
    """
    type_key = search_type.value if search_type and search_value else "all"
    value_key = search_value if search_type and search_value else ""
    cache_key = f"articles:list:{type_key}:{value_key}:{page}:{page_size}:{sort_by}:{sort_order}"
    cached = await cache.get(cache_key)
    if cached:
        return PaginatedResponse(**cached)

    response = await _paginate(
        db, _search_condition(search_type, search_value), page, page_size, sort_by, sort_order
    )
    await cache.set(cache_key, response.model_dump(mode="json"), ttl=settings.CACHE_TTL_LIST)
    return response


async def search_articles_via_hashtag(
    db: AsyncSession,
    hashtag_name: str | None,
    page: int = 0,
    page_size: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> HashtagSearchResponse:
    """
    Return one page of the articles tagged exactly *hashtag_name*, along
    with every hashtag name in use.  No hashtag means an empty page.
    """
    hashtags = await list_hashtag_names(db)
    if not hashtag_name:
        return HashtagSearchResponse(
            items=[],
            total=0,
            page=page,
            page_size=page_size,
            pages=0,
            pagination_bar=[],
            bar_length=pagination.current_bar_length(),
            hashtags=hashtags,
        )

    condition = Article.hashtags.any(Hashtag.name == hashtag_name)
    response = await _paginate(db, condition, page, page_size, sort_by, sort_order)
    return HashtagSearchResponse(**response.model_dump(), hashtags=hashtags)


async def get_article_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Article))).scalar_one()


async def get_article_with_comments(db: AsyncSession, article_id: int) -> dict | None:
    """
    Return the detail dict for *article_id*: the article, its hashtag
    names and its comment threads.  None when the article does not exist.
    """
    cache_key = article_detail_key(article_id)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    article = await _load_article(db, article_id)
    if article is None:
        return None

    data = _article_to_dict(article)
    data["comments"] = [thread_to_dict(node) for node in await get_comment_threads(db, article_id)]
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, data: ArticleCreate) -> dict | None:
    """
    Create an article tagged with the hashtags found in its content.

    Returns None when the author does not exist.
    """
    user = await db.get(UserAccount, data.user_id)
    if user is None:
        logger.warning("Article not saved, user %s does not exist", data.user_id)
        return None

    article = Article(title=data.title, content=data.content, user_account=user)
    db.add(article)
    # Insert the article first so hashtag savepoints nest inside a
    # transaction that already holds the write.
    await db.flush()

    hashtags = await hashtag_catalog(db).resolve(parse_hashtag_names(data.content))
    article.hashtags = sorted(hashtags, key=lambda h: h.name)
    await db.flush()

    cache.invalidate_article(db)
    return _article_to_dict(article)


async def update_article(
    db: AsyncSession, article_id: int, data: ArticleUpdate
) -> dict | None:
    """
    Update title and/or content of an article written by ``data.user_id``.

    A content change re-derives the hashtag set; hashtags that drop out
    are deleted once no other article uses them.  Returns None when the
    article does not exist and raises ``NotAuthorError`` for anyone but
    the author.
    """
    article = await _load_article(db, article_id)
    if article is None:
        logger.warning("Article %s not found, nothing updated", article_id)
        return None
    if article.user_id != data.user_id:
        logger.warning("User %s tried to edit article %s of user %s", data.user_id, article_id, article.user_id)
        raise NotAuthorError(f"user {data.user_id} did not write article {article_id}")

    if data.title is not None:
        article.title = data.title

    if data.content is not None:
        article.content = data.content
        catalog = hashtag_catalog(db)
        previous = set(article.hashtags)
        current = await catalog.resolve(parse_hashtag_names(data.content))
        article.hashtags = sorted(current, key=lambda h: h.name)
        await db.flush()
        await catalog.cleanup_orphans(sorted(previous - current, key=lambda h: h.name))

    await db.flush()
    cache.invalidate_article(db, article_id)
    return _article_to_dict(article)


async def delete_article(db: AsyncSession, article_id: int, user_id: int) -> bool:
    """
    Delete an article written by *user_id*, its comments, and any hashtag
    left without articles.

    Returns False when the article does not exist; raises
    ``NotAuthorError`` for anyone but the author.
    """
    article = await _load_article(db, article_id)
    if article is None:
        return False
    if article.user_id != user_id:
        raise NotAuthorError(f"user {user_id} did not write article {article_id}")

    previous = list(article.hashtags)
    await db.execute(
        delete(ArticleComment).where(
            ArticleComment.article_id == article_id,
            ArticleComment.parent_comment_id.is_not(None),
        )
    )
    await db.execute(delete(ArticleComment).where(ArticleComment.article_id == article_id))
    # The loaded hashtag collection makes the ORM remove the association rows.
    await db.delete(article)
    await db.flush()
    await hashtag_catalog(db).cleanup_orphans(previous)

    cache.invalidate_article(db, article_id)
    return True
