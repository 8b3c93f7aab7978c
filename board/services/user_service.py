"""
User service — user accounts.

Authentication is handled outside this API; a user account here is the
identity that articles and comments are attributed to.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from board.models import Article, UserAccount
from board.schemas import UserAccountCreate


def _user_to_dict(user: UserAccount) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "nickname": user.nickname,
        "memo": user.memo,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _article_summary_to_dict(article: Article, nickname: str) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "hashtags": sorted(h.name for h in article.hashtags),
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "modified_at": article.modified_at.isoformat() if article.modified_at else None,
        "user_id": article.user_id,
        "nickname": nickname,
    }


async def get_users(db: AsyncSession) -> list[dict]:
    """Return all users, newest first."""
    q = select(UserAccount).order_by(UserAccount.created_at.desc())
    result = await db.execute(q)
    return [_user_to_dict(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    """
    Return *user_id* with their articles (newest first), or None.
    """
    q = (
        select(UserAccount)
        .where(UserAccount.id == user_id)
        .options(selectinload(UserAccount.articles).selectinload(Article.hashtags))
    )
    user = (await db.execute(q)).scalar_one_or_none()
    if user is None:
        return None

    data = _user_to_dict(user)
    articles = sorted(user.articles, key=lambda a: (a.created_at, a.id), reverse=True)
    data["articles"] = [_article_summary_to_dict(a, user.display_name) for a in articles]
    return data


async def create_user(db: AsyncSession, data: UserAccountCreate) -> dict:
    """
    Create a user account.

    Username and email uniqueness is enforced by the database; the
    ``IntegrityError`` raised by the flush is turned into a 409 by the
    router.
    """
    user = UserAccount(
        username=data.username,
        email=data.email,
        nickname=data.nickname,
        memo=data.memo,
    )
    db.add(user)
    await db.flush()
    return _user_to_dict(user)
