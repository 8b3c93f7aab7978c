"""
Comment service — comments, replies and thread assembly.

Comments are stored flat: a reply carries ``parent_comment_id`` pointing at
a top-level comment of the same article.  ``assemble_comment_threads``
rebuilds the two-level thread for rendering from that flat set; it works
on plain ``CommentRecord`` values and never touches the database.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from board.cache import cache
from board.exceptions import InvalidParentComment, NotAuthorError
from board.models import Article, ArticleComment, UserAccount
from board.schemas import CommentCreate, CommentUpdate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Thread assembly
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommentRecord:
    id: int
    parent_id: int | None
    content: str
    created_at: datetime
    article_id: int | None = None
    user_id: int | None = None
    nickname: str | None = None


@dataclass(frozen=True)
class ThreadNode:
    record: CommentRecord
    children: tuple["ThreadNode", ...] = ()


def assemble_comment_threads(records: Iterable[CommentRecord]) -> list[ThreadNode]:
    """
    Rebuild comment threads from a flat record set.

    Top-level comments come newest first (ties: lower id first); replies
    under a comment come oldest first (ties: lower id first).

    A reply whose parent is not part of *records* is left out of the
    result altogether.
    """
    # Arena: records by id plus child id lists; nodes never point upward.
    by_id: dict[int, CommentRecord] = {record.id: record for record in records}
    child_ids: dict[int, list[int]] = defaultdict(list)
    for record in by_id.values():
        if record.parent_id is not None and record.parent_id in by_id:
            child_ids[record.parent_id].append(record.id)

    roots = sorted(
        (record for record in by_id.values() if record.parent_id is None),
        key=lambda r: r.id,
    )
    # Stable sort: equal timestamps keep the ascending id order from above.
    roots.sort(key=lambda r: r.created_at, reverse=True)
    return [_build_node(root, by_id, child_ids) for root in roots]


def _build_node(
    record: CommentRecord,
    by_id: dict[int, CommentRecord],
    child_ids: dict[int, list[int]],
) -> ThreadNode:
    children = sorted(
        (by_id[child_id] for child_id in child_ids.get(record.id, ())),
        key=lambda r: (r.created_at, r.id),
    )
    return ThreadNode(
        record=record,
        children=tuple(_build_node(child, by_id, child_ids) for child in children),
    )


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _comment_to_record(comment: ArticleComment) -> CommentRecord:
    author = comment.user_account
    return CommentRecord(
        id=comment.id,
        parent_id=comment.parent_comment_id,
        content=comment.content,
        created_at=comment.created_at,
        article_id=comment.article_id,
        user_id=comment.user_id,
        nickname=author.display_name if author is not None else None,
    )


def record_to_dict(record: CommentRecord) -> dict:
    return {
        "id": record.id,
        "article_id": record.article_id,
        "user_id": record.user_id,
        "nickname": record.nickname,
        "parent_comment_id": record.parent_id,
        "content": record.content,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }


def thread_to_dict(node: ThreadNode) -> dict:
    data = record_to_dict(node.record)
    data["children"] = [thread_to_dict(child) for child in node.children]
    return data


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_comments(db: AsyncSession, article_id: int) -> list[CommentRecord]:
    """Return every comment of *article_id* as flat records."""
    q = (
        select(ArticleComment)
        .where(ArticleComment.article_id == article_id)
        .options(joinedload(ArticleComment.user_account))
    )
    result = await db.execute(q)
    return [_comment_to_record(c) for c in result.unique().scalars().all()]


async def get_comment_threads(db: AsyncSession, article_id: int) -> list[ThreadNode]:
    return assemble_comment_threads(await get_comments(db, article_id))


async def add_comment(
    db: AsyncSession,
    article_id: int,
    data: CommentCreate,
) -> dict | None:
    """
    Create a comment, or a reply when ``parent_comment_id`` is set.

    Returns None when the article or the user does not exist.  Raises
    ``InvalidParentComment`` unless the parent is a top-level comment of
    the same article.
    """
    article = await db.get(Article, article_id)
    if article is None:
        logger.warning("Comment not saved, article %s does not exist", article_id)
        return None
    user = await db.get(UserAccount, data.user_id)
    if user is None:
        logger.warning("Comment not saved, user %s does not exist", data.user_id)
        return None

    if data.parent_comment_id is not None:
        parent = await db.get(ArticleComment, data.parent_comment_id)
        if parent is None or parent.article_id != article_id:
            raise InvalidParentComment(
                f"comment {data.parent_comment_id} does not exist on article {article_id}"
            )
        if parent.parent_comment_id is not None:
            raise InvalidParentComment(
                f"comment {data.parent_comment_id} is a reply and cannot be replied to"
            )

    comment = ArticleComment(
        content=data.content,
        article_id=article_id,
        user_account=user,
        parent_comment_id=data.parent_comment_id,
    )
    db.add(comment)
    await db.flush()

    cache.invalidate_comments(db, article_id)
    return record_to_dict(_comment_to_record(comment))


async def update_comment(
    db: AsyncSession,
    article_id: int,
    comment_id: int,
    data: CommentUpdate,
) -> dict | None:
    """
    Replace the content of a comment.  Only its author may do this.

    Returns None when the comment does not exist on *article_id*.
    """
    q = (
        select(ArticleComment)
        .where(ArticleComment.id == comment_id, ArticleComment.article_id == article_id)
        .options(joinedload(ArticleComment.user_account))
    )
    comment = (await db.execute(q)).unique().scalar_one_or_none()
    if comment is None:
        logger.warning("Comment %s not found on article %s, nothing updated", comment_id, article_id)
        return None
    if comment.user_id != data.user_id:
        raise NotAuthorError(f"user {data.user_id} did not write comment {comment_id}")

    comment.content = data.content
    await db.flush()
    cache.invalidate_comments(db, article_id)
    return record_to_dict(_comment_to_record(comment))


async def delete_comment(
    db: AsyncSession, article_id: int, comment_id: int, user_id: int
) -> bool:
    """
    Delete a comment written by *user_id* together with its replies.

    Returns False when the comment does not exist on *article_id*.
    """
    q = select(ArticleComment).where(
        ArticleComment.id == comment_id, ArticleComment.article_id == article_id
    )
    comment = (await db.execute(q)).scalar_one_or_none()
    if comment is None:
        return False
    if comment.user_id != user_id:
        raise NotAuthorError(f"user {user_id} did not write comment {comment_id}")

    await db.execute(delete(ArticleComment).where(ArticleComment.parent_comment_id == comment_id))
    await db.delete(comment)
    await db.flush()
    cache.invalidate_comments(db, article_id)
    return True
