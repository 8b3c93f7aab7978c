from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from board.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Association table: Article <-> Hashtag (many-to-many)
# ---------------------------------------------------------------------------
article_hashtags = Table(
    "article_hashtags",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Column("hashtag_id", Integer, ForeignKey("hashtags.id", ondelete="CASCADE"), primary_key=True),
    # Reference counting for orphan cleanup filters on hashtag_id alone.
    Index("ix_article_hashtags_hashtag_id", "hashtag_id"),
)


# ---------------------------------------------------------------------------
# UserAccount
# ---------------------------------------------------------------------------
class UserAccount(Base):
    __tablename__ = "user_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    memo: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    modified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )

    articles: Mapped[List["Article"]] = relationship(
        "Article", back_populates="user_account", lazy="noload"
    )

    @property
    def display_name(self) -> str:
        """Nickname when set, otherwise the username."""
        return self.nickname if self.nickname and self.nickname.strip() else self.username


# ---------------------------------------------------------------------------
# Hashtag
# ---------------------------------------------------------------------------
class Hashtag(Base):
    __tablename__ = "hashtags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Stored exactly as written after the '#': no case folding.  A name can
    # be as long as the article content it came from.
    name: Mapped[str] = mapped_column(String(10000), unique=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    articles: Mapped[List["Article"]] = relationship(
        "Article", secondary=article_hashtags, back_populates="hashtags", lazy="noload"
    )

    def __repr__(self) -> str:
        return f"Hashtag(id={self.id!r}, name={self.name!r})"


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    __table_args__ = (
        # Author feed sorted by date
        Index("ix_articles_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    content: Mapped[str] = mapped_column(String(10000), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True
    )
    modified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # All lazy="noload"; services eager-load what they render.
    user_account: Mapped["UserAccount"] = relationship(
        "UserAccount", back_populates="articles", lazy="noload"
    )
    comments: Mapped[List["ArticleComment"]] = relationship(
        "ArticleComment", back_populates="article", lazy="noload", passive_deletes=True
    )
    hashtags: Mapped[List["Hashtag"]] = relationship(
        "Hashtag", secondary=article_hashtags, back_populates="articles", lazy="noload"
    )


# ---------------------------------------------------------------------------
# ArticleComment
# ---------------------------------------------------------------------------
class ArticleComment(Base):
    __tablename__ = "article_comments"

    __table_args__ = (
        Index("ix_article_comments_article_id_created_at", "article_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    modified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )

    article_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Replies point at a top-level comment of the same article.
    parent_comment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("article_comments.id", ondelete="CASCADE"), nullable=True, index=True
    )

    article: Mapped["Article"] = relationship("Article", back_populates="comments", lazy="noload")
    user_account: Mapped["UserAccount"] = relationship("UserAccount", lazy="noload")
