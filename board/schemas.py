from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# --- UserAccount ---

class UserAccountBase(BaseModel):
    username: str = Field(max_length=50)
    email: str = Field(max_length=100)
    nickname: str | None = Field(None, max_length=100)
    memo: str | None = Field(None, max_length=255)


class UserAccountCreate(UserAccountBase):
    pass


class UserAccountResponse(UserAccountBase):
    id: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserAccountDetail(UserAccountResponse):
    articles: list["ArticleResponse"] = []


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=500)
    user_id: int
    parent_comment_id: int | None = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=500)
    user_id: int


class CommentResponse(BaseModel):
    id: int
    article_id: int
    user_id: int
    nickname: str | None = None
    parent_comment_id: int | None = None
    content: str
    created_at: datetime


class CommentThreadResponse(CommentResponse):
    children: list["CommentThreadResponse"] = []


# --- Article ---

class ArticleCreate(BaseModel):
    # Hashtags are parsed from content; there is no separate field.
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1, max_length=10000)
    user_id: int


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1, max_length=10000)
    user_id: int


class ArticleResponse(BaseModel):
    id: int
    title: str
    content: str
    hashtags: list[str] = []
    created_at: datetime
    modified_at: datetime | None = None
    user_id: int
    nickname: str | None = None


class ArticleDetail(ArticleResponse):
    comments: list[CommentThreadResponse] = []


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list[ArticleResponse]
    total: int
    page: int
    page_size: int
    pages: int
    pagination_bar: list[int]
    bar_length: int


class HashtagSearchResponse(PaginatedResponse):
    hashtags: list[str] = []


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_articles: int
    total_comments: int
    total_users: int
    total_hashtags: int
    avg_comments_per_article: float
    cache_info: dict = {}


# Forward references
UserAccountDetail.model_rebuild()
CommentThreadResponse.model_rebuild()
