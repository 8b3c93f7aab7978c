"""
Hashtag service — hashtag discovery and hashtag row lifecycle.

Hashtags are never written by clients directly.  They are parsed out of
article content and kept in sync with it:

- ``parse_hashtag_names`` turns content into a set of names.
- ``HashtagCatalog.resolve`` maps names to persisted ``Hashtag`` rows,
  creating missing ones.
- ``HashtagCatalog.cleanup_orphans`` deletes rows no article references
  any more.

The catalog talks to storage only through the ``HashtagStore`` protocol.
``SQLHashtagStore`` is the implementation bound to the request session,
which keeps cleanup inside the transaction of the article mutation that
produced the orphan.
"""
import logging
import re
from typing import Iterable, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from board.cache import HASHTAG_NAMES_KEY, cache
from board.config import settings
from board.exceptions import DuplicateHashtagName
from board.models import Hashtag, article_hashtags

logger = logging.getLogger(__name__)

# '#' followed by a run of word characters.  re.finditer retries at the
# next character after a failed match, so "##java" and "ja#va" both find
# their trailing token.
_HASHTAG_RE = re.compile(r"#(\w+)")


def _is_name_char(ch: str) -> bool:
    # Narrower than \w, which also admits numerics such as '²' or 'Ⅻ'.
    return ch.isalpha() or ch.isdecimal() or ch == "_"


def _leading_name(word: str) -> str:
    for i, ch in enumerate(word):
        if not _is_name_char(ch):
            return word[:i]
    return word


def parse_hashtag_names(content: str | None) -> set[str]:
    """
    Return the distinct hashtag names found in *content*.

    A name is the run of letters, decimal digits and underscores directly
    after a ``#``, in any script.  Names keep their case and exclude the
    leading ``#``.  A ``#`` that is not directly followed by such a
    character yields nothing.
    """
    if not content:
        return set()
    names = (_leading_name(match.group(1)) for match in _HASHTAG_RE.finditer(content))
    return {name for name in names if name}


# ---------------------------------------------------------------------------
# Storage collaborator
# ---------------------------------------------------------------------------

class HashtagStore(Protocol):
    async def find_by_name(self, name: str) -> Hashtag | None: ...

    async def create(self, name: str) -> Hashtag: ...

    async def count_articles_referencing(self, hashtag: Hashtag) -> int: ...

    async def delete(self, hashtag: Hashtag) -> None: ...


class SQLHashtagStore:
    """``HashtagStore`` over the caller's ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_by_name(self, name: str) -> Hashtag | None:
        result = await self._db.execute(select(Hashtag).where(Hashtag.name == name))
        return result.scalar_one_or_none()

    async def create(self, name: str) -> Hashtag:
        """
        Insert a hashtag row inside a SAVEPOINT.

        A unique violation rolls back the savepoint only, so the caller's
        transaction stays usable, and surfaces as ``DuplicateHashtagName``.
        """
        # Flush unrelated pending rows first so their errors are not
        # reported as a hashtag name clash.
        await self._db.flush()
        hashtag = Hashtag(name=name)
        try:
            async with self._db.begin_nested():
                self._db.add(hashtag)
        except IntegrityError as exc:
            raise DuplicateHashtagName(name) from exc
        return hashtag

    async def count_articles_referencing(self, hashtag: Hashtag) -> int:
        q = (
            select(func.count())
            .select_from(article_hashtags)
            .where(article_hashtags.c.hashtag_id == hashtag.id)
        )
        return (await self._db.execute(q)).scalar_one()

    async def delete(self, hashtag: Hashtag) -> None:
        # Bulk DELETE by id: matches zero rows when already gone.
        await self._db.execute(delete(Hashtag).where(Hashtag.id == hashtag.id))


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class HashtagCatalog:
    """Resolve hashtag names to rows and garbage-collect unused rows."""

    def __init__(self, store: HashtagStore) -> None:
        self._store = store

    async def resolve(self, names: Iterable[str]) -> set[Hashtag]:
        """
        Return one persisted ``Hashtag`` per distinct name in *names*.

        Missing rows are created.  Losing a creation race to a concurrent
        request is not an error: the winner's row is fetched and used.
        """
        hashtags: set[Hashtag] = set()
        for name in sorted(set(names)):
            hashtags.add(await self._resolve_one(name))
        return hashtags

    async def _resolve_one(self, name: str) -> Hashtag:
        hashtag = await self._store.find_by_name(name)
        if hashtag is not None:
            return hashtag
        try:
            hashtag = await self._store.create(name)
        except DuplicateHashtagName:
            hashtag = await self._store.find_by_name(name)
            if hashtag is None:
                raise
            logger.debug("Hashtag %r created concurrently, reusing row %s", name, hashtag.id)
            return hashtag
        logger.info("Created hashtag %r", name)
        return hashtag

    async def cleanup_orphans(self, candidates: Iterable[Hashtag]) -> None:
        """
        Delete every hashtag in *candidates* that no article references.

        The association change that made a hashtag a candidate must already
        be flushed in the same transaction.  Calling this again for a
        hashtag that is already gone is a no-op.
        """
        for hashtag in candidates:
            if await self._store.count_articles_referencing(hashtag) == 0:
                await self._store.delete(hashtag)
                logger.info("Deleted orphaned hashtag %r", hashtag.name)


def hashtag_catalog(db: AsyncSession) -> HashtagCatalog:
    return HashtagCatalog(SQLHashtagStore(db))


async def list_hashtag_names(db: AsyncSession) -> list[str]:
    """
    Return the sorted names of all hashtags attached to at least one
    article.  Used to populate the hashtag search filter.
    """
    cached = await cache.get(HASHTAG_NAMES_KEY)
    if cached is not None:
        return cached

    q = (
        select(Hashtag.name)
        .join(article_hashtags, article_hashtags.c.hashtag_id == Hashtag.id)
        .distinct()
        .order_by(Hashtag.name)
    )
    names = list((await db.execute(q)).scalars().all())
    await cache.set(HASHTAG_NAMES_KEY, names, ttl=settings.CACHE_TTL_HASHTAGS)
    return names
