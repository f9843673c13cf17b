"""
Search resolution with a deterministic fallback cascade.

Free-text searches fail to match for two unrelated reasons:

1. Argument encoding: depending on daemon version and query content, the
   quoted-string and token encodings of the same query do not always
   behave the same.
2. Decorated queries: callers often pass back a display string such as
   ``"Artist - Title (Album)"``, which never substring-matches a title tag.

The resolver builds an ordered list of named strategies for a query and
evaluates them one by one; the first non-empty result wins:

    primary            normalized query, quoted-string encoding
    undecorated-title  raw query cut at its first "(" (title searches on
                       decorated queries only), quoted-string encoding
    token-encoding     normalized query, token encoding

If every strategy was rejected by the daemon (not merely empty) and the
field is not ``any``, the whole cascade runs once more with the field
forced to ``any`` and the original raw query.

Connectivity failures are never absorbed: they propagate from whichever
strategy hit them. An exhausted cascade returns an empty list.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from mpdlink.core.models import SearchField, SearchQuery, Song
from mpdlink.protocol.commands import ArgEncoding
from mpdlink.protocol.session import CommandRejectedError

logger = logging.getLogger(__name__)

# (field, query, encoding) -> songs; raises CommandRejectedError on ACK.
SearchExecutor = Callable[[SearchField, str, ArgEncoding], Awaitable[list[Song]]]


@dataclass(frozen=True, slots=True)
class SearchStrategy:
    """One step of the cascade."""

    name: str
    query: str
    encoding: ArgEncoding


def plan_strategies(query: SearchQuery) -> list[SearchStrategy]:
    """Build the ordered strategy list for a query."""
    effective = query.normalized
    strategies = [SearchStrategy("primary", effective, ArgEncoding.QUOTED)]

    if query.field is SearchField.TITLE and query.is_decorated and "(" in query.raw:
        strategies.append(
            SearchStrategy("undecorated-title", query.undecorated_title, ArgEncoding.QUOTED)
        )

    strategies.append(SearchStrategy("token-encoding", effective, ArgEncoding.TOKENS))
    return strategies


class SearchResolver:
    """
    Runs the search cascade on top of a single-attempt search executor.

    Args:
        execute: Performs one ``search`` command with the given field,
            query string and argument encoding.
    """

    def __init__(self, execute: SearchExecutor) -> None:
        self._execute = execute

    async def resolve(self, field: SearchField | str, query: str) -> list[Song]:
        """
        Search for songs, trying each strategy until one yields results.

        Args:
            field: Field to match (artist, album, title, genre, any).
            query: Raw query string as supplied by the caller.

        Returns:
            Matching songs, or an empty list when nothing matched.

        Raises:
            ValueError: If field is not a searchable field.
            MpdConnectionError: On any connectivity failure.
        """
        search_query = SearchQuery(field=SearchField.parse(field), raw=query)
        logger.debug(
            "Searching %s for %r (normalized %r)",
            search_query.field.value,
            search_query.raw,
            search_query.normalized,
        )
        return await self._cascade(search_query, allow_broaden=True)

    async def _cascade(self, query: SearchQuery, *, allow_broaden: bool) -> list[Song]:
        strategies = plan_strategies(query)
        rejected = 0

        for strategy in strategies:
            logger.debug(
                "Search strategy %s: %s %r (%s)",
                strategy.name,
                query.field.value,
                strategy.query,
                strategy.encoding.value,
            )
            try:
                songs = await self._execute(query.field, strategy.query, strategy.encoding)
            except CommandRejectedError as e:
                rejected += 1
                logger.warning("Search strategy %s rejected by MPD: %s", strategy.name, e)
                continue

            if songs:
                logger.debug("Search strategy %s matched %d songs", strategy.name, len(songs))
                return songs

        if rejected == len(strategies):
            if allow_broaden and query.field is not SearchField.ANY:
                logger.info("All %s searches rejected, retrying as 'any'", query.field.value)
                return await self._cascade(
                    SearchQuery(field=SearchField.ANY, raw=query.raw),
                    allow_broaden=False,
                )
            logger.warning("All search strategies rejected for %r, returning no results", query.raw)

        return []
