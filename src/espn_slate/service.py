"""Top-level resolution entrypoints."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from espn_slate.errors import EmptyResult
from espn_slate.fetcher import ResourceFetcher
from espn_slate.normalize import Game, normalize_games
from espn_slate.patcher import TierPatcher
from espn_slate.ranking import RankedEvent, rank_events, ranked_from_games, transform_scoreboard
from espn_slate.settings import Settings

logger = logging.getLogger(__name__)

SITE_API_MARKER = "/apis/site/"
NO_GAMES_TO_RANK = "No games found for this specific week/year to rank."


@contextmanager
def _fetcher_scope(
    settings: Settings | None, fetcher: ResourceFetcher | None
) -> Iterator[ResourceFetcher]:
    if fetcher is not None:
        yield fetcher
        return
    with ResourceFetcher(settings or Settings()) as owned:
        yield owned


def resolve_schedule(
    start_url: str,
    season_year: int | None,
    *,
    settings: Settings | None = None,
    fetcher: ResourceFetcher | None = None,
    empty_message: str | None = None,
) -> list[Game]:
    """Resolve a schedule or scoreboard listing into normalized games.

    Sub-resource failures only degrade fields to their sentinels. Root fetch
    failures propagate; an empty outcome raises ``EmptyResult``.
    """
    with _fetcher_scope(settings, fetcher) as active:
        result = TierPatcher(active, settings).patch_url(start_url, season_year=season_year)
    games = normalize_games(result.events)
    logger.info(
        "resolved %d games (%d unresolved sub-resources)", len(games), len(result.failures)
    )
    if not games:
        raise EmptyResult(empty_message or f"no usable games resolved from {start_url}")
    return games


def is_site_scoreboard(url: str) -> bool:
    return SITE_API_MARKER in url


def rank_current_odds(
    events_or_url: str | Sequence[Game] | Sequence[RankedEvent] | dict[str, Any],
    *,
    season_year: int | None = None,
    settings: Settings | None = None,
    fetcher: ResourceFetcher | None = None,
) -> list[RankedEvent]:
    """Rank favorites from a URL, a scoreboard body, games, or unranked events.

    A site-API scoreboard URL is fetched once and read directly; any other
    URL goes through full schedule resolution first.
    """
    if isinstance(events_or_url, str):
        url = events_or_url
        if is_site_scoreboard(url):
            with _fetcher_scope(settings, fetcher) as active:
                payload = active.fetch_json(url, retry=True)
            return rank_events(transform_scoreboard(payload))
        games = resolve_schedule(
            url,
            season_year,
            settings=settings,
            fetcher=fetcher,
            empty_message=NO_GAMES_TO_RANK,
        )
        return rank_events(ranked_from_games(games))
    if isinstance(events_or_url, dict):
        return rank_events(transform_scoreboard(events_or_url))

    unranked: list[RankedEvent] = []
    for item in events_or_url:
        if isinstance(item, Game):
            unranked.extend(ranked_from_games([item]))
        elif isinstance(item, RankedEvent):
            unranked.append(item)
    return rank_events(unranked)
