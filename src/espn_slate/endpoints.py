"""Canonical ESPN core API URL builders."""

from __future__ import annotations

from typing import Any

from espn_slate.settings import Settings

REGULAR_SEASON_TYPE = 2
LOCALE_QUERY = "lang=en&region=us"


def secure_url(url: str) -> str:
    """Upgrade insecure http links; upstream emits both schemes."""
    if url[:7].lower() == "http://":
        return "https://" + url[7:]
    return url


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def events_url(settings: Settings) -> str:
    """Flat events listing used when no season/week is selected."""
    return settings.core_url("events")


def schedule_url(settings: Settings, *, season_year: int, week: int) -> str:
    """Regular-season week schedule listing."""
    return settings.core_url(
        f"seasons/{season_year}/types/{REGULAR_SEASON_TYPE}/weeks/{week}/events"
    )


def odds_url(settings: Settings, *, event_id: Any, competition_id: Any) -> str | None:
    if not (_present(event_id) and _present(competition_id)):
        return None
    return settings.core_url(
        f"events/{event_id}/competitions/{competition_id}/odds?{LOCALE_QUERY}"
    )


def status_url(settings: Settings, *, event_id: Any, competition_id: Any) -> str | None:
    if not (_present(event_id) and _present(competition_id)):
        return None
    return settings.core_url(
        f"events/{event_id}/competitions/{competition_id}/status?{LOCALE_QUERY}"
    )


def record_url(settings: Settings, *, season_year: int | None, team_id: Any) -> str | None:
    if not (_present(team_id) and season_year):
        return None
    return settings.core_url(
        f"seasons/{season_year}/types/{REGULAR_SEASON_TYPE}/teams/{team_id}/record?{LOCALE_QUERY}"
    )
