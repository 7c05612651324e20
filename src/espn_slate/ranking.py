"""Moneyline favorites and confidence ranking."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, replace
from typing import Any

from espn_slate.normalize import Game
from espn_slate.odds_math import display_moneyline, implied_prob_from_american, read_moneyline
from espn_slate.patcher import competitors_of, primary_competition
from espn_slate.util.parsing import to_line

TOSS_UP = "Toss-Up / N/A"
AWAY = "away"
HOME = "home"


@dataclass(frozen=True)
class RankedEvent:
    id: str
    away_team: str
    home_team: str
    away_odds: str
    home_odds: str
    expected_winner: str
    winner_line: int | None
    status: str = ""
    confidence_rank: int | None = None
    implied_probability: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_winner(away_line: Any, home_line: Any) -> tuple[str, int | None]:
    """Pick the implied favorite from two moneylines.

    Returns ``("away" | "home", line)`` or ``(TOSS_UP, None)``. When a
    favorite is priced (any negative line) the more negative side wins; when
    both are underdogs the smaller positive line wins. Equal lines go to the
    home side. Zero or unparseable lines give a toss-up.
    """
    away = to_line(away_line)
    home = to_line(home_line)
    if away is None or home is None:
        return TOSS_UP, None
    if away < 0 or home < 0 or (away > 0 and home > 0):
        if away < home:
            return AWAY, away
        return HOME, home
    return TOSS_UP, None


def build_ranked_event(
    *,
    event_id: str,
    away_team: str,
    home_team: str,
    away_odds: Any,
    home_odds: Any,
    status: str = "",
) -> RankedEvent:
    side, line = extract_winner(away_odds, home_odds)
    if side == AWAY:
        expected_winner = away_team
    elif side == HOME:
        expected_winner = home_team
    else:
        expected_winner = TOSS_UP
    return RankedEvent(
        id=event_id,
        away_team=away_team,
        home_team=home_team,
        away_odds=display_moneyline(away_odds),
        home_odds=display_moneyline(home_odds),
        expected_winner=expected_winner,
        winner_line=line,
        status=status,
        implied_probability=implied_prob_from_american(line),
    )


def rank_events(events: Iterable[RankedEvent]) -> list[RankedEvent]:
    """Rank events that have a favorite; the strongest favorite gets rank N.

    Sorting is stable and ascending by line, so ties keep input order and the
    most negative line lands first with ``confidence_rank = N``.
    """
    rankable = [
        event
        for event in events
        if event.expected_winner != TOSS_UP and event.winner_line is not None
    ]
    ordered = sorted(rankable, key=lambda event: event.winner_line)
    total = len(ordered)
    return [
        replace(event, confidence_rank=total - index) for index, event in enumerate(ordered)
    ]


def _abbreviation(competitor: dict[str, Any] | None, fallback: str) -> str:
    if competitor is None:
        return fallback
    team = competitor.get("team")
    if isinstance(team, dict):
        value = team.get("abbreviation")
        if isinstance(value, str) and value:
            return value
    return fallback


def transform_scoreboard(payload: Any) -> list[RankedEvent]:
    """Turn a live site-API scoreboard body into unranked events."""
    if not isinstance(payload, dict) or not isinstance(payload.get("events"), list):
        return []
    out: list[RankedEvent] = []
    for event in payload["events"]:
        competition = primary_competition(event)
        competitors = competitors_of(competition)
        if competition is None or len(competitors) < 2:
            continue
        away = next((c for c in competitors if c.get("homeAway") == AWAY), None)
        home = next((c for c in competitors if c.get("homeAway") == HOME), None)

        odds_list = competition.get("odds")
        primary = odds_list[0] if isinstance(odds_list, list) and odds_list else {}
        if not isinstance(primary, dict):
            primary = {}

        status = event.get("status") or {}
        status_type = status.get("type") if isinstance(status, dict) else None
        detail = status_type.get("detail") if isinstance(status_type, dict) else None

        out.append(
            build_ranked_event(
                event_id=str(event.get("id", "")),
                away_team=_abbreviation(away, "AWY"),
                home_team=_abbreviation(home, "HOM"),
                away_odds=read_moneyline(primary.get("awayTeamOdds")),
                home_odds=read_moneyline(primary.get("homeTeamOdds")),
                status=detail if isinstance(detail, str) else "",
            )
        )
    return out


def ranked_from_games(games: Iterable[Game]) -> list[RankedEvent]:
    """Turn deep-resolved games into unranked events."""
    out: list[RankedEvent] = []
    for game in games:
        out.append(
            build_ranked_event(
                event_id=f"{game.away.team_name}-{game.home.team_name}",
                away_team=game.away.abbreviation or game.away.team_name,
                home_team=game.home.abbreviation or game.home.team_name,
                away_odds=game.away_odds,
                home_odds=game.home_odds,
                status=game.home.status,
            )
        )
    return out
