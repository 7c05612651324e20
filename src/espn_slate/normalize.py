"""Projection of patched events into display-ready game records."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

from espn_slate.errors import StructuralError
from espn_slate.odds_math import NOT_AVAILABLE, format_moneyline, read_moneyline
from espn_slate.patcher import competitors_of, is_total_record, primary_competition
from espn_slate.util.parsing import safe_number

logger = logging.getLogger(__name__)

SCORE_PLACEHOLDER = "-"
UNKNOWN_TEAM = "Unknown Team"

SideStatus = Literal["upcoming", "winner", "loser", "tie", "in-progress"]
Score = int | float | str


@dataclass(frozen=True)
class GameSide:
    """One team's half of a game as shown to users."""

    team_id: str
    team_name: str
    abbreviation: str
    logo_url: str
    record_summary: str
    score: Score
    status: SideStatus
    odds: str
    debug_record_url: str = NOT_AVAILABLE


@dataclass(frozen=True)
class Game:
    name: str
    home: GameSide
    away: GameSide
    status_state: str | None = None
    debug_odds_url: str = NOT_AVAILABLE
    debug_status_url: str = NOT_AVAILABLE

    @property
    def home_odds(self) -> str:
        return self.home.odds

    @property
    def away_odds(self) -> str:
        return self.away.odds

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["home_odds"] = self.home_odds
        payload["away_odds"] = self.away_odds
        return payload


def _team(competitor: dict[str, Any]) -> dict[str, Any]:
    team = competitor.get("team")
    return team if isinstance(team, dict) else {}


def _team_id(competitor: dict[str, Any] | None) -> str:
    if competitor is None:
        return ""
    team_id = _team(competitor).get("id")
    return "" if team_id is None else str(team_id).strip()


def _by_role(competitors: list[dict[str, Any]], role: str) -> dict[str, Any] | None:
    for competitor in competitors:
        if competitor.get("homeAway") == role:
            return competitor
    return None


def build_odds_map(
    competition: dict[str, Any], competitors: list[dict[str, Any]]
) -> dict[str, str]:
    """Map team id to formatted moneyline for one competition.

    The primary odds entry (index 0) is read first, from its ``items[0]`` when
    present. The flat ``moneyLine: [{targetId, moneyLine}]`` shape is only
    consulted when the primary path produced nothing.
    """
    odds_list = competition.get("odds")
    if not isinstance(odds_list, list) or not odds_list or not isinstance(odds_list[0], dict):
        return {}
    primary = odds_list[0]
    items = primary.get("items")
    source = items[0] if isinstance(items, list) and items and isinstance(items[0], dict) else primary

    odds_map: dict[str, str] = {}
    for role, key in (("away", "awayTeamOdds"), ("home", "homeTeamOdds")):
        team_id = _team_id(_by_role(competitors, role))
        if not team_id:
            continue
        formatted = format_moneyline(read_moneyline(source.get(key)))
        if formatted:
            odds_map[team_id] = formatted

    flat = primary.get("moneyLine")
    if not odds_map and isinstance(flat, list):
        for entry in flat:
            if not isinstance(entry, dict) or not entry.get("targetId"):
                continue
            formatted = format_moneyline(entry.get("moneyLine"))
            if formatted:
                odds_map[str(entry["targetId"]).strip()] = formatted
    return odds_map


def _team_name(team: dict[str, Any]) -> str:
    for key in ("displayName", "shortDisplayName", "abbreviation"):
        value = team.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return UNKNOWN_TEAM


def _logo_url(team: dict[str, Any]) -> str:
    logos = team.get("logos")
    if isinstance(logos, list) and logos and isinstance(logos[0], dict):
        href = logos[0].get("href")
        if isinstance(href, str):
            return href
    return ""


def _record_summary(team: dict[str, Any]) -> str:
    records = team.get("records")
    if isinstance(records, list):
        for record in records:
            if not is_total_record(record):
                continue
            for key in ("summary", "displayValue"):
                value = record.get(key)
                if isinstance(value, str) and value:
                    return value
            break
    return NOT_AVAILABLE


def _score(competitor: dict[str, Any]) -> int | float | None:
    raw = competitor.get("score")
    if isinstance(raw, (int, float, str)):
        return safe_number(raw)
    return None


def derive_statuses(
    status_state: str | None,
    home_score: Any,
    away_score: Any,
) -> tuple[SideStatus, SideStatus, Score, Score]:
    """Return (home_status, away_status, home_display, away_display).

    Final games compare numeric scores; any other non-pregame state is in
    progress; pregame or unknown state hides scores behind the placeholder.
    """
    home = safe_number(home_score)
    away = safe_number(away_score)
    home_display: Score = home if home is not None else SCORE_PLACEHOLDER
    away_display: Score = away if away is not None else SCORE_PLACEHOLDER

    if status_state == "post":
        if home is None or away is None:
            return "upcoming", "upcoming", home_display, away_display
        if home > away:
            return "winner", "loser", home_display, away_display
        if away > home:
            return "loser", "winner", home_display, away_display
        return "tie", "tie", home_display, away_display
    if status_state and status_state != "pre":
        return "in-progress", "in-progress", home_display, away_display
    return "upcoming", "upcoming", SCORE_PLACEHOLDER, SCORE_PLACEHOLDER


def _side(
    competitor: dict[str, Any],
    *,
    odds_map: dict[str, str],
    score: Score,
    status: SideStatus,
) -> GameSide:
    team = _team(competitor)
    team_id = _team_id(competitor)
    debug_record_url = competitor.get("debugRecordUrl")
    abbreviation = team.get("abbreviation")
    return GameSide(
        team_id=team_id,
        team_name=_team_name(team),
        abbreviation=abbreviation if isinstance(abbreviation, str) else "",
        logo_url=_logo_url(team),
        record_summary=_record_summary(team),
        score=score,
        status=status,
        odds=odds_map.get(team_id, NOT_AVAILABLE) if team_id else NOT_AVAILABLE,
        debug_record_url=debug_record_url if isinstance(debug_record_url, str) else NOT_AVAILABLE,
    )


def normalize_event(event: dict[str, Any]) -> Game:
    """Normalize one patched event; raises StructuralError when it cannot."""
    competition = primary_competition(event)
    if competition is None:
        raise StructuralError(f"event {event.get('id')!r} has no competition")
    competitors = competitors_of(competition)
    if len(competitors) < 2:
        raise StructuralError(f"event {event.get('id')!r} has fewer than two competitors")
    home = _by_role(competitors, "home")
    away = _by_role(competitors, "away")
    if home is None or away is None:
        raise StructuralError(f"event {event.get('id')!r} is missing a home or away competitor")

    status_state = event.get("statusState")
    if not isinstance(status_state, str):
        status_state = None
    home_status, away_status, home_score, away_score = derive_statuses(
        status_state, _score(home), _score(away)
    )
    odds_map = build_odds_map(competition, competitors)
    home_side = _side(home, odds_map=odds_map, score=home_score, status=home_status)
    away_side = _side(away, odds_map=odds_map, score=away_score, status=away_status)
    if not home_side.team_name or not away_side.team_name:
        raise StructuralError(f"event {event.get('id')!r} has an unnamed team")

    name = event.get("name")
    if not isinstance(name, str) or not name:
        name = f"{away_side.team_name} at {home_side.team_name}"
    debug_odds_url = event.get("debugOddsUrl")
    debug_status_url = event.get("debugStatusUrl")
    return Game(
        name=name,
        home=home_side,
        away=away_side,
        status_state=status_state,
        debug_odds_url=debug_odds_url if isinstance(debug_odds_url, str) else NOT_AVAILABLE,
        debug_status_url=debug_status_url if isinstance(debug_status_url, str) else NOT_AVAILABLE,
    )


def normalize_games(events: list[Any]) -> list[Game]:
    """Normalize patched events in order, skipping the ones that are malformed."""
    games: list[Game] = []
    for event in events:
        if not isinstance(event, dict):
            continue
        try:
            games.append(normalize_event(event))
        except StructuralError as exc:
            logger.debug("skipping event: %s", exc)
    return games
