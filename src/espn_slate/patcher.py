"""Dependency-ordered tier patching of the event graph.

The core API hands back events whose teams, scores, records, odds and
status each live one or more requests away. Patching runs in phases:

0. event detail: a listing of ``$ref`` pointers becomes full event objects
1. team identity: competitor teams missing an ``id`` are fetched
2. detail fan-out: odds and status per event, record and score per competitor

Phases are strictly ordered because each needs ids the previous one
guarantees. Inside a phase every fetch runs on a thread pool; a task only
receives index handles into the event list and returns ``Patch`` objects,
which the calling thread applies one at a time after the join.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from espn_slate import endpoints
from espn_slate.errors import ResolutionError
from espn_slate.fetcher import ResourceFetcher
from espn_slate.refs import ReferenceResolver, RefPatch, ref_url
from espn_slate.settings import Settings

logger = logging.getLogger(__name__)

MISSING_ODDS_SOURCE = "N/A - Missing Event IDs or API Reference"
MISSING_EVENT_IDS = "N/A - Missing Event IDs"
MISSING_RECORD_SOURCE = "N/A"

TOTAL_RECORD_TYPE = "total"


@dataclass(frozen=True)
class Patch:
    """One resolved sub-resource addressed by index into the event list."""

    event_index: int
    kind: str
    value: Any
    competitor_index: int | None = None


@dataclass(frozen=True)
class FetchFailure:
    """A sub-resource that could not be resolved; its field stays as it was."""

    kind: str
    url: str
    reason: str


@dataclass
class PatchResult:
    events: list[dict[str, Any]]
    failures: list[FetchFailure] = field(default_factory=list)


Outcome = Patch | FetchFailure
Task = Callable[[], Outcome | None]


def extract_events(payload: Any) -> list[Any]:
    """Pull the event list out of a listing or scoreboard body."""
    if isinstance(payload, list):
        return list(payload)
    if not isinstance(payload, dict):
        return []
    for key in ("events", "items"):
        value = payload.get(key)
        if isinstance(value, list) and value:
            return list(value)
    return []


def primary_competition(event: Any) -> dict[str, Any] | None:
    if not isinstance(event, dict):
        return None
    competitions = event.get("competitions")
    if isinstance(competitions, list) and competitions and isinstance(competitions[0], dict):
        return competitions[0]
    return None


def competitors_of(competition: dict[str, Any] | None) -> list[dict[str, Any]]:
    if competition is None:
        return []
    competitors = competition.get("competitors")
    if not isinstance(competitors, list):
        return []
    return [comp for comp in competitors if isinstance(comp, dict)]


def is_total_record(record: Any) -> bool:
    """Overall win-loss record: type 'total' or name 'overall'."""
    if not isinstance(record, dict):
        return False
    if record.get("type") == TOTAL_RECORD_TYPE:
        return True
    name = record.get("name")
    return isinstance(name, str) and name.lower() == "overall"


def merge_total_record(team: dict[str, Any], summary: str) -> None:
    """Set the summary of the team's single total record, creating it if needed."""
    records = team.get("records")
    if not isinstance(records, list):
        records = []
        team["records"] = records
    for record in records:
        if is_total_record(record):
            record["summary"] = summary
            return
    records.append({"type": TOTAL_RECORD_TYPE, "summary": summary})


def normalize_odds_body(body: Any) -> list[Any] | None:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        items = body.get("items")
        if isinstance(items, list):
            return items
        return [body]
    return None


def _status_state(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    status_type = body.get("type")
    if not isinstance(status_type, dict):
        return None
    state = status_type.get("state")
    if isinstance(state, str) and state.strip():
        return state.strip()
    return None


def _total_record_summary(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    records = body.get("items") or body.get("records")
    if not isinstance(records, list):
        return None
    for record in records:
        if is_total_record(record):
            for key in ("displayValue", "summary"):
                value = record.get(key)
                if isinstance(value, str) and value:
                    return value
            return None
    return None


def _score_value(body: Any) -> Any:
    if isinstance(body, dict):
        return body.get("value")
    return None


def _team_has_id(team: dict[str, Any]) -> bool:
    team_id = team.get("id")
    return team_id is not None and str(team_id).strip() != ""


class TierPatcher:
    """Walk the reference graph tier by tier and merge what resolves."""

    def __init__(
        self,
        fetcher: ResourceFetcher,
        settings: Settings | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.settings = settings or fetcher.settings
        self.resolver = ReferenceResolver(fetcher)

    def patch_url(self, start_url: str, *, season_year: int | None) -> PatchResult:
        """Fetch the root listing (with retry) and patch every event in it."""
        url = endpoints.secure_url(start_url)
        logger.info("resolving schedule from %s (season %s)", url, season_year)
        payload = self.fetcher.fetch_json(url, retry=True)
        return self.patch(payload, season_year=season_year)

    def patch(self, payload: Any, *, season_year: int | None) -> PatchResult:
        """Run all phases over an already-fetched listing; events are patched in place."""
        events = extract_events(payload)
        failures: list[FetchFailure] = []

        if events and primary_competition(events[0]) is None:
            logger.info("event listing holds references; fetching %d event details", len(events))
            self._run_phase(events, self._event_tasks(events), failures)

        events = [event for event in events if primary_competition(event) is not None]
        logger.info("%d events with competition data", len(events))
        if not events:
            return PatchResult(events=[], failures=failures)

        self._run_phase(events, self._team_tasks(events), failures)
        logger.debug("team identity patching complete")

        self._run_phase(events, self._detail_tasks(events, season_year=season_year), failures)
        logger.debug("record/score/odds/status patching complete")

        if failures:
            logger.info("%d sub-resources left unresolved", len(failures))
        return PatchResult(events=events, failures=failures)

    # ------------------------------------------------------------------
    # Fan-out and merge
    # ------------------------------------------------------------------
    def _run_phase(
        self,
        events: list[Any],
        tasks: list[Task],
        failures: list[FetchFailure],
    ) -> None:
        if not tasks:
            return
        workers = max(1, min(self.settings.max_workers, len(tasks)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(task) for task in tasks]
            outcomes = [future.result() for future in futures]
        # Merge on this thread only, in submission order.
        for outcome in outcomes:
            if outcome is None:
                continue
            if isinstance(outcome, FetchFailure):
                failures.append(outcome)
                continue
            self._apply(events, outcome)

    def _guard(self, kind: str, url: str, fetch: Callable[[], Patch | None]) -> Outcome | None:
        try:
            return fetch()
        except ResolutionError as exc:
            logger.warning("%s fetch failed for %s: %s", kind, url, exc)
            return FetchFailure(kind=kind, url=url, reason=str(exc))

    def _apply(self, events: list[Any], patch: Patch) -> None:
        if patch.kind == "event":
            self.resolver.apply_patch(events, patch.value)
            return
        event = events[patch.event_index]
        competition = primary_competition(event)
        if competition is None:
            return
        if patch.kind == "odds":
            competition["odds"] = patch.value
        elif patch.kind == "status":
            event["statusState"] = patch.value
        elif patch.competitor_index is not None:
            competitor = competitors_of(competition)[patch.competitor_index]
            if patch.kind in ("team", "score"):
                self.resolver.apply_patch(competitor, patch.value)
            elif patch.kind == "record" and isinstance(competitor.get("team"), dict):
                merge_total_record(competitor["team"], patch.value)

    # ------------------------------------------------------------------
    # Phase 0: event detail
    # ------------------------------------------------------------------
    def _event_tasks(self, events: list[Any]) -> list[Task]:
        tasks: list[Task] = []
        for index, event in enumerate(events):
            url = ref_url(event)
            if url is None:
                continue
            tasks.append(self._event_task(events, index, url))
        return tasks

    def _event_task(self, events: list[Any], index: int, url: str) -> Task:
        def fetch() -> Patch | None:
            ref_patch = self.resolver.fetch_patch(events, index)
            if ref_patch is None:
                return None
            return Patch(event_index=index, kind="event", value=ref_patch)

        return lambda: self._guard("event", url, fetch)

    # ------------------------------------------------------------------
    # Phase 1: team identity
    # ------------------------------------------------------------------
    def _team_tasks(self, events: list[dict[str, Any]]) -> list[Task]:
        tasks: list[Task] = []
        for event_index, event in enumerate(events):
            for comp_index, competitor in enumerate(competitors_of(primary_competition(event))):
                team = competitor.get("team")
                url = ref_url(team)
                if url is None or _team_has_id(team):
                    continue
                tasks.append(self._ref_task("team", event_index, comp_index, competitor, url))
        return tasks

    def _ref_task(
        self,
        kind: str,
        event_index: int,
        comp_index: int,
        competitor: dict[str, Any],
        url: str,
    ) -> Task:
        def fetch() -> Patch | None:
            ref_patch: RefPatch | None
            if kind == "team":
                ref_patch = self.resolver.fetch_patch(
                    competitor, "team", is_concrete=_team_has_id
                )
            else:
                ref_patch = self.resolver.fetch_patch(competitor, "score", project=_score_value)
            if ref_patch is None:
                return None
            return Patch(
                event_index=event_index,
                kind=kind,
                value=ref_patch,
                competitor_index=comp_index,
            )

        return lambda: self._guard(kind, url, fetch)

    # ------------------------------------------------------------------
    # Phase 2: per-event and per-competitor detail
    # ------------------------------------------------------------------
    def _detail_tasks(
        self, events: list[dict[str, Any]], *, season_year: int | None
    ) -> list[Task]:
        tasks: list[Task] = []
        for event_index, event in enumerate(events):
            competition = primary_competition(event)
            if competition is None:
                continue
            event_id = event.get("id")
            competition_id = competition.get("id")

            odds_url = self._odds_source(competition, event_id, competition_id)
            if odds_url is None:
                event["debugOddsUrl"] = MISSING_ODDS_SOURCE
            else:
                event["debugOddsUrl"] = odds_url
                tasks.append(self._fetch_task("odds", event_index, odds_url, normalize_odds_body))

            status_url = endpoints.status_url(
                self.settings, event_id=event_id, competition_id=competition_id
            )
            if status_url is None:
                event["debugStatusUrl"] = MISSING_EVENT_IDS
            else:
                event["debugStatusUrl"] = status_url
                tasks.append(self._fetch_task("status", event_index, status_url, _status_state))

            for comp_index, competitor in enumerate(competitors_of(competition)):
                team = competitor.get("team")
                team_id = team.get("id") if isinstance(team, dict) else None
                record_url = endpoints.record_url(
                    self.settings, season_year=season_year, team_id=team_id
                )
                competitor["debugRecordUrl"] = record_url or MISSING_RECORD_SOURCE
                if record_url is not None:
                    tasks.append(
                        self._fetch_task(
                            "record",
                            event_index,
                            record_url,
                            _total_record_summary,
                            competitor_index=comp_index,
                        )
                    )

                score = competitor.get("score")
                score_url = ref_url(score)
                if score_url is not None:
                    tasks.append(
                        self._ref_task("score", event_index, comp_index, competitor, score_url)
                    )
        return tasks

    def _odds_source(
        self, competition: dict[str, Any], event_id: Any, competition_id: Any
    ) -> str | None:
        odds = competition.get("odds")
        if isinstance(odds, list) and odds:
            url = ref_url(odds[0])
            if url is not None:
                return endpoints.secure_url(url)
        elif isinstance(odds, dict):
            url = ref_url(odds)
            if url is not None:
                return endpoints.secure_url(url)
        return endpoints.odds_url(self.settings, event_id=event_id, competition_id=competition_id)

    def _fetch_task(
        self,
        kind: str,
        event_index: int,
        url: str,
        extract: Callable[[Any], Any],
        *,
        competitor_index: int | None = None,
    ) -> Task:
        def fetch() -> Patch | None:
            value = extract(self.fetcher.fetch_json(url, retry=False))
            if value is None:
                return None
            return Patch(
                event_index=event_index,
                kind=kind,
                value=value,
                competitor_index=competitor_index,
            )

        return lambda: self._guard(kind, url, fetch)
