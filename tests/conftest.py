from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from typing import Any

import httpx
import pytest

from espn_slate.fetcher import ResourceFetcher
from espn_slate.settings import DEFAULT_CORE_BASE_URL, Settings

BASE = DEFAULT_CORE_BASE_URL
LOCALE = "?lang=en&region=us"


class FakeApi:
    """Scripted upstream: each URL answers from a queue, the last entry repeats."""

    def __init__(self) -> None:
        self.routes: dict[str, list[tuple[int, Any]]] = {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def add(self, url: str, body: Any, status: int = 200) -> None:
        self.routes.setdefault(url, []).append((status, body))

    def fail(self, url: str, status: int = 503) -> None:
        self.add(url, {"error": "unavailable"}, status=status)

    def broken(self, url: str) -> None:
        self.add(url, httpx.ConnectError("connection refused"))

    def count(self, url: str) -> int:
        return sum(1 for call in self.calls if call == url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.calls.append(url)
            queue = self.routes.get(url)
            if not queue:
                return httpx.Response(404, json={"error": "not found"})
            status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body)

    # Core API resource URLs; competition ids equal event ids.
    @staticmethod
    def event_url(event_id: str) -> str:
        return f"{BASE}/events/{event_id}?lang=en"

    @staticmethod
    def team_url(team_id: str) -> str:
        return f"{BASE}/seasons/2024/teams/{team_id}?lang=en"

    @staticmethod
    def record_url(team_id: str, season: int = 2024) -> str:
        return f"{BASE}/seasons/{season}/types/2/teams/{team_id}/record{LOCALE}"

    @staticmethod
    def odds_url(event_id: str) -> str:
        return f"{BASE}/events/{event_id}/competitions/{event_id}/odds{LOCALE}"

    @staticmethod
    def status_url(event_id: str) -> str:
        return f"{BASE}/events/{event_id}/competitions/{event_id}/status{LOCALE}"

    @staticmethod
    def score_url(event_id: str, team_id: str) -> str:
        return f"{BASE}/events/{event_id}/competitions/{event_id}/competitors/{team_id}/score"

    def seed_event(
        self,
        event_id: str,
        *,
        home: tuple[str, str, str],
        away: tuple[str, str, str],
        home_score: float = 24.0,
        away_score: float = 20.0,
        state: str = "post",
        home_line: Any = -150,
        away_line: Any = 130,
        season: int = 2024,
    ) -> None:
        """Register the full reference tree of one event.

        ``home``/``away`` are (team_id, display_name, abbreviation).
        """
        self.add(
            self.event_url(event_id),
            {
                "$ref": self.event_url(event_id),
                "id": event_id,
                "name": f"{away[1]} at {home[1]}",
                "competitions": [
                    {
                        "id": event_id,
                        "competitors": [
                            {
                                "id": home[0],
                                "homeAway": "home",
                                "team": {
                                    "$ref": self.team_url(home[0]).replace("https://", "http://")
                                },
                                "score": {"$ref": self.score_url(event_id, home[0])},
                            },
                            {
                                "id": away[0],
                                "homeAway": "away",
                                "team": {"$ref": self.team_url(away[0])},
                                "score": {"$ref": self.score_url(event_id, away[0])},
                            },
                        ],
                    }
                ],
            },
        )
        for team_id, name, abbreviation in (home, away):
            self.add(
                self.team_url(team_id),
                {
                    "$ref": self.team_url(team_id),
                    "id": team_id,
                    "displayName": name,
                    "abbreviation": abbreviation,
                    "logos": [{"href": f"https://a.espncdn.com/{abbreviation.lower()}.png"}],
                },
            )
            self.add(
                self.record_url(team_id, season),
                {
                    "items": [
                        {"name": "overall", "type": "total", "summary": "9-3", "displayValue": "9-3"},
                        {"name": "Home", "type": "home", "summary": "5-1"},
                    ]
                },
            )
        self.add(
            self.score_url(event_id, home[0]), {"value": home_score, "displayValue": str(home_score)}
        )
        self.add(
            self.score_url(event_id, away[0]), {"value": away_score, "displayValue": str(away_score)}
        )
        self.add(self.status_url(event_id), {"type": {"state": state, "detail": "Final"}})
        self.add(
            self.odds_url(event_id),
            {
                "count": 1,
                "items": [
                    {
                        "provider": {"name": "ESPN BET"},
                        "awayTeamOdds": {"moneyLine": away_line},
                        "homeTeamOdds": {"moneyLine": home_line},
                    }
                ],
            },
        )


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, max_workers=4)


@pytest.fixture
def fetcher(fake_api: FakeApi, sleeps: list[float], settings: Settings) -> Iterator[ResourceFetcher]:
    client = ResourceFetcher(
        settings,
        transport=httpx.MockTransport(fake_api.handler),
        sleep=sleeps.append,
    )
    yield client
    client.close()


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("espn_slate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
