from __future__ import annotations

from espn_slate.patcher import (
    MISSING_EVENT_IDS,
    MISSING_ODDS_SOURCE,
    MISSING_RECORD_SOURCE,
    TierPatcher,
    extract_events,
    merge_total_record,
    normalize_odds_body,
)
from espn_slate.settings import DEFAULT_CORE_BASE_URL

WEEK_URL = f"{DEFAULT_CORE_BASE_URL}/seasons/2024/types/2/weeks/5/events"


def _seed_week(fake_api) -> None:
    fake_api.add(
        WEEK_URL,
        {
            "count": 2,
            "items": [{"$ref": fake_api.event_url("401")}, {"$ref": fake_api.event_url("402")}],
        },
    )
    fake_api.seed_event(
        "401", home=("12", "Kansas City Chiefs", "KC"), away=("2", "Buffalo Bills", "BUF")
    )
    fake_api.seed_event(
        "402",
        home=("17", "New England Patriots", "NE"),
        away=("15", "Miami Dolphins", "MIA"),
        state="pre",
        home_score=0.0,
        away_score=0.0,
        home_line=140,
        away_line=-165,
    )


def _competitors(event):
    return {comp["homeAway"]: comp for comp in event["competitions"][0]["competitors"]}


def test_extract_events_accepts_events_or_items() -> None:
    assert extract_events({"events": [{"id": "1"}]}) == [{"id": "1"}]
    assert extract_events({"items": [{"$ref": "x"}]}) == [{"$ref": "x"}]
    assert extract_events([{"id": "1"}]) == [{"id": "1"}]
    assert extract_events({"count": 0}) == []
    assert extract_events("nope") == []


def test_normalize_odds_body_shapes() -> None:
    assert normalize_odds_body([{"a": 1}]) == [{"a": 1}]
    assert normalize_odds_body({"items": [{"a": 1}]}) == [{"a": 1}]
    assert normalize_odds_body({"a": 1}) == [{"a": 1}]
    assert normalize_odds_body("x") is None


def test_merge_total_record_never_duplicates() -> None:
    team = {"records": [{"name": "overall", "type": "total", "summary": "1-0"}]}

    merge_total_record(team, "2-0")
    merge_total_record(team, "3-0")

    assert team["records"] == [{"name": "overall", "type": "total", "summary": "3-0"}]

    bare: dict = {}
    merge_total_record(bare, "4-1")
    assert bare["records"] == [{"type": "total", "summary": "4-1"}]


def test_patch_url_resolves_every_tier(fake_api, fetcher) -> None:
    _seed_week(fake_api)

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    assert result.failures == []
    assert [event["id"] for event in result.events] == ["401", "402"]
    first = result.events[0]
    assert first["statusState"] == "post"
    sides = _competitors(first)
    assert sides["home"]["team"]["displayName"] == "Kansas City Chiefs"
    assert sides["home"]["team"]["id"] == "12"
    assert sides["home"]["score"] == 24.0
    assert sides["away"]["score"] == 20.0
    assert sides["home"]["team"]["records"] == [{"type": "total", "summary": "9-3"}]
    assert first["competitions"][0]["odds"][0]["homeTeamOdds"] == {"moneyLine": -150}
    assert first["debugOddsUrl"] == fake_api.odds_url("401")
    assert first["debugStatusUrl"] == fake_api.status_url("401")
    assert sides["away"]["debugRecordUrl"] == fake_api.record_url("2")
    assert result.events[1]["statusState"] == "pre"


def test_patch_upgrades_insecure_team_links(fake_api, fetcher) -> None:
    _seed_week(fake_api)

    TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    assert fake_api.team_url("12") in fake_api.calls
    assert not any(call.startswith("http://") for call in fake_api.calls)


def test_record_urls_use_explicit_season_year(fake_api, fetcher) -> None:
    _seed_week(fake_api)
    fake_api.add(fake_api.record_url("12", 2023), {"items": [{"type": "total", "displayValue": "11-6"}]})

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2023)

    home = _competitors(result.events[0])["home"]
    assert home["debugRecordUrl"] == fake_api.record_url("12", 2023)
    assert home["team"]["records"] == [{"type": "total", "summary": "11-6"}]


def test_failed_event_detail_is_dropped(fake_api, fetcher) -> None:
    fake_api.add(
        WEEK_URL,
        {"items": [{"$ref": fake_api.event_url("401")}, {"$ref": fake_api.event_url("999")}]},
    )
    fake_api.seed_event(
        "401", home=("12", "Kansas City Chiefs", "KC"), away=("2", "Buffalo Bills", "BUF")
    )
    fake_api.fail(fake_api.event_url("999"), status=500)

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    assert [event["id"] for event in result.events] == ["401"]
    assert [failure.kind for failure in result.failures] == ["event"]
    assert fake_api.count(fake_api.event_url("999")) == 1


def test_event_without_competitions_is_discarded(fake_api, fetcher) -> None:
    fake_api.add(WEEK_URL, {"items": [{"$ref": fake_api.event_url("500")}]})
    fake_api.add(fake_api.event_url("500"), {"id": "500", "competitions": []})

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    assert result.events == []


def test_team_failure_is_isolated(fake_api, fetcher) -> None:
    _seed_week(fake_api)
    fake_api.routes[fake_api.team_url("2")] = []
    fake_api.fail(fake_api.team_url("2"), status=503)

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    away = _competitors(result.events[0])["away"]
    assert away["team"] == {"$ref": fake_api.team_url("2")}
    assert away["debugRecordUrl"] == MISSING_RECORD_SOURCE
    assert away["score"] == 20.0
    assert _competitors(result.events[0])["home"]["team"]["id"] == "12"
    assert _competitors(result.events[1])["away"]["team"]["id"] == "15"
    assert [failure.kind for failure in result.failures] == ["team"]


def test_detail_failures_keep_prior_values(fake_api, fetcher) -> None:
    _seed_week(fake_api)
    for url in (fake_api.status_url("401"), fake_api.odds_url("401"), fake_api.score_url("401", "12")):
        fake_api.routes[url] = []
        fake_api.broken(url)

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    first = result.events[0]
    assert "statusState" not in first
    assert "odds" not in first["competitions"][0]
    assert _competitors(first)["home"]["score"] == {"$ref": fake_api.score_url("401", "12")}
    assert _competitors(first)["away"]["score"] == 20.0
    assert sorted(failure.kind for failure in result.failures) == ["odds", "score", "status"]
    assert result.events[1]["statusState"] == "pre"


def test_empty_status_state_is_not_patched(fake_api, fetcher) -> None:
    _seed_week(fake_api)
    fake_api.routes[fake_api.status_url("401")] = []
    fake_api.add(fake_api.status_url("401"), {"type": {"state": ""}})

    result = TierPatcher(fetcher).patch_url(WEEK_URL, season_year=2024)

    assert "statusState" not in result.events[0]
    assert result.failures == []


def test_inline_events_skip_detail_phase_and_prefer_odds_reference(fake_api, fetcher) -> None:
    own_odds = f"{DEFAULT_CORE_BASE_URL}/events/77/competitions/77/odds/58"
    payload = {
        "events": [
            {
                "id": "77",
                "competitions": [
                    {
                        "id": "77",
                        "odds": [{"$ref": own_odds.replace("https://", "http://")}],
                        "competitors": [
                            {"homeAway": "home", "team": {"id": "1", "displayName": "A"}, "score": "10"},
                            {"homeAway": "away", "team": {"id": "3", "displayName": "B"}, "score": "7"},
                        ],
                    }
                ],
            }
        ]
    }
    fake_api.add(own_odds, {"homeTeamOdds": {"Moneyline": -110}})

    result = TierPatcher(fetcher).patch(payload, season_year=2024)

    competition = result.events[0]["competitions"][0]
    assert competition["odds"] == [{"homeTeamOdds": {"Moneyline": -110}}]
    assert result.events[0]["debugOddsUrl"] == own_odds
    assert _competitors(result.events[0])["home"]["score"] == "10"
    assert not any("/score" in call for call in fake_api.calls)
    assert not any("/teams/1?" in call for call in fake_api.calls)


def test_missing_ids_record_sentinel_markers(fake_api, fetcher) -> None:
    payload = {
        "events": [
            {
                "competitions": [
                    {
                        "competitors": [
                            {"homeAway": "home", "team": {"displayName": "A"}},
                            {"homeAway": "away", "team": {"displayName": "B"}},
                        ]
                    }
                ]
            }
        ]
    }

    result = TierPatcher(fetcher).patch(payload, season_year=2024)

    event = result.events[0]
    assert event["debugOddsUrl"] == MISSING_ODDS_SOURCE
    assert event["debugStatusUrl"] == MISSING_EVENT_IDS
    assert all(
        comp["debugRecordUrl"] == MISSING_RECORD_SOURCE
        for comp in event["competitions"][0]["competitors"]
    )
    assert fake_api.calls == []
