"""Command line entrypoint for espn-slate."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import UTC, datetime

from espn_slate import endpoints
from espn_slate.errors import CLIError, ResolutionError
from espn_slate.log import configure_logging
from espn_slate.normalize import Game
from espn_slate.ranking import RankedEvent
from espn_slate.service import rank_current_odds, resolve_schedule
from espn_slate.settings import Settings

EMPTY_WEEK_MESSAGE = (
    "The schedule API returned 0 games for the selected Week/Year. "
    "Data may not be available yet."
)


def _current_year() -> int:
    return datetime.now(UTC).year


def _week_selection(args: argparse.Namespace, settings: Settings) -> tuple[int, str | None]:
    """Return the season year and, when both year and week are given, the week URL."""
    if args.week is not None and args.week < 1:
        raise CLIError("--week must be a positive integer")
    season_year = args.year if args.year is not None else _current_year()
    if args.year is None or args.week is None:
        return season_year, None
    return season_year, endpoints.schedule_url(settings, season_year=args.year, week=args.week)


def _format_game(game: Game) -> str:
    return (
        f"{game.name}: "
        f"{game.away.team_name} ({game.away.record_summary}, {game.away.odds}) "
        f"{game.away.score} [{game.away.status}] @ "
        f"{game.home.team_name} ({game.home.record_summary}, {game.home.odds}) "
        f"{game.home.score} [{game.home.status}]"
    )


def _format_ranked(event: RankedEvent) -> str:
    return (
        f"#{event.confidence_rank} {event.away_team} ({event.away_odds}) @ "
        f"{event.home_team} ({event.home_odds}) -> {event.expected_winner} "
        f"{event.winner_line}"
    )


def _cmd_schedule(args: argparse.Namespace) -> int:
    settings = Settings()
    season_year, week_url = _week_selection(args, settings)
    if week_url is not None:
        url = week_url
        empty_message = EMPTY_WEEK_MESSAGE
    else:
        url = endpoints.events_url(settings)
        empty_message = None

    games = resolve_schedule(url, season_year, settings=settings, empty_message=empty_message)
    if args.format == "json":
        print(json.dumps([game.to_dict() for game in games], sort_keys=True, indent=2))
    else:
        for game in games:
            print(_format_game(game))
    return 0


def _cmd_rank(args: argparse.Namespace) -> int:
    settings = Settings()
    season_year, week_url = _week_selection(args, settings)
    if week_url is not None:
        ranked = rank_current_odds(week_url, season_year=season_year, settings=settings)
    else:
        ranked = rank_current_odds(settings.site_scoreboard_url, settings=settings)

    if args.format == "json":
        print(json.dumps([event.to_dict() for event in ranked], sort_keys=True, indent=2))
    elif not ranked:
        print("no rankable games")
    else:
        for event in ranked:
            print(_format_ranked(event))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="espn-slate")
    parser.add_argument(
        "--log-level",
        default="",
        help="Logging level (default from ESPN_SLATE_LOG_LEVEL, else INFO).",
    )
    subparsers = parser.add_subparsers(dest="command")

    schedule = subparsers.add_parser("schedule", help="Resolve games with scores, records, odds")
    schedule.set_defaults(func=_cmd_schedule)
    schedule.add_argument("--year", type=int, default=None)
    schedule.add_argument("--week", type=int, default=None)
    schedule.add_argument("--format", choices=("text", "json"), default="text")

    rank = subparsers.add_parser("rank", help="Rank moneyline favorites by confidence")
    rank.set_defaults(func=_cmd_rank)
    rank.add_argument("--year", type=int, default=None)
    rank.add_argument("--week", type=int, default=None)
    rank.add_argument("--format", choices=("text", "json"), default="text")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        configure_logging(args.log_level or Settings().log_level)
        return int(func(args))
    except (ResolutionError, ValueError) as exc:
        print(f"Failed to retrieve valid game data. Reason: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
