"""Resolve ESPN's reference-based schedule API into denormalized games."""

from espn_slate.errors import (
    EmptyResult,
    ExhaustedRetries,
    HttpError,
    ResolutionError,
    StructuralError,
    TransportError,
)
from espn_slate.normalize import Game, GameSide, normalize_games
from espn_slate.ranking import RankedEvent, extract_winner, rank_events
from espn_slate.service import rank_current_odds, resolve_schedule

__all__ = [
    "EmptyResult",
    "ExhaustedRetries",
    "Game",
    "GameSide",
    "HttpError",
    "RankedEvent",
    "ResolutionError",
    "StructuralError",
    "TransportError",
    "extract_winner",
    "normalize_games",
    "rank_current_odds",
    "rank_events",
    "resolve_schedule",
]
