"""
Threshold profiles for the arbitrage grouper and the MEV classifier.

``permissive`` surfaces anything plausibly extractive; ``strict`` is meant
for high-confidence-only reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ThresholdProfile:
    name: str

    # Arbitrage grouping: what "all criteria met" means
    perfect_min_transactions: int
    perfect_min_venues: int
    perfect_min_round_trip_tokens: int
    round_trip_min_legs: int
    perfect_score: int
    high_score: int
    medium_score: int

    # Positional MEV heuristics
    sandwich_confidence: int
    frontrun_confidence: int
    backrun_confidence: int
    max_index_gap: Optional[int]      # None disables the proximity gate
    require_repeat_actor: bool

    # Arbitrage reported as MEV
    mev_arbitrage_min_transactions: int
    mev_arbitrage_min_venues: int
    arbitrage_confidence: int

    known_bot_confidence: int = 90


PERMISSIVE = ThresholdProfile(
    name="permissive",
    perfect_min_transactions=3,
    perfect_min_venues=2,
    perfect_min_round_trip_tokens=1,
    round_trip_min_legs=1,
    perfect_score=90,
    high_score=75,
    medium_score=50,
    sandwich_confidence=95,
    frontrun_confidence=90,
    backrun_confidence=90,
    max_index_gap=None,
    require_repeat_actor=False,
    mev_arbitrage_min_transactions=3,
    mev_arbitrage_min_venues=3,
    arbitrage_confidence=80,
)

STRICT = ThresholdProfile(
    name="strict",
    perfect_min_transactions=4,
    perfect_min_venues=3,
    perfect_min_round_trip_tokens=2,
    round_trip_min_legs=2,
    perfect_score=95,
    high_score=70,
    medium_score=40,
    sandwich_confidence=97,
    frontrun_confidence=92,
    backrun_confidence=94,
    max_index_gap=2,
    require_repeat_actor=True,
    mev_arbitrage_min_transactions=3,
    mev_arbitrage_min_venues=3,
    arbitrage_confidence=85,
)

PROFILES: dict[str, ThresholdProfile] = {p.name: p for p in (PERMISSIVE, STRICT)}


def get_profile(name: str) -> ThresholdProfile:
    try:
        return PROFILES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown threshold profile '{name}'. Choose one of: {', '.join(PROFILES)}"
        ) from None
