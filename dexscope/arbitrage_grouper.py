"""
Arbitrage grouper – groups swaps by initiating wallet and scores arbitrage likelihood.

Criteria:
1. Same wallet across multiple transactions in the batch
2. Multiple venues used across those transactions
3. Round-trip trading: the wallet both buys and sells the same mint
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from dexscope.models import ArbitrageConfidence, ArbitrageOpportunity, RoundTripToken, SwapRecord
from dexscope.profiles import PERMISSIVE, ThresholdProfile

_CONFIDENCE_RANK = {
    ArbitrageConfidence.PERFECT: 0,
    ArbitrageConfidence.HIGH: 1,
    ArbitrageConfidence.MEDIUM: 2,
}


def group_by_sender(records: Iterable[SwapRecord]) -> dict[str, tuple[SwapRecord, ...]]:
    """Detected swaps keyed by initiator wallet, in order of first appearance."""
    swaps = [r for r in records if r.swap_detected and r.initiator_wallet]
    senders = dict.fromkeys(r.initiator_wallet for r in swaps)
    return {s: tuple(r for r in swaps if r.initiator_wallet == s) for s in senders}


def round_trip_tokens(records: Sequence[SwapRecord]) -> tuple[RoundTripToken, ...]:
    """Mints that were both bought (tokens_out) and sold (tokens_in) across ``records``."""
    buys = Counter(t.mint for r in records for t in r.tokens_out)
    sells = Counter(t.mint for r in records for t in r.tokens_in)
    mints = dict.fromkeys([*buys, *sells])
    return tuple(
        RoundTripToken(mint=m, buy_count=buys[m], sell_count=sells[m])
        for m in mints
        if buys[m] > 0 and sells[m] > 0
    )


class ArbitrageGrouper:
    """Scores per-wallet arbitrage opportunities for one batch of swap records."""

    def __init__(self, profile: ThresholdProfile = PERMISSIVE):
        self.profile = profile

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def group(self, records: Iterable[SwapRecord]) -> list[ArbitrageOpportunity]:
        """
        Return opportunities sorted PERFECT → HIGH → MEDIUM, then by descending
        transaction count. Wallets with fewer than two swaps, or with neither
        multi-venue usage nor round-trip trading, are not reported.
        """
        evaluated = (self.evaluate(sender, txs) for sender, txs in group_by_sender(records).items())
        opportunities = [o for o in evaluated if o is not None]
        return sorted(
            opportunities,
            key=lambda o: (_CONFIDENCE_RANK[o.confidence], -o.transaction_count),
        )

    def evaluate(self, sender: str, records: Sequence[SwapRecord]) -> ArbitrageOpportunity | None:
        if len(records) < 2:
            return None

        platforms = frozenset(p for r in records for p in r.platforms)
        used_multiple_dexes = len(platforms) > 1
        round_trips = round_trip_tokens(records)

        if not used_multiple_dexes and not round_trips:
            return None

        all_met = self._all_criteria_met(len(records), platforms, round_trips)
        if all_met:
            confidence, score = ArbitrageConfidence.PERFECT, self.profile.perfect_score
        elif used_multiple_dexes:
            confidence, score = ArbitrageConfidence.HIGH, self.profile.high_score
        else:
            confidence, score = ArbitrageConfidence.MEDIUM, self.profile.medium_score

        return ArbitrageOpportunity(
            sender=sender,
            transaction_count=len(records),
            platforms_used=platforms,
            round_trip_tokens=round_trips,
            confidence=confidence,
            score=score,
            all_criteria_met=all_met,
            signatures=tuple(r.signature for r in records),
        )

    @staticmethod
    def summarize(opportunities: Sequence[ArbitrageOpportunity]) -> dict:
        return {
            "total_arbitrage_opportunities": len(opportunities),
            "all_criteria_met": any(o.all_criteria_met for o in opportunities),
            "unique_arbitragers": len({o.sender for o in opportunities}),
            "perfect_arbitrage_count": sum(1 for o in opportunities if o.all_criteria_met),
            "high_confidence_count": sum(
                1 for o in opportunities if o.confidence == ArbitrageConfidence.HIGH
            ),
            "multi_dex_usage_count": sum(1 for o in opportunities if o.used_multiple_dexes),
            "round_trip_trading_count": sum(1 for o in opportunities if o.has_round_trip_trading),
        }

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _all_criteria_met(
        self,
        transaction_count: int,
        platforms: frozenset[str],
        round_trips: tuple[RoundTripToken, ...],
    ) -> bool:
        p = self.profile
        qualifying = [
            t for t in round_trips
            if t.buy_count >= p.round_trip_min_legs and t.sell_count >= p.round_trip_min_legs
        ]
        return (
            transaction_count >= p.perfect_min_transactions
            and len(platforms) >= p.perfect_min_venues
            and len(qualifying) >= p.perfect_min_round_trip_tokens
        )


def detect_arbitrage(
    records: Iterable[SwapRecord], profile: ThresholdProfile = PERMISSIVE
) -> list[ArbitrageOpportunity]:
    """Pure-function form of ``ArbitrageGrouper(profile).group(records)``."""
    return ArbitrageGrouper(profile).group(records)
