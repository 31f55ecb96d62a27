"""
MEV classifier – positional heuristics over a block's ordered swap records.

Every heuristic looks only at a record's immediate neighbours, so the input
order (slot, in-block transaction index) must be known.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional, Sequence

from dexscope.arbitrage_grouper import ArbitrageGrouper
from dexscope.constants import KNOWN_MEV_BOTS
from dexscope.errors import OrderingError
from dexscope.models import ArbitrageOpportunity, MEVFinding, MevType, SwapRecord
from dexscope.profiles import PERMISSIVE, ThresholdProfile

_DESCRIPTIONS = {
    MevType.KNOWN_BOT: "Transaction from known MEV bot address",
    MevType.ARBITRAGE: "Arbitrage - profiting from price differences across markets",
    MevType.SANDWICH: "Sandwich attack - manipulating price around user transaction",
    MevType.FRONTRUN: "Front-running - copying user trade with higher priority",
    MevType.BACKRUN: "Back-running - following user trade to extract arbitrage",
    MevType.MULTIPLE: "Multiple MEV strategies detected",
}


def describe_mev_type(mev_type: MevType | str) -> str:
    try:
        return _DESCRIPTIONS[MevType(mev_type)]
    except ValueError:
        return "Unknown MEV type"


class MEVClassifier:
    """Annotates swap records with sandwich, front-run, back-run and arbitrage findings."""

    PRECISE_DECIMALS = 6       # more fractional digits than this looks computed
    COMPLEX_SWAP_LEGS = 4      # gains + losses above this is a complex multi-swap
    MULTI_DEX_PLATFORMS = 2

    def __init__(
        self,
        profile: ThresholdProfile = PERMISSIVE,
        known_bots: Iterable[str] = KNOWN_MEV_BOTS,
    ):
        self.profile = profile
        self.known_bots = frozenset(known_bots)

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def classify(self, records: Iterable[SwapRecord]) -> list[SwapRecord]:
        """
        Return the detected swaps ordered by (slot, tx_index), each annotated
        with zero or one MEVFinding.

        Raises OrderingError when a record has no tx_index or two records
        claim the same position.
        """
        ordered = self.order(records)
        wallet_counts = Counter(r.initiator_wallet for r in ordered if r.initiator_wallet)
        arbitrageurs = self._arbitrage_wallets(ordered)
        return [
            r.with_mev(self._classify_at(i, ordered, wallet_counts, arbitrageurs))
            for i, r in enumerate(ordered)
        ]

    @staticmethod
    def order(records: Iterable[SwapRecord]) -> list[SwapRecord]:
        swaps = [r for r in records if r.swap_detected]
        missing = [r.signature for r in swaps if r.tx_index is None]
        if missing:
            raise OrderingError(
                f"{len(missing)} record(s) have no transaction index (e.g. {missing[0]})"
            )
        positions = Counter((r.slot, r.tx_index) for r in swaps)
        duplicates = [pos for pos, n in positions.items() if n > 1]
        if duplicates:
            raise OrderingError(f"Duplicate transaction positions: {duplicates[:3]}")
        return sorted(swaps, key=lambda r: (r.slot if r.slot is not None else -1, r.tx_index))

    # ---------------------------------------------------------------------------
    # Per-record classification
    # ---------------------------------------------------------------------------

    def _classify_at(
        self,
        i: int,
        ordered: Sequence[SwapRecord],
        wallet_counts: Counter,
        arbitrageurs: dict[str, ArbitrageOpportunity],
    ) -> Optional[MEVFinding]:
        target = ordered[i]
        before = self._neighbour(ordered, i, -1)
        after = self._neighbour(ordered, i, +1)

        # (type, confidence, details, bot address) per matched pattern
        matches: list[tuple[MevType, int, dict, Optional[str]]] = []

        if target.initiator_wallet in self.known_bots:
            matches.append((
                MevType.KNOWN_BOT,
                self.profile.known_bot_confidence,
                {"reason": "Known MEV bot address"},
                target.initiator_wallet,
            ))

        sandwich = self._check_sandwich(target, before, after)
        attacker = None
        if sandwich:
            attacker = sandwich["bot_address"]
            matches.append((MevType.SANDWICH, self.profile.sandwich_confidence, sandwich, attacker))

        # A sandwich's own legs are not separate front/back-runs.
        if before is not None and before.initiator_wallet != attacker:
            frontrun = self._check_frontrun(target, before, wallet_counts)
            if frontrun:
                matches.append((
                    MevType.FRONTRUN, self.profile.frontrun_confidence, frontrun, frontrun["bot_address"],
                ))
        if after is not None and after.initiator_wallet != attacker:
            backrun = self._check_backrun(target, after, wallet_counts)
            if backrun:
                matches.append((
                    MevType.BACKRUN, self.profile.backrun_confidence, backrun, backrun["bot_address"],
                ))

        opportunity = arbitrageurs.get(target.initiator_wallet or "")
        if opportunity is not None:
            matches.append((
                MevType.ARBITRAGE,
                self.profile.arbitrage_confidence,
                {
                    "reason": "Repeated round-trip trading across venues",
                    "transaction_count": opportunity.transaction_count,
                    "platforms": sorted(opportunity.platforms_used),
                    "round_trip_mints": [t.mint for t in opportunity.round_trip_tokens],
                },
                opportunity.sender,
            ))

        if not matches:
            return None

        patterns = tuple(m[0] for m in matches)
        if patterns[0] == MevType.KNOWN_BOT:
            mev_type = MevType.KNOWN_BOT
        elif len(patterns) == 1:
            mev_type = patterns[0]
        else:
            mev_type = MevType.MULTIPLE

        details = {m[0].value: m[2] for m in matches}
        suspicious = self._suspicious_patterns(target)
        if suspicious:
            details["suspicious"] = suspicious

        return MEVFinding(
            signature=target.signature,
            mev_type=mev_type,
            confidence=max(m[1] for m in matches),
            details=details,
            bot_address=matches[0][3],
            patterns=patterns,
        )

    def _neighbour(self, ordered: Sequence[SwapRecord], i: int, offset: int) -> Optional[SwapRecord]:
        j = i + offset
        if j < 0 or j >= len(ordered):
            return None
        target, other = ordered[i], ordered[j]
        if other.slot != target.slot:
            return None
        gap = self.profile.max_index_gap
        if gap is not None and abs(other.tx_index - target.tx_index) > gap:
            return None
        return other

    # ---------------------------------------------------------------------------
    # Heuristics
    # ---------------------------------------------------------------------------

    @staticmethod
    def _check_sandwich(
        target: SwapRecord, before: Optional[SwapRecord], after: Optional[SwapRecord]
    ) -> Optional[dict]:
        """
        Same wallet W immediately before and after the target, W not the target's wallet:
        - target and W's front leg acquire the same mint
        - W's back leg disposes of what the target acquired
        - target and W's front leg are funded with the same mint
        """
        if before is None or after is None:
            return None
        bot = before.initiator_wallet
        if not bot or bot != after.initiator_wallet or bot == target.initiator_wallet:
            return None

        acquired = target.out_mints & before.out_mints
        disposed = target.out_mints & after.in_mints
        funded = target.in_mints & before.in_mints
        if not (acquired and disposed and funded):
            return None

        return {
            "reason": "Sandwich attack pattern detected",
            "bot_address": bot,
            "victim_address": target.initiator_wallet,
            "front_signature": before.signature,
            "back_signature": after.signature,
            "token_pair": {"in": sorted(funded), "out": sorted(acquired)},
        }

    def _check_frontrun(
        self, target: SwapRecord, before: SwapRecord, wallet_counts: Counter
    ) -> Optional[dict]:
        """The previous transaction replicates (or contains) the target's trade."""
        bot = before.initiator_wallet
        if not bot or bot == target.initiator_wallet:
            return None
        if not (before.in_mints >= target.in_mints and before.out_mints >= target.out_mints):
            return None
        repeat_actor = wallet_counts[bot] >= 2
        if self.profile.require_repeat_actor and not repeat_actor:
            return None
        return {
            "reason": "Front-running detected - same trade executed first",
            "bot_address": bot,
            "victim_address": target.initiator_wallet,
            "front_signature": before.signature,
            "repeat_actor": repeat_actor,
        }

    def _check_backrun(
        self, target: SwapRecord, after: SwapRecord, wallet_counts: Counter
    ) -> Optional[dict]:
        """The next transaction reverses the target's trade."""
        bot = after.initiator_wallet
        if not bot or bot == target.initiator_wallet:
            return None
        if not (after.in_mints >= target.out_mints and after.out_mints >= target.in_mints):
            return None
        repeat_actor = wallet_counts[bot] >= 2
        multi_venue = len(after.platforms) > 1
        if self.profile.require_repeat_actor and not (repeat_actor or multi_venue):
            return None
        return {
            "reason": "Back-running detected - arbitrage after user trade",
            "bot_address": bot,
            "triggered_by": target.initiator_wallet,
            "back_signature": after.signature,
            "repeat_actor": repeat_actor,
            "multi_venue": multi_venue,
        }

    def _arbitrage_wallets(self, ordered: Sequence[SwapRecord]) -> dict[str, ArbitrageOpportunity]:
        p = self.profile
        return {
            o.sender: o
            for o in ArbitrageGrouper(p).group(ordered)
            if o.transaction_count >= p.mev_arbitrage_min_transactions
            and len(o.platforms_used) >= p.mev_arbitrage_min_venues
            and o.has_round_trip_trading
        }

    def _suspicious_patterns(self, record: SwapRecord) -> list[str]:
        patterns: list[str] = []
        if len(record.tokens_in) + len(record.tokens_out) > self.COMPLEX_SWAP_LEGS:
            patterns.append("complex_multi_swap")
        if len(record.platforms) > self.MULTI_DEX_PLATFORMS:
            patterns.append("multiple_dex_usage")
        amounts = [t.amount for t in (*record.tokens_in, *record.tokens_out)]
        if any(len(repr(a).partition(".")[2]) > self.PRECISE_DECIMALS for a in amounts):
            patterns.append("precise_amounts")
        return patterns
