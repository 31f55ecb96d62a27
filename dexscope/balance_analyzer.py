"""
Balance delta analyzer – infers swaps from pre/post token balance snapshots.
"""

from __future__ import annotations

from collections import defaultdict

from dexscope.constants import DUST_THRESHOLD, USDC_MINT
from dexscope.models import MintAmount, SwapCandidate, TokenDelta, Transaction


class BalanceDeltaAnalyzer:
    """Turns token balance snapshots into per-owner gains and losses."""

    def __init__(self, dust_threshold: float = DUST_THRESHOLD):
        self.dust_threshold = dust_threshold

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def compute_deltas(self, tx: Transaction) -> list[TokenDelta]:
        """
        Return one delta per (account index, mint) pair, in balance order.

        Pre-balances seed the map with ``post=0``; post-balances overlay it.
        A post-balance without a pre-balance is a newly created account and is
        recorded with ``pre=0``.
        """
        if tx.pre_token_balances is None or tx.post_token_balances is None:
            return []

        entries: dict[tuple[int, str], dict] = {}
        for bal in tx.pre_token_balances:
            entries[(bal.account_index, bal.mint)] = {
                "account_index": bal.account_index,
                "mint": bal.mint,
                "owner": bal.owner,
                "pre": bal.ui_amount,
                "post": 0.0,
            }
        for bal in tx.post_token_balances:
            key = (bal.account_index, bal.mint)
            if key in entries:
                entries[key]["post"] = bal.ui_amount
            else:
                entries[key] = {
                    "account_index": bal.account_index,
                    "mint": bal.mint,
                    "owner": bal.owner,
                    "pre": 0.0,
                    "post": bal.ui_amount,
                }

        return [TokenDelta(change=e["post"] - e["pre"], **e) for e in entries.values()]

    def find_swap(self, tx: Transaction) -> SwapCandidate | None:
        """
        Return the first owner (in balance order) whose non-dust deltas form a swap.

        Only one swap is reported per transaction even if several owners qualify.
        Returns None when either snapshot is absent.
        """
        if tx.pre_token_balances is None or tx.post_token_balances is None:
            return None

        for owner, changes in self._group_by_owner(self.compute_deltas(tx)).items():
            candidate = self._candidate(owner, changes)
            if candidate is not None:
                return candidate
        return None

    def estimate_pnl(self, tx: Transaction, owner: str | None, quote_mint: str = USDC_MINT) -> float | None:
        """
        Owner's net change in ``quote_mint`` (rounded to 6 decimals), or None
        when the quote mint does not move for that owner.
        """
        changes = [
            d.change
            for d in self.compute_deltas(tx)
            if d.mint == quote_mint and d.owner == owner and not self._is_dust(d.change)
        ]
        if not changes:
            return None
        return round(sum(changes), 6)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _is_dust(self, change: float) -> bool:
        return abs(change) < self.dust_threshold

    def _group_by_owner(self, deltas: list[TokenDelta]) -> dict[str | None, list[TokenDelta]]:
        groups: dict[str | None, list[TokenDelta]] = defaultdict(list)
        for delta in deltas:
            if not self._is_dust(delta.change):
                groups[delta.owner].append(delta)
        return dict(groups)

    @staticmethod
    def _candidate(owner: str | None, changes: list[TokenDelta]) -> SwapCandidate | None:
        if len(changes) < 2:
            return None

        unique_mints = {c.mint for c in changes}
        gains = [c for c in changes if c.change > 0]
        losses = [c for c in changes if c.change < 0]
        if not gains or not losses or len(unique_mints) < 2:
            return None

        gain_mints = {g.mint for g in gains}
        loss_mints = {l.mint for l in losses}
        # Gaining only what was also lost is same-mint shuffling, not a swap.
        if gain_mints <= loss_mints:
            return None

        return SwapCandidate(
            owner=owner,
            tokens_in=tuple(MintAmount(l.mint, abs(l.change)) for l in losses),
            tokens_out=tuple(MintAmount(g.mint, g.change) for g in gains),
            classic=gain_mints.isdisjoint(loss_mints),
            unique_mints=len(unique_mints),
        )
