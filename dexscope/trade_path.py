"""
Trade path reconstructor – stitches instruction-level mint hops into a route.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from dexscope.constants import SHORT_ID_LENGTH, TOKEN_SYMBOLS
from dexscope.models import Instruction, TradeHop, TradePath, Transaction
from dexscope.registry import VenueRegistry

logger = logging.getLogger(__name__)


class TradePathReconstructor:
    """Walks outer and inner instructions and attributes mint hops to venues."""

    def __init__(self, registry: VenueRegistry, token_symbols: Mapping[str, str] = TOKEN_SYMBOLS):
        self.registry = registry
        self.token_symbols = token_symbols

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconstruct(self, tx: Transaction) -> TradePath:
        """Return hops in instruction order, the touched venues and the rendered path."""
        mint_by_account = self._mint_by_account(tx)
        hops: list[TradeHop] = []
        venues: dict[str, None] = {}

        for ix in self._all_instructions(tx):
            program_id = tx.program_id(ix)
            if program_id is None:
                logger.debug(
                    "%s: instruction targets out-of-range program index %d",
                    tx.signature, ix.program_id_index,
                )
                continue
            if self.registry.is_infrastructure(program_id):
                continue

            venue = self.registry.resolve(program_id)
            venues[venue] = None

            if len(ix.accounts) < 2:
                continue
            mints = list(dict.fromkeys(
                mint_by_account[idx] for idx in ix.accounts if idx in mint_by_account
            ))
            if len(mints) >= 2:
                hops.append(TradeHop(from_mint=mints[0], to_mint=mints[-1], venue=venue))

        return TradePath(
            hops=tuple(hops),
            venues=tuple(venues),
            path=self.render(hops) if hops else None,
            continuous=self._is_continuous(hops),
        )

    def render(self, hops: Iterable[TradeHop]) -> str:
        """Render hops as ``A → B on V, → C on W`` with ``(X)`` marking a discontinuity."""
        parts: list[str] = []
        previous: TradeHop | None = None
        for hop in hops:
            target = f"{self._symbol(hop.to_mint)} on {hop.venue}"
            if previous is None:
                parts.append(f"{self._symbol(hop.from_mint)} → {target}")
            elif hop.from_mint != previous.to_mint:
                parts.append(f"({self._symbol(hop.from_mint)}) → {target}")
            else:
                parts.append(f"→ {target}")
            previous = hop
        return ", ".join(parts)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _symbol(self, mint: str) -> str:
        return self.token_symbols.get(mint) or mint[:SHORT_ID_LENGTH]

    @staticmethod
    def _all_instructions(tx: Transaction) -> Iterable[Instruction]:
        yield from tx.instructions
        for group in tx.inner_instructions:
            yield from group.instructions

    @staticmethod
    def _mint_by_account(tx: Transaction) -> dict[int, str]:
        """Account index → mint, preferring the pre-balance entry."""
        mints: dict[int, str] = {}
        for bal in (tx.post_token_balances or ()):
            mints[bal.account_index] = bal.mint
        for bal in (tx.pre_token_balances or ()):
            mints[bal.account_index] = bal.mint
        return mints

    @staticmethod
    def _is_continuous(hops: list[TradeHop]) -> bool:
        return all(hops[i].from_mint == hops[i - 1].to_mint for i in range(1, len(hops)))
