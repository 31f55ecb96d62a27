"""
Swap detector – combines balance inference with program evidence into a SwapRecord.
"""

from __future__ import annotations

import base64
import binascii
import logging

import base58

from dexscope.balance_analyzer import BalanceDeltaAnalyzer
from dexscope.constants import TOKEN_PROGRAM_IDS, TRANSFER_OPCODES, USDC_MINT
from dexscope.errors import MalformedInstructionError
from dexscope.models import Instruction, SwapConfidence, SwapRecord, Transaction
from dexscope.registry import VenueRegistry
from dexscope.trade_path import TradePathReconstructor

logger = logging.getLogger(__name__)

_SWAP_LIKE_PARSED_TYPES = frozenset({"swap", "exchange", "transfer"})


def instruction_opcode(ix: Instruction) -> int | None:
    """
    First byte of the instruction data, or None when there is no data.

    Raises MalformedInstructionError when the data cannot be decoded.
    """
    if not ix.data:
        return None
    try:
        if ix.data_encoding == "base64":
            raw = base64.b64decode(ix.data, validate=True)
        else:
            raw = base58.b58decode(ix.data)
    except (ValueError, binascii.Error) as exc:
        raise MalformedInstructionError(f"Undecodable {ix.data_encoding} instruction data") from exc
    return raw[0] if raw else None


class SwapDetector:
    """Produces one normalized SwapRecord per transaction that behaves like a swap."""

    def __init__(
        self,
        registry: VenueRegistry,
        balance_analyzer: BalanceDeltaAnalyzer | None = None,
        path_reconstructor: TradePathReconstructor | None = None,
        quote_mint: str = USDC_MINT,
    ):
        self.registry = registry
        self.balance_analyzer = balance_analyzer or BalanceDeltaAnalyzer()
        self.path_reconstructor = path_reconstructor or TradePathReconstructor(registry)
        self.quote_mint = quote_mint

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, tx: Transaction) -> SwapRecord | None:
        """
        Return a SwapRecord when the balance deltas show a swap, else None.

        Definite: a balance candidate plus a registered venue among the touched
        programs or a relevant token operation. Probable: a balance candidate
        without that corroboration.
        """
        candidate = self.balance_analyzer.find_swap(tx)
        if candidate is None:
            return None

        program_ids = self._touched_program_ids(tx)
        matched = tuple(pid for pid in program_ids if self.registry.is_venue(pid))
        known_venue = bool(matched)
        token_op = self.has_relevant_token_op(tx)

        definite = known_venue or token_op
        path = self.path_reconstructor.reconstruct(tx)

        return SwapRecord(
            signature=tx.signature,
            slot=tx.slot,
            tx_index=tx.tx_index,
            block_time=tx.block_time,
            initiator_wallet=tx.fee_payer or candidate.owner,
            owner=candidate.owner,
            tokens_in=candidate.tokens_in,
            tokens_out=candidate.tokens_out,
            platforms=path.venues,
            trade_path=path.path,
            swap_detected=True,
            confidence_class=SwapConfidence.DEFINITE if definite else SwapConfidence.PROBABLE,
            matched_program_ids=matched,
            unknown_programs=() if known_venue else tuple(program_ids),
            has_relevant_token_op=token_op,
            classic=candidate.classic,
            fee=tx.fee,
            compute_units=tx.compute_units,
            success=tx.err is None,
            pnl=self.balance_analyzer.estimate_pnl(tx, candidate.owner, self.quote_mint),
        )

    def has_relevant_token_op(self, tx: Transaction) -> bool:
        """
        True when a token transfer/transferChecked runs under a registered venue,
        or a registered venue instruction is parsed as a swap-like operation.
        """
        for ix in tx.instructions:
            if self._is_swap_like_venue_ix(tx, ix):
                return True

        for group in tx.inner_instructions:
            outer_pid = None
            if 0 <= group.index < len(tx.instructions):
                outer_pid = tx.program_id(tx.instructions[group.index])
            invoked_by_venue = outer_pid is not None and self.registry.is_venue(outer_pid)

            for ix in group.instructions:
                if self._is_swap_like_venue_ix(tx, ix):
                    return True
                if invoked_by_venue and self._is_token_transfer(tx, ix):
                    return True
        return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _touched_program_ids(self, tx: Transaction) -> list[str]:
        """Distinct non-infrastructure program ids across outer and inner instructions."""
        seen: dict[str, None] = {}
        instructions = list(tx.instructions)
        for group in tx.inner_instructions:
            instructions.extend(group.instructions)
        for ix in instructions:
            pid = tx.program_id(ix)
            if pid is not None and not self.registry.is_infrastructure(pid):
                seen[pid] = None
        return list(seen)

    def _is_swap_like_venue_ix(self, tx: Transaction, ix: Instruction) -> bool:
        pid = tx.program_id(ix)
        if pid is None or not self.registry.is_venue(pid) or not ix.parsed:
            return False
        parsed_type = str(ix.parsed.get("type") or "").lower()
        return parsed_type in _SWAP_LIKE_PARSED_TYPES

    @staticmethod
    def _is_token_transfer(tx: Transaction, ix: Instruction) -> bool:
        if tx.program_id(ix) not in TOKEN_PROGRAM_IDS:
            return False
        if ix.parsed:
            return str(ix.parsed.get("type") or "") in ("transfer", "transferChecked")
        try:
            return instruction_opcode(ix) in TRANSFER_OPCODES
        except MalformedInstructionError as exc:
            logger.debug("%s: ignoring token instruction: %s", tx.signature, exc)
            return False
