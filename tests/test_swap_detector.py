"""
Unit tests for SwapDetector.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from dexscope.constants import SPL_TOKEN_PROGRAM_ID
from dexscope.errors import MalformedInstructionError
from dexscope.models import Balance, InnerInstructionGroup, Instruction, SwapConfidence
from dexscope.registry import VenueRegistry
from dexscope.swap_detector import SwapDetector, instruction_opcode

from factories import (
    COMPUTE_BUDGET,
    MEMO,
    ORCA,
    RAYDIUM,
    SOL,
    UNKNOWN_PROGRAM,
    USDC,
    make_swap_tx,
    make_tx,
)


@pytest.fixture()
def detector() -> SwapDetector:
    return SwapDetector(VenueRegistry.default())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _venue_with_inner_transfer(data: str | None = "4", parsed: dict | None = None, outer: str = RAYDIUM):
    """Outer venue instruction that CPIs an SPL token instruction."""
    return make_tx(
        account_keys=("wallet", "ataUsdc", "ataSol", outer, SPL_TOKEN_PROGRAM_ID),
        instructions=(Instruction(3, (0, 1, 2)),),
        inner=(InnerInstructionGroup(0, (Instruction(4, (1, 2), data=data, parsed=parsed),)),),
        pre=(Balance(1, USDC, "wallet", 10.0), Balance(2, SOL, "wallet", 0.0)),
        post=(Balance(1, USDC, "wallet", 0.0), Balance(2, SOL, "wallet", 1.0)),
    )


# ---------------------------------------------------------------------------
# Opcodes
# ---------------------------------------------------------------------------

class TestInstructionOpcode:
    @pytest.mark.parametrize(
        "data, encoding, expected",
        [("4", "base58", 3), ("D", "base58", 12), ("8", "base58", 7), ("Aw==", "base64", 3)],
    )
    def test_decodes_first_byte(self, data, encoding, expected):
        assert instruction_opcode(Instruction(0, data=data, data_encoding=encoding)) == expected

    def test_no_data(self):
        assert instruction_opcode(Instruction(0)) is None

    @pytest.mark.parametrize("data, encoding", [("0OIl", "base58"), ("not*base64", "base64")])
    def test_undecodable_data_raises(self, data, encoding):
        with pytest.raises(MalformedInstructionError):
            instruction_opcode(Instruction(0, data=data, data_encoding=encoding))


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestDetect:
    def test_definite_swap_on_registered_venue(self, detector):
        record = detector.detect(make_swap_tx("s1", "walletA", program=RAYDIUM, tx_index=4))
        assert record is not None
        assert record.swap_detected
        assert record.confidence_class == SwapConfidence.DEFINITE
        assert record.initiator_wallet == "walletA"
        assert record.platforms == ("Raydium AMM V4",)
        assert record.trade_path == "USDC → SOL on Raydium AMM V4"
        assert record.matched_program_ids == (RAYDIUM,)
        assert record.unknown_programs == ()
        assert record.tx_index == 4
        assert record.success
        assert record.pnl == pytest.approx(-10.0)

    def test_probable_swap_on_unregistered_program(self, detector):
        record = detector.detect(make_swap_tx("s1", "walletA", program=UNKNOWN_PROGRAM))
        assert record.confidence_class == SwapConfidence.PROBABLE
        assert record.swap_detected
        assert record.unknown_programs == (UNKNOWN_PROGRAM,)
        assert record.platforms == ("Unkn0w",)

    def test_no_balance_candidate_means_no_record(self, detector):
        tx = make_tx(account_keys=("w", RAYDIUM), instructions=(Instruction(1),))
        assert detector.detect(tx) is None

    def test_absent_balances_means_no_record(self, detector):
        tx = replace(make_swap_tx("s1", "walletA"), pre_token_balances=None)
        assert detector.detect(tx) is None

    def test_infrastructure_only_is_never_definite(self, detector):
        """Compute budget and memo programs are not swap evidence."""
        tx = make_swap_tx("s1", "walletA", program=COMPUTE_BUDGET, extra_programs=(MEMO,))
        record = detector.detect(tx)
        assert record.confidence_class == SwapConfidence.PROBABLE
        assert record.platforms == ()
        assert record.unknown_programs == ()
        assert record.trade_path is None

    def test_infrastructure_plus_venue_is_definite(self, detector):
        tx = make_swap_tx("s1", "walletA", program=RAYDIUM, extra_programs=(COMPUTE_BUDGET, MEMO))
        record = detector.detect(tx)
        assert record.confidence_class == SwapConfidence.DEFINITE
        assert record.platforms == ("Raydium AMM V4",)

    def test_initiator_is_fee_payer_not_balance_owner(self, detector):
        tx = make_tx(
            account_keys=("relayer", "ata1", "ata2", ORCA),
            instructions=(Instruction(3, (1, 2)),),
            pre=(Balance(1, USDC, "user", 5.0), Balance(2, SOL, "user", 0.0)),
            post=(Balance(1, USDC, "user", 0.0), Balance(2, SOL, "user", 0.1)),
        )
        record = detector.detect(tx)
        assert record.initiator_wallet == "relayer"
        assert record.owner == "user"

    def test_failed_transaction_is_flagged(self, detector):
        tx = replace(make_swap_tx("s1", "walletA"), err={"InstructionError": [0, "Custom"]})
        assert detector.detect(tx).success is False

    def test_discovered_venue_upgrades_to_definite(self):
        tx = make_swap_tx("s1", "walletA", program=UNKNOWN_PROGRAM)
        registry = VenueRegistry.default().with_venues({UNKNOWN_PROGRAM: "Custom AMM"})
        record = SwapDetector(registry).detect(tx)
        assert record.confidence_class == SwapConfidence.DEFINITE
        assert record.trade_path == "USDC → SOL on Custom AMM"


# ---------------------------------------------------------------------------
# Token operations
# ---------------------------------------------------------------------------

class TestRelevantTokenOp:
    def test_transfer_opcode_under_venue(self, detector):
        tx = _venue_with_inner_transfer(data="4")
        assert detector.has_relevant_token_op(tx)
        assert detector.detect(tx).has_relevant_token_op

    def test_transfer_checked_opcode_under_venue(self, detector):
        assert detector.has_relevant_token_op(_venue_with_inner_transfer(data="D"))

    def test_parsed_transfer_under_venue(self, detector):
        tx = _venue_with_inner_transfer(data=None, parsed={"type": "transferChecked", "info": {}})
        assert detector.has_relevant_token_op(tx)

    def test_other_token_opcode_is_not_relevant(self, detector):
        assert not detector.has_relevant_token_op(_venue_with_inner_transfer(data="8"))

    def test_transfer_under_unregistered_program_is_not_relevant(self, detector):
        assert not detector.has_relevant_token_op(_venue_with_inner_transfer(data="4", outer=UNKNOWN_PROGRAM))

    def test_malformed_data_is_ignored(self, detector):
        tx = _venue_with_inner_transfer(data="0OIl")
        assert not detector.has_relevant_token_op(tx)
        assert detector.detect(tx).confidence_class == SwapConfidence.DEFINITE

    def test_parsed_swap_on_venue_instruction(self, detector):
        tx = make_tx(
            account_keys=("wallet", RAYDIUM),
            instructions=(Instruction(1, parsed={"type": "swap", "info": {}}),),
        )
        assert detector.has_relevant_token_op(tx)
