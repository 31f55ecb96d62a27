"""
Unit tests for MEVClassifier.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from dexscope.errors import OrderingError
from dexscope.mev_classifier import MEVClassifier, describe_mev_type
from dexscope.models import MintAmount, MevType
from dexscope.profiles import PERMISSIVE, STRICT

from factories import MINT_X, MINT_Y, SOL, USDC, make_record

MINT_M = MINT_X


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sandwich(attacker: str = "attackerA", victim: str = "victimV", indices=(4, 5, 6)) -> list:
    """Attacker buys M, victim buys M with the same input, attacker sells M."""
    front, target, back = indices
    return [
        make_record("front", attacker, tokens_in=(SOL,), tokens_out=(MINT_M,), tx_index=front),
        make_record("target", victim, tokens_in=(SOL,), tokens_out=(MINT_M,), tx_index=target),
        make_record("back", attacker, tokens_in=(MINT_M,), tokens_out=(SOL,), tx_index=back),
    ]


def _by_signature(records) -> dict:
    return {r.signature: r for r in records}


def _classifier(profile=PERMISSIVE, known_bots=()) -> MEVClassifier:
    return MEVClassifier(profile, known_bots=known_bots)


# ---------------------------------------------------------------------------
# Sandwich
# ---------------------------------------------------------------------------

class TestSandwich:
    def test_flags_victim_with_attacker(self):
        result = _by_signature(_classifier().classify(_sandwich()))
        finding = result["target"].mev
        assert finding.mev_type == MevType.SANDWICH
        assert finding.confidence >= 95
        assert finding.bot_address == "attackerA"
        assert finding.details["sandwich"]["victim_address"] == "victimV"
        assert finding.details["sandwich"]["front_signature"] == "front"
        assert finding.details["sandwich"]["back_signature"] == "back"
        assert result["front"].mev is None
        assert result["back"].mev is None

    def test_strict_confidence(self):
        result = _by_signature(_classifier(STRICT).classify(_sandwich()))
        assert result["target"].mev.confidence == 97

    def test_symmetric_under_wallet_relabeling(self):
        original = _by_signature(_classifier().classify(_sandwich("attackerA", "victimV")))
        relabeled = _by_signature(_classifier().classify(_sandwich("someoneElse", "anotherOne")))
        for sig in ("front", "target", "back"):
            a, b = original[sig].mev, relabeled[sig].mev
            assert (a is None) == (b is None)
            if a is not None:
                assert (a.mev_type, a.confidence) == (b.mev_type, b.confidence)
        assert relabeled["target"].mev.bot_address == "someoneElse"

    def test_order_sensitive(self):
        """Swapping the flanking legs' positions removes the sandwich."""
        result = _by_signature(_classifier().classify(_sandwich(indices=(6, 5, 4))))
        assert result["target"].mev is None

    def test_same_wallet_on_all_three_is_not_a_sandwich(self):
        records = _sandwich(attacker="same", victim="same")
        assert all(r.mev is None for r in _classifier().classify(records))

    def test_flanks_in_another_slot_are_not_neighbours(self):
        front, target, back = _sandwich()
        records = [replace(front, slot=99), target, replace(back, slot=101)]
        result = _by_signature(_classifier().classify(records))
        assert result["target"].mev is None


# ---------------------------------------------------------------------------
# Front-run / back-run
# ---------------------------------------------------------------------------

class TestFrontrun:
    def _records(self, gap: int = 1, repeat: bool = False):
        records = [
            make_record("bot-tx", "botB", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=0),
            make_record("user-tx", "userU", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=gap),
        ]
        if repeat:
            records.append(make_record("bot-other", "botB", tokens_in=(SOL,), tokens_out=(MINT_Y,), tx_index=50))
        return records

    def test_permissive(self):
        result = _by_signature(_classifier().classify(self._records()))
        finding = result["user-tx"].mev
        assert finding.mev_type == MevType.FRONTRUN
        assert finding.confidence == 90
        assert finding.bot_address == "botB"
        assert result["bot-tx"].mev is None

    def test_strict_requires_repeat_actor(self):
        assert _by_signature(_classifier(STRICT).classify(self._records()))["user-tx"].mev is None
        finding = _by_signature(_classifier(STRICT).classify(self._records(repeat=True)))["user-tx"].mev
        assert finding.mev_type == MevType.FRONTRUN
        assert finding.confidence == 92
        assert finding.details["frontrun"]["repeat_actor"] is True

    def test_strict_proximity_gate(self):
        records = self._records(gap=5, repeat=True)
        assert _by_signature(_classifier(STRICT).classify(records))["user-tx"].mev is None
        assert _by_signature(_classifier().classify(records))["user-tx"].mev.mev_type == MevType.FRONTRUN

    def test_different_trade_is_not_a_frontrun(self):
        records = [
            make_record("a", "botB", tokens_in=(USDC,), tokens_out=(MINT_Y,), tx_index=0),
            make_record("b", "userU", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=1),
        ]
        assert all(r.mev is None for r in _classifier().classify(records))


class TestBackrun:
    def _records(self, platforms=("V1",)):
        return [
            make_record("user-tx", "userU", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=0),
            make_record("bot-tx", "botB", tokens_in=(MINT_X,), tokens_out=(USDC,), platforms=platforms, tx_index=1),
        ]

    def test_permissive(self):
        finding = _by_signature(_classifier().classify(self._records()))["user-tx"].mev
        assert finding.mev_type == MevType.BACKRUN
        assert finding.confidence == 90
        assert finding.details["backrun"]["triggered_by"] == "userU"

    def test_strict_accepts_multi_venue_corroboration(self):
        assert _by_signature(_classifier(STRICT).classify(self._records()))["user-tx"].mev is None
        finding = _by_signature(_classifier(STRICT).classify(self._records(("V1", "V2"))))["user-tx"].mev
        assert finding.mev_type == MevType.BACKRUN
        assert finding.confidence == 94


class TestMultiplePatterns:
    def test_frontrun_and_backrun_by_different_wallets(self):
        records = [
            make_record("f", "botB", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=0),
            make_record("t", "userU", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=1),
            make_record("b", "botC", tokens_in=(MINT_X,), tokens_out=(USDC,), tx_index=2),
        ]
        finding = _by_signature(_classifier().classify(records))["t"].mev
        assert finding.mev_type == MevType.MULTIPLE
        assert finding.patterns == (MevType.FRONTRUN, MevType.BACKRUN)
        assert finding.confidence == 90
        assert set(finding.details) >= {"frontrun", "backrun"}
        assert finding.bot_address == "botB"


# ---------------------------------------------------------------------------
# Known bots and arbitrage
# ---------------------------------------------------------------------------

class TestKnownBot:
    def test_known_bot_alone(self):
        records = [make_record("k", "knownBot", tx_index=0)]
        [record] = _classifier(known_bots={"knownBot"}).classify(records)
        assert record.mev.mev_type == MevType.KNOWN_BOT
        assert record.mev.confidence == 90
        assert record.mev.bot_address == "knownBot"

    def test_known_bot_keeps_type_while_enriching_details(self):
        records = [
            make_record("k", "knownBot", tokens_in=(USDC,), tokens_out=(MINT_X,), tx_index=0),
            make_record("c", "botC", tokens_in=(MINT_X,), tokens_out=(USDC,), tx_index=1),
        ]
        finding = _by_signature(_classifier(known_bots={"knownBot"}).classify(records))["k"].mev
        assert finding.mev_type == MevType.KNOWN_BOT
        assert finding.patterns == (MevType.KNOWN_BOT, MevType.BACKRUN)
        assert "backrun" in finding.details
        assert finding.confidence == 90

    def test_suspicious_patterns_recorded_in_details(self):
        record = replace(
            make_record("k", "knownBot", platforms=("V1", "V2", "V3"), tx_index=0),
            tokens_in=(MintAmount(USDC, 0.123456789),),
        )
        [result] = _classifier(known_bots={"knownBot"}).classify([record])
        assert set(result.mev.details["suspicious"]) == {"multiple_dex_usage", "precise_amounts"}


class TestArbitrageMev:
    def _cycle(self, venues):
        legs = [((USDC,), (MINT_X,)), ((MINT_X,), (USDC,))]
        return [
            make_record(f"arb-{i}", "arber", tokens_in=legs[i % 2][0], tokens_out=legs[i % 2][1],
                        platforms=(venue,), tx_index=i)
            for i, venue in enumerate(venues)
        ]

    def test_three_venue_round_trips_are_flagged(self):
        result = _classifier().classify(self._cycle(("V1", "V2", "V3")))
        assert all(r.mev.mev_type == MevType.ARBITRAGE for r in result)
        assert all(r.mev.confidence == 80 for r in result)
        assert result[0].mev.details["arbitrage"]["transaction_count"] == 3

    def test_two_venues_are_not_enough(self):
        result = _classifier().classify(self._cycle(("V1", "V2", "V1")))
        assert all(r.mev is None for r in result)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

class TestOrdering:
    def test_sorts_by_slot_then_index(self):
        records = [
            make_record("c", "w3", slot=101, tx_index=0),
            make_record("b", "w2", slot=100, tx_index=7),
            make_record("a", "w1", slot=100, tx_index=2),
        ]
        assert [r.signature for r in _classifier().classify(records)] == ["a", "b", "c"]

    def test_missing_index_raises(self):
        records = [make_record("a", "w1", tx_index=0), make_record("b", "w2", tx_index=None)]
        with pytest.raises(OrderingError):
            _classifier().classify(records)

    def test_duplicate_position_raises(self):
        records = [make_record("a", "w1", tx_index=3), make_record("b", "w2", tx_index=3)]
        with pytest.raises(OrderingError):
            _classifier().classify(records)

    def test_undetected_records_are_dropped(self):
        records = [make_record("a", "w1", tx_index=0), replace(make_record("b", "w2"), swap_detected=False, tx_index=None)]
        assert [r.signature for r in _classifier().classify(records)] == ["a"]

    def test_input_records_are_not_mutated(self):
        records = _sandwich()
        _classifier().classify(records)
        assert all(r.mev is None for r in records)


class TestDescribe:
    def test_known_and_unknown_types(self):
        assert describe_mev_type("sandwich").startswith("Sandwich attack")
        assert describe_mev_type(MevType.MULTIPLE) == "Multiple MEV strategies detected"
        assert describe_mev_type("bogus") == "Unknown MEV type"
