"""
Data model shared by every pipeline stage.

All entities are frozen values owned by the analysis call that produced
them. The only "mutation" is ``SwapRecord.with_mev``, which returns a new
record.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Normalized transaction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Balance:
    account_index: int
    mint: str
    owner: Optional[str]
    ui_amount: float
    decimals: int = 0


@dataclass(frozen=True)
class Instruction:
    program_id_index: int
    accounts: tuple[int, ...] = ()
    data: Optional[str] = None
    data_encoding: str = "base58"
    parsed: Optional[dict] = None


@dataclass(frozen=True)
class InnerInstructionGroup:
    index: int
    instructions: tuple[Instruction, ...] = ()


@dataclass(frozen=True)
class Transaction:
    signature: str
    slot: Optional[int]
    account_keys: tuple[str, ...]
    instructions: tuple[Instruction, ...]
    inner_instructions: tuple[InnerInstructionGroup, ...] = ()
    pre_token_balances: Optional[tuple[Balance, ...]] = None
    post_token_balances: Optional[tuple[Balance, ...]] = None
    block_time: Optional[int] = None
    err: Any = None
    fee: int = 0
    compute_units: Optional[int] = None
    tx_index: Optional[int] = None
    version: Any = "legacy"

    @property
    def fee_payer(self) -> Optional[str]:
        return self.account_keys[0] if self.account_keys else None

    def program_id(self, ix: Instruction) -> Optional[str]:
        """Program address targeted by ``ix``, or None for an out-of-range index."""
        if 0 <= ix.program_id_index < len(self.account_keys):
            return self.account_keys[ix.program_id_index]
        return None


# ---------------------------------------------------------------------------
# Balance analysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenDelta:
    account_index: int
    mint: str
    owner: Optional[str]
    pre: float
    post: float
    change: float


@dataclass(frozen=True)
class MintAmount:
    mint: str
    amount: float


@dataclass(frozen=True)
class SwapCandidate:
    owner: Optional[str]
    tokens_in: tuple[MintAmount, ...]
    tokens_out: tuple[MintAmount, ...]
    classic: bool
    unique_mints: int


# ---------------------------------------------------------------------------
# Trade path
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TradeHop:
    from_mint: str
    to_mint: str
    venue: str


@dataclass(frozen=True)
class TradePath:
    hops: tuple[TradeHop, ...]
    venues: tuple[str, ...]
    path: Optional[str]
    continuous: bool


# ---------------------------------------------------------------------------
# Swap records
# ---------------------------------------------------------------------------

class SwapConfidence(str, Enum):
    DEFINITE = "definite"
    PROBABLE = "probable"


class MevType(str, Enum):
    KNOWN_BOT = "known_bot"
    SANDWICH = "sandwich"
    FRONTRUN = "frontrun"
    BACKRUN = "backrun"
    ARBITRAGE = "arbitrage"
    MULTIPLE = "multiple"


@dataclass(frozen=True)
class MEVFinding:
    signature: str
    mev_type: MevType
    confidence: int
    details: dict = field(default_factory=dict)
    bot_address: Optional[str] = None
    patterns: tuple[MevType, ...] = ()

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "mev_type": self.mev_type.value,
            "confidence": self.confidence,
            "bot_address": self.bot_address,
            "patterns": [p.value for p in self.patterns],
            "details": self.details,
        }


@dataclass(frozen=True)
class SwapRecord:
    signature: str
    slot: Optional[int]
    initiator_wallet: Optional[str]
    tokens_in: tuple[MintAmount, ...]
    tokens_out: tuple[MintAmount, ...]
    platforms: tuple[str, ...]
    trade_path: Optional[str]
    swap_detected: bool
    confidence_class: SwapConfidence
    tx_index: Optional[int] = None
    block_time: Optional[int] = None
    owner: Optional[str] = None
    matched_program_ids: tuple[str, ...] = ()
    unknown_programs: tuple[str, ...] = ()
    has_relevant_token_op: bool = False
    classic: bool = True
    fee: int = 0
    compute_units: Optional[int] = None
    success: bool = True
    pnl: Optional[float] = None
    mev: Optional[MEVFinding] = None

    @property
    def in_mints(self) -> frozenset[str]:
        return frozenset(t.mint for t in self.tokens_in)

    @property
    def out_mints(self) -> frozenset[str]:
        return frozenset(t.mint for t in self.tokens_out)

    def with_mev(self, finding: Optional[MEVFinding]) -> "SwapRecord":
        return replace(self, mev=finding)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["confidence_class"] = self.confidence_class.value
        data["mev"] = self.mev.to_dict() if self.mev else None
        return data


# ---------------------------------------------------------------------------
# Arbitrage
# ---------------------------------------------------------------------------

class ArbitrageConfidence(str, Enum):
    PERFECT = "PERFECT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


@dataclass(frozen=True)
class RoundTripToken:
    mint: str
    buy_count: int
    sell_count: int


@dataclass(frozen=True)
class ArbitrageOpportunity:
    sender: str
    transaction_count: int
    platforms_used: frozenset[str]
    round_trip_tokens: tuple[RoundTripToken, ...]
    confidence: ArbitrageConfidence
    score: int
    all_criteria_met: bool
    signatures: tuple[str, ...] = ()

    @property
    def used_multiple_dexes(self) -> bool:
        return len(self.platforms_used) > 1

    @property
    def has_round_trip_trading(self) -> bool:
        return bool(self.round_trip_tokens)

    def to_dict(self) -> dict:
        return {
            "sender": self.sender,
            "transaction_count": self.transaction_count,
            "platforms_used": sorted(self.platforms_used),
            "used_multiple_dexes": self.used_multiple_dexes,
            "round_trip_tokens": [asdict(t) for t in self.round_trip_tokens],
            "confidence": self.confidence.value,
            "score": self.score,
            "all_criteria_met": self.all_criteria_met,
            "signatures": list(self.signatures),
        }
