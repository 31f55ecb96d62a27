"""
Error taxonomy for the detection pipeline.

Unregistered programs are not errors: they are surfaced on the swap record
as ``unknown_programs``.
"""

from __future__ import annotations


class DexscopeError(Exception):
    """Base class for every error raised by dexscope."""


class MissingDataError(DexscopeError):
    """A transaction lacks the message, account keys or instruction lists needed for analysis."""


class MalformedInstructionError(DexscopeError):
    """An instruction cannot be decoded (bad program index, undecodable data)."""


class ScopeFetchError(DexscopeError):
    """A block/slot could not be fetched from the upstream RPC."""


class OrderingError(DexscopeError):
    """In-block transaction order cannot be established for a batch."""


class ScopeAbortedError(DexscopeError):
    """A scope's analysis was cancelled before all transactions were processed."""

    def __init__(self, slot: int | None, completed: int, total: int):
        self.slot = slot
        self.completed = completed
        self.total = total
        super().__init__(
            f"Analysis of slot {slot} aborted after {completed}/{total} transactions"
        )
