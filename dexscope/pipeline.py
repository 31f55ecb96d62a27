"""
Block analysis pipeline – swap detection fan-out, then arbitrage and MEV on the joined batch.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from dexscope.arbitrage_grouper import ArbitrageGrouper
from dexscope.constants import KNOWN_MEV_BOTS
from dexscope.errors import OrderingError, ScopeAbortedError
from dexscope.mev_classifier import MEVClassifier
from dexscope.models import ArbitrageOpportunity, MEVFinding, SwapRecord, Transaction
from dexscope.profiles import PERMISSIVE, ThresholdProfile
from dexscope.registry import VenueRegistry
from dexscope.swap_detector import SwapDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockAnalysis:
    """Findings for one scope (block or slot window)."""

    slot: Optional[int]
    total_transactions: int
    records: tuple[SwapRecord, ...]
    opportunities: tuple[ArbitrageOpportunity, ...]
    arbitrage_summary: dict = field(default_factory=dict)
    mev_skipped: bool = False
    failed_signatures: tuple[str, ...] = ()

    @property
    def findings(self) -> list[MEVFinding]:
        return [r.mev for r in self.records if r.mev is not None]

    def to_dict(self) -> dict:
        return {
            "slot": self.slot,
            "total_transactions": self.total_transactions,
            "swap_count": len(self.records),
            "mev_skipped": self.mev_skipped,
            "failed_signatures": list(self.failed_signatures),
            "arbitrage_summary": self.arbitrage_summary,
            "arbitrage_opportunities": [o.to_dict() for o in self.opportunities],
            "mev_findings": [f.to_dict() for f in self.findings],
            "swaps": [r.to_dict() for r in self.records],
        }


class BlockAnalyzer:
    """Runs the full detection pipeline over one already-fetched batch of transactions."""

    def __init__(
        self,
        registry: VenueRegistry,
        profile: ThresholdProfile = PERMISSIVE,
        known_bots: Iterable[str] = KNOWN_MEV_BOTS,
        max_workers: Optional[int] = None,
    ):
        self.registry = registry
        self.profile = profile
        self.max_workers = max_workers or os.cpu_count() or 1
        self.detector = SwapDetector(registry)
        self.grouper = ArbitrageGrouper(profile)
        self.classifier = MEVClassifier(profile, known_bots)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect_swaps(
        self,
        transactions: Sequence[Transaction],
        deadline: Optional[float] = None,
    ) -> tuple[list[SwapRecord], list[str]]:
        """
        Detect swaps across worker threads, keeping input order.

        Returns (records, failed signatures). ``deadline`` is a
        ``time.monotonic()`` value; passing it cancels pending work and raises
        ScopeAbortedError.
        """
        if not transactions:
            return [], []

        slot = transactions[0].slot
        results: list[Optional[SwapRecord]] = [None] * len(transactions)
        failed: list[str] = []

        # Not a context manager: its exit would join detections still running past the deadline.
        pool = concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {pool.submit(self.detector.detect, tx): i for i, tx in enumerate(transactions)}
            timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
            done, pending = concurrent.futures.wait(futures, timeout=timeout)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        if pending:
            raise ScopeAbortedError(slot, len(done), len(transactions))

        for fut in done:
            i = futures[fut]
            try:
                results[i] = fut.result()
            except Exception:  # noqa: BLE001
                logger.exception("Swap detection failed for %s", transactions[i].signature)
                failed.append(transactions[i].signature)

        return [r for r in results if r is not None], failed

    def analyze(
        self,
        transactions: Sequence[Transaction],
        deadline: Optional[float] = None,
        slot: Optional[int] = None,
    ) -> BlockAnalysis:
        """Detect swaps, then (after every detection finished) group arbitrage and classify MEV."""
        if slot is None and transactions:
            slot = transactions[0].slot
        records, failed = self.detect_swaps(transactions, deadline=deadline)

        opportunities = self.grouper.group(records)

        mev_skipped = False
        try:
            records = self.classifier.classify(records)
        except OrderingError as exc:
            logger.warning("Skipping MEV classification for slot %s: %s", slot, exc)
            mev_skipped = True

        logger.info(
            "Slot %s: %d swaps in %d transactions, %d arbitrage candidates",
            slot, len(records), len(transactions), len(opportunities),
        )
        return BlockAnalysis(
            slot=slot,
            total_transactions=len(transactions),
            records=tuple(records),
            opportunities=tuple(opportunities),
            arbitrage_summary=self.grouper.summarize(opportunities),
            mev_skipped=mev_skipped,
            failed_signatures=tuple(failed),
        )


def analyze_scopes(
    analyzer: BlockAnalyzer,
    scopes: Mapping[int, Sequence[Transaction]],
    max_concurrent_scopes: int = 4,
    timeout: Optional[float] = None,
) -> dict[int, BlockAnalysis]:
    """
    Analyze independent scopes concurrently.

    ``timeout`` (seconds) applies to each scope. Aborted scopes are logged and
    left out of the result; completed scopes are unaffected.
    """
    results: dict[int, BlockAnalysis] = {}
    if not scopes:
        return results

    def _run(slot: int, transactions: Sequence[Transaction]) -> BlockAnalysis:
        deadline = None if timeout is None else time.monotonic() + timeout
        return analyzer.analyze(transactions, deadline=deadline, slot=slot)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_concurrent_scopes)) as pool:
        futures = {pool.submit(_run, slot, txs): slot for slot, txs in scopes.items()}
        for fut in concurrent.futures.as_completed(futures):
            slot = futures[fut]
            try:
                results[slot] = fut.result()
            except ScopeAbortedError as exc:
                logger.warning("Discarding partial results: %s", exc)

    return {slot: results[slot] for slot in scopes if slot in results}
