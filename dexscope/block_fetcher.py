"""
Block fetcher – retrieves slots and full blocks over Solana JSON-RPC.
Methods return empty results on failure; they never raise to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from dexscope.models import Transaction
from dexscope.normalizer import normalize_block

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_DEFAULT_TIMEOUT = 20  # seconds
_MAX_RETRIES = 2

_BLOCK_OPTIONS = {
    "encoding": "json",
    "maxSupportedTransactionVersion": 0,
    "transactionDetails": "full",
    "rewards": False,
    "commitment": "finalized",
}


def _post_with_retry(url: str, payload: dict, timeout: int = _DEFAULT_TIMEOUT) -> dict:
    """POST JSON with retry logic. Returns parsed JSON or empty dict."""
    last_exc: Exception | None = None
    for attempt in range(_MAX_RETRIES + 1):
        try:
            resp = requests.post(url, json=payload, timeout=timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.Timeout as exc:
            last_exc = exc
            logger.warning("Timeout on attempt %d/%d for %s", attempt + 1, _MAX_RETRIES + 1, payload.get("method"))
        except requests.exceptions.HTTPError as exc:
            # Don't retry 4xx client errors
            if exc.response is not None and 400 <= exc.response.status_code < 500:
                logger.error("HTTP %d for %s", exc.response.status_code, payload.get("method"))
                return {}
            last_exc = exc
            logger.warning("HTTP error on attempt %d: %s", attempt + 1, exc)
        except requests.exceptions.RequestException as exc:
            last_exc = exc
            logger.warning("Request error on attempt %d: %s", attempt + 1, exc)

        if attempt < _MAX_RETRIES:
            time.sleep(1.5 ** attempt)

    logger.error("All retries exhausted for %s: %s", payload.get("method"), last_exc)
    return {}


# ---------------------------------------------------------------------------
# BlockFetcher
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BlockScope:
    """One fetched slot. ``error`` is set when the block could not be retrieved."""

    slot: int
    transactions: list[Transaction] = field(default_factory=list)
    error: Optional[str] = None


class BlockFetcher:
    """Fetches blocks from a Solana JSON-RPC endpoint."""

    def __init__(self, rpc_url: str):
        self.rpc_url = rpc_url

    def _rpc(self, method: str, params: Any) -> dict:
        payload = {"jsonrpc": "2.0", "id": "1", "method": method, "params": params}
        return _post_with_retry(self.rpc_url, payload)

    # ------------------------------------------------------------------
    # Public API methods
    # ------------------------------------------------------------------

    def get_slot(self) -> int | None:
        """Latest finalized slot, or None when the RPC is unavailable."""
        data = self._rpc("getSlot", [{"commitment": "finalized"}])
        result = data.get("result")
        return int(result) if isinstance(result, int) else None

    def get_block(self, slot: int) -> dict:
        """Full block for ``slot`` (empty dict when skipped or unavailable)."""
        data = self._rpc("getBlock", [slot, _BLOCK_OPTIONS])
        if data.get("error"):
            logger.warning("getBlock %d: %s", slot, data["error"].get("message", data["error"]))
            return {}
        return data.get("result") or {}

    def fetch_scope(self, slot: int) -> BlockScope:
        """Fetch and normalize one block."""
        block = self.get_block(slot)
        if not block:
            return BlockScope(slot=slot, error=f"Block not available for slot {slot}")
        transactions = normalize_block(block, slot=slot)
        logger.info("Slot %d: fetched %d transactions", slot, len(transactions))
        return BlockScope(slot=slot, transactions=transactions)

    def fetch_scopes(self, start_slot: int, count: int = 1) -> list[BlockScope]:
        """Fetch ``count`` consecutive slots starting at ``start_slot``."""
        return [self.fetch_scope(slot) for slot in range(start_slot, start_slot + max(1, count))]
