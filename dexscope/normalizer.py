"""
Normalizer – turns raw RPC transaction payloads into ``Transaction`` values.

Accepted shapes:
- ``getBlock`` / ``getTransaction`` entries in ``json`` encoding, for both
  legacy and versioned (v0) messages;
- ``jsonParsed`` entries (account keys as objects, instructions referencing
  programs and accounts by address);
- the already-normalized shape ``{signature, slot, message, meta}``.

This is the only module that knows about payload variants.
"""

from __future__ import annotations

import logging
from typing import Any

from dexscope.errors import MissingDataError
from dexscope.models import Balance, InnerInstructionGroup, Instruction, Transaction

logger = logging.getLogger(__name__)

# Raised by normalize_transaction for an entry that should be skipped.
MALFORMED_ENTRY_ERRORS = (MissingDataError, ValueError, TypeError, AttributeError)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_transaction(
    raw: dict,
    slot: int | None = None,
    block_time: int | None = None,
    tx_index: int | None = None,
) -> Transaction:
    """
    Normalize one raw transaction.

    Raises MissingDataError when the message or its account keys are absent.
    """
    if not isinstance(raw, dict):
        raise MissingDataError("Transaction payload is not an object")

    envelope = raw.get("transaction")
    if isinstance(envelope, dict) and "message" in envelope:
        message = envelope.get("message")
        signatures = envelope.get("signatures") or []
        signature = signatures[0] if signatures else raw.get("signature")
    else:
        message = raw.get("message")
        signature = raw.get("signature")
        if not signature and raw.get("signatures"):
            signature = raw["signatures"][0]

    if not isinstance(message, dict):
        raise MissingDataError(f"Transaction {signature or '?'} has no message")

    meta = raw.get("meta") or {}
    account_keys = _account_keys(message, meta)
    if not account_keys:
        raise MissingDataError(f"Transaction {signature or '?'} has no account keys")
    if message.get("instructions") is None:
        raise MissingDataError(f"Transaction {signature or '?'} has no instruction list")

    instructions = tuple(_instruction(ix, account_keys) for ix in message["instructions"])
    inner_groups = tuple(
        InnerInstructionGroup(
            index=_as_int(group.get("index"), 0),
            instructions=tuple(_instruction(ix, account_keys) for ix in group.get("instructions") or []),
        )
        for group in meta.get("innerInstructions") or []
    )

    return Transaction(
        signature=signature or "N/A",
        slot=raw.get("slot", slot),
        block_time=raw.get("blockTime", block_time),
        account_keys=tuple(account_keys),
        instructions=instructions,
        inner_instructions=inner_groups,
        pre_token_balances=_balances(meta.get("preTokenBalances")),
        post_token_balances=_balances(meta.get("postTokenBalances")),
        err=meta.get("err"),
        fee=_as_int(meta.get("fee"), 0),
        compute_units=meta.get("computeUnitsConsumed"),
        tx_index=raw.get("txIndex", tx_index),
        version=raw.get("version", "legacy"),
    )


def normalize_block(raw_block: dict, slot: int | None = None) -> list[Transaction]:
    """
    Normalize every transaction in a ``getBlock`` response, assigning
    ``tx_index`` from block position. Entries that cannot be normalized are
    logged and skipped.
    """
    if not raw_block:
        return []

    block_slot = raw_block.get("slot", slot)
    block_time = raw_block.get("blockTime")
    transactions: list[Transaction] = []

    for position, raw in enumerate(raw_block.get("transactions") or []):
        try:
            transactions.append(
                normalize_transaction(raw, slot=block_slot, block_time=block_time, tx_index=position)
            )
        except MALFORMED_ENTRY_ERRORS as exc:
            logger.warning("Skipping transaction #%d in slot %s: %s", position, block_slot, exc)
    return transactions


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _key_to_str(key: Any) -> str:
    if isinstance(key, dict):
        return str(key.get("pubkey", ""))
    return str(key)


def _account_keys(message: dict, meta: dict) -> list[str]:
    raw_keys = message.get("accountKeys") or []
    keys = [_key_to_str(k) for k in raw_keys]
    # v0 messages resolve lookup-table addresses into meta.loadedAddresses;
    # jsonParsed responses already list them in accountKeys.
    loaded = meta.get("loadedAddresses") or {}
    already_resolved = any(isinstance(k, dict) for k in raw_keys)
    if message.get("addressTableLookups") and loaded and not already_resolved:
        keys.extend(str(k) for k in loaded.get("writable") or [])
        keys.extend(str(k) for k in loaded.get("readonly") or [])
    return keys


def _index_of(address: str, account_keys: list[str]) -> int:
    try:
        return account_keys.index(address)
    except ValueError:
        account_keys.append(address)
        return len(account_keys) - 1


def _instruction(ix: dict, account_keys: list[str]) -> Instruction:
    # -1 marks an index that resolves to no account
    if "programIdIndex" in ix:
        program_index = _as_int(ix["programIdIndex"], -1)
    elif ix.get("programId"):
        program_index = _index_of(str(ix["programId"]), account_keys)
    else:
        program_index = -1

    accounts: list[int] = []
    for acc in ix.get("accounts") or []:
        if isinstance(acc, int) and not isinstance(acc, bool):
            accounts.append(acc)
        elif isinstance(acc, str) and acc:
            accounts.append(_index_of(acc, account_keys))
        else:
            accounts.append(-1)

    data = ix.get("data")
    encoding = "base58"
    if isinstance(data, (list, tuple)):
        data, encoding = (data[0], data[1]) if len(data) == 2 else (None, encoding)

    parsed = ix.get("parsed")
    return Instruction(
        program_id_index=program_index,
        accounts=tuple(accounts),
        data=data,
        data_encoding=encoding,
        parsed=parsed if isinstance(parsed, dict) else None,
    )


def _ui_amount(balance: dict) -> float:
    if "uiAmount" in balance and "uiTokenAmount" not in balance:
        return _as_float(balance.get("uiAmount"))

    token_amount = balance.get("uiTokenAmount") or {}
    if token_amount.get("uiAmountString") is not None:
        return _as_float(token_amount["uiAmountString"])
    if token_amount.get("uiAmount") is not None:
        return _as_float(token_amount["uiAmount"])
    if token_amount.get("amount") is not None:
        decimals = _as_int(token_amount.get("decimals"), 0)
        return _as_int(token_amount["amount"], 0) / (10 ** decimals)
    return 0.0


def _balances(raw_balances: list[dict] | None) -> tuple[Balance, ...] | None:
    if raw_balances is None:
        return None
    return tuple(
        Balance(
            account_index=_as_int(b.get("accountIndex"), -1),
            mint=b.get("mint", ""),
            owner=b.get("owner"),
            ui_amount=_ui_amount(b),
            decimals=_as_int(b.get("decimals", (b.get("uiTokenAmount") or {}).get("decimals", 0)), 0),
        )
        for b in raw_balances
    )
