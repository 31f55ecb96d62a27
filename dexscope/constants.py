"""
Static program, mint and wallet tables.

Nothing in here is read implicitly by the analyzers: callers build a
``VenueRegistry`` (or pass sets explicitly) from these defaults.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Trading venues
# ---------------------------------------------------------------------------

DEX_PROGRAM_IDS: dict[str, str] = {
    # Jupiter aggregator
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4": "Jupiter",
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB": "Jupiter V4",
    "JUP3c2Uh3WA4Ng34tw6kPd2G4C5BB21Xo36Je1s32Ph": "Jupiter V3",
    # Raydium
    "RayqJ5UKhvHV8S5pJ9B9kjEgqJrjbqd8e4FrFUbLFVv": "Raydium AMM V1",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium AMM V4",
    "CAMMCzo5YL8w4VFF8KVHrK22GGUQpMAS4aeMNdTOzBTa": "Raydium CPMM",
    # Orca
    "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP": "Orca Whirlpool",
    "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1": "Orca Aquafarm",
    # Serum
    "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin": "Serum DEX V3",
    "EUqojwWA2rd19FZrzeBncJsm38Jm1hEhE3zsmX3bRc2o": "Serum DEX V2",
    "BJ3jrUzddfuSrZHXSCxMbUDKuq68MoGCpM7pJ6cBiN9b": "Serum DEX V1",
    # Meteora
    "Eo7WjKq67rjJQSZxS6z3YkapzY3eMj6Xy8X5EQVn5UaB": "Meteora",
    "amm5vHxfJR8BfTTZR9K3kbKHgqhNqTJmWHLwJv8EGwN": "Meteora Dynamic AMM",
    # Order books
    "PhoeNiXZ8ByJGLkxNfZRnkUfjvmuYqLR89jjFHGqdXY": "Phoenix",
    "opnb2LAfJYbRMAHHvqjCwQxanZn7ReEHp1k81EohpZb": "Openbook",
    # Smaller AMMs
    "2wT8Yq49kHgDzXuPxZSaeLaH1qbmGXtEyPy64bL7aD3c": "Lifinity",
    "SSwpkEEcbUqx4vtoEByFjSkhKdCT862DNVb52nZg1UZ": "Saber",
    "CURVGoZn8zycx6FXwwevgBTB2gVvdbGTEpvMJDbgs2t4": "Aldrin AMM",
    "MERLuDFBMmsHnsBPZw2sDQZHvXFMwp8EdjudcU2HKky": "Mercurial",
    "CTMAxxk34HjKWxQ3QLZK1HpaLXmBveao3ESePXbiyfzh": "Cropper",
    "6MLxLqiXaaSUpkgMnWDTuejNZEz3kE7k2woyHGVFw319": "Crema",
    "FLUXubRmkEi2q6K3Y9kBPg9248ggaZVsoSFhtJHSrm1X": "Fluxbeam",
    "HyaB3W9q6XdA5xwpU4XnSZV94htfmbmqJXZcEbRaJutt": "Invariant",
    # Launchpads
    "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P": "Pump.fun",
}

# Program-id prefixes used to name programs missing from DEX_PROGRAM_IDS.
DEX_PREFIX_PATTERNS: dict[str, str] = {
    "JUP": "Jupiter",
    "Ray": "Raydium",
    "9W9": "Orca",
    "CAM": "Raydium CPMM",
    "Eo7": "Meteora",
    "Pho": "Phoenix",
    "opn": "Openbook",
    "2wT": "Lifinity",
    "SSw": "Saber",
}

# ---------------------------------------------------------------------------
# Infrastructure programs (never swap evidence)
# ---------------------------------------------------------------------------

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

TOKEN_PROGRAM_IDS: frozenset[str] = frozenset({SPL_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID})

# SPL token instruction discriminators: Transfer, TransferChecked
TRANSFER_OPCODES: frozenset[int] = frozenset({3, 12})

INFRASTRUCTURE_PROGRAM_IDS: frozenset[str] = frozenset(
    {
        # Core
        "ComputeBudget111111111111111111111111111111",
        "AddressLookupTab1e1111111111111111111111111",
        "11111111111111111111111111111111",
        # Token programs are inspected separately for transfer opcodes
        SPL_TOKEN_PROGRAM_ID,
        TOKEN_2022_PROGRAM_ID,
        "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
        # Memo / noop
        "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr",
        "Memo1UhkJRfHyvLMcVucJwxXeuD728EqVDDwQDxFMNo",
        "noopb9bkMVfRPU8AsbpTUg8AQkHtKwMYZiFUjNRtMmV",
        # Sysvars, staking, voting
        "SysvarRent111111111111111111111111111111111",
        "SysvarC1ock11111111111111111111111111111111",
        "SysvarRecentB1ockHashes11111111111111111111",
        "SysvarS1otHashes111111111111111111111111111",
        "Stake11111111111111111111111111111111111111",
        "Vote111111111111111111111111111111111111111",
        # Metaplex
        "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
        "p1exdMJcjVao65QdewkaZRUnU6VPSXhus9n2GzWfh98",
        "auctxRXPeJoc4817jDhf4HbjnhEcr1cCXenosMhK5R8",
        # Pyth oracles
        "FsJ3A3u2vn5cTVofAjvy6y5kwABJAqYWpe4975bi2epH",
        "gSbePebfvPy7tRqimPoVecS2UsBvYv46ynrzWocc92s",
    }
)

# ---------------------------------------------------------------------------
# Mints
# ---------------------------------------------------------------------------

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"

TOKEN_SYMBOLS: dict[str, str] = {
    USDC_MINT: "USDC",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT",
    WRAPPED_SOL_MINT: "SOL",
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": "mSOL",
    "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1": "bSOL",
    "7Q2afV64in6N6SeZsAAB81TJzwDoD6zpqmHkzi9Dcavn": "JSOL",
    "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": "JUP",
    "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R": "RAY",
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": "BONK",
    "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs": "ETH",
    "9n4nbM75f5Ui33ZbPYXn59EwSgE8CGsHtAeTH5YFeJ9E": "BTC",
}

# ---------------------------------------------------------------------------
# Wallets and thresholds
# ---------------------------------------------------------------------------

KNOWN_MEV_BOTS: frozenset[str] = frozenset(
    {
        "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1",
        "DYw8jCTfwHNRJhhmFcbXvVDTqWMEVFBX6ZKUmG5CNSKK",
        "HfoTxFR1Tm6kGmWgYWD6J7YHVy1UwqSULUGVLXkJqaKN",
    }
)

DUST_THRESHOLD = 1e-6

SHORT_ID_LENGTH = 6
