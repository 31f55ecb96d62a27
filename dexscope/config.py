"""
Configuration module for the dexscope block scanner.
Loads RPC and analysis settings from a .env file.
"""

import os
import warnings
from pathlib import Path
from dotenv import load_dotenv

from dexscope.profiles import ThresholdProfile, get_profile

# Load .env file from project root
_project_root = Path(__file__).parent.parent
load_dotenv(_project_root / ".env")

_PUBLIC_RPC = "https://api.mainnet-beta.solana.com"
_HELIUS_RPC = "https://mainnet.helius-rpc.com/"


class Config:
    """Centralised configuration loaded from environment variables."""

    def __init__(self):
        self.helius_api_key: str | None = self._optional("HELIUS_API_KEY")
        self.rpc_url: str = self._optional("SOLANA_RPC_URL") or self._default_rpc_url()
        self.output_dir: str = os.getenv("OUTPUT_DIR", "./output")
        self.profile: ThresholdProfile = self._profile(os.getenv("DEXSCOPE_PROFILE", "permissive"))
        self.max_workers: int | None = self._positive_int("DEXSCOPE_MAX_WORKERS")
        self.scope_timeout: float | None = self._positive_float("DEXSCOPE_SCOPE_TIMEOUT")
        self.extra_known_bots: frozenset[str] = frozenset(
            w.strip() for w in os.getenv("DEXSCOPE_KNOWN_BOTS", "").split(",") if w.strip()
        )

        # Create output directory if it doesn't exist
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)

        if not self.helius_api_key and not self._optional("SOLANA_RPC_URL"):
            warnings.warn(
                "Neither HELIUS_API_KEY nor SOLANA_RPC_URL is set. Falling back to the "
                "public mainnet RPC (rate limits may apply).",
                UserWarning,
                stacklevel=2,
            )

    def _default_rpc_url(self) -> str:
        if self.helius_api_key:
            return f"{_HELIUS_RPC}?api-key={self.helius_api_key}"
        return _PUBLIC_RPC

    @staticmethod
    def _optional(key: str) -> str | None:
        return os.getenv(key) or None

    @staticmethod
    def _profile(name: str) -> ThresholdProfile:
        try:
            return get_profile(name)
        except ValueError as exc:
            raise EnvironmentError(f"Invalid DEXSCOPE_PROFILE: {exc}") from exc

    @staticmethod
    def _positive_int(key: str) -> int | None:
        value = os.getenv(key)
        if not value:
            return None
        try:
            parsed = int(value)
        except ValueError:
            parsed = 0
        if parsed <= 0:
            raise EnvironmentError(f"Environment variable '{key}' must be a positive integer, got {value!r}.")
        return parsed

    @staticmethod
    def _positive_float(key: str) -> float | None:
        value = os.getenv(key)
        if not value:
            return None
        try:
            parsed = float(value)
        except ValueError:
            parsed = 0.0
        if parsed <= 0:
            raise EnvironmentError(f"Environment variable '{key}' must be a positive number, got {value!r}.")
        return parsed


# Module-level convenience accessors (populated lazily so imports don't fail)
def get_config() -> Config:
    """Return a Config instance, raising EnvironmentError if a setting is invalid."""
    return Config()
