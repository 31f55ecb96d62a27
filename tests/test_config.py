"""
Unit tests for Config.
"""

from __future__ import annotations

import pytest

from dexscope.config import Config, get_config
from dexscope.profiles import PERMISSIVE, STRICT

_ENV_KEYS = (
    "HELIUS_API_KEY",
    "SOLANA_RPC_URL",
    "OUTPUT_DIR",
    "DEXSCOPE_PROFILE",
    "DEXSCOPE_MAX_WORKERS",
    "DEXSCOPE_SCOPE_TIMEOUT",
    "DEXSCOPE_KNOWN_BOTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example.test")


class TestConfig:
    def test_defaults(self, tmp_path):
        cfg = Config()
        assert cfg.rpc_url == "https://rpc.example.test"
        assert cfg.profile is PERMISSIVE
        assert cfg.max_workers is None
        assert cfg.scope_timeout is None
        assert cfg.extra_known_bots == frozenset()
        assert (tmp_path / "out").is_dir()

    def test_helius_key_builds_rpc_url(self, monkeypatch):
        monkeypatch.delenv("SOLANA_RPC_URL")
        monkeypatch.setenv("HELIUS_API_KEY", "abc")
        cfg = Config()
        assert cfg.rpc_url.endswith("?api-key=abc")
        assert "helius" in cfg.rpc_url

    def test_public_rpc_fallback_warns(self, monkeypatch):
        monkeypatch.delenv("SOLANA_RPC_URL")
        with pytest.warns(UserWarning, match="public mainnet RPC"):
            cfg = Config()
        assert cfg.rpc_url == "https://api.mainnet-beta.solana.com"

    def test_analysis_settings(self, monkeypatch):
        monkeypatch.setenv("DEXSCOPE_PROFILE", "Strict")
        monkeypatch.setenv("DEXSCOPE_MAX_WORKERS", "8")
        monkeypatch.setenv("DEXSCOPE_SCOPE_TIMEOUT", "2.5")
        monkeypatch.setenv("DEXSCOPE_KNOWN_BOTS", "botA, botB,,")
        cfg = Config()
        assert cfg.profile is STRICT
        assert cfg.max_workers == 8
        assert cfg.scope_timeout == 2.5
        assert cfg.extra_known_bots == frozenset({"botA", "botB"})

    def test_get_config_returns_fresh_instance(self):
        assert isinstance(get_config(), Config)
        assert get_config() is not get_config()

    @pytest.mark.parametrize(
        "key, value",
        [
            ("DEXSCOPE_PROFILE", "reckless"),
            ("DEXSCOPE_MAX_WORKERS", "zero"),
            ("DEXSCOPE_MAX_WORKERS", "-2"),
            ("DEXSCOPE_SCOPE_TIMEOUT", "0"),
        ],
    )
    def test_invalid_values_raise(self, monkeypatch, key, value):
        monkeypatch.setenv(key, value)
        with pytest.raises(EnvironmentError):
            Config()
