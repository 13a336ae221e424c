"""Wallet settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``WALLETBACKEND_``, nested via ``__``)
2. YAML config file (``WALLETBACKEND_CONFIG_PATH`` env var or ``from_yaml``)
3. Defaults defined here
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wallet_backend.wallet.container import PBKDF2_ITERATIONS

# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class DaemonConfig(BaseSettings):
    """Remote daemon connection defaults."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETBACKEND_DAEMON__",
        case_sensitive=False,
    )

    host: str = "127.0.0.1"
    port: int = Field(default=11898, ge=1, le=65535)
    timeout: float = Field(default=10.0, gt=0)


class SyncConfig(BaseSettings):
    """Background synchronizer settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETBACKEND_SYNC__",
        case_sensitive=False,
    )

    poll_interval: float = Field(default=5.0, gt=0, description="Seconds between height polls")
    event_buffer: int = Field(default=100, ge=1)


class StorageConfig(BaseSettings):
    """Wallet file settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETBACKEND_STORAGE__",
        case_sensitive=False,
    )

    pbkdf2_iterations: int = Field(
        default=PBKDF2_ITERATIONS,
        ge=1,
        description="Not stored in the file; must match the count the file was saved with",
    )


class NetworkConfig(BaseSettings):
    """Chain parameters needed for addresses and scan heights."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETBACKEND_NETWORK__",
        case_sensitive=False,
    )

    address_prefix: int = 3914525
    genesis_timestamp: int = 1512800692
    block_target: int = Field(default=30, gt=0)


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class WalletConfig(BaseSettings):
    """Top-level wallet backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETBACKEND_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    config_path: str = ""

    daemon: DaemonConfig = Field(default_factory=DaemonConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``WalletConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
