"""
Wallet Core Settings

A validated, typed settings layer that is the single source of truth for
configuration. Environment variables are validated at startup so that a bad
key store configuration fails before the first signing request.

Usage:
    from app.core.settings import settings

    if settings.WALLET_KEYSTORE_TYPE == KeyStoreType.REMOTE:
        ...
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class KeyStoreType(Enum):
    """Key store backends."""

    SOFTWARE = "software"
    REMOTE = "remote"


class BusyPolicy(Enum):
    """What a second concurrent key store request does."""

    QUEUE = "queue"
    FAIL = "fail"


class SettingsValidationError(Exception):
    """Raised when settings validation fails."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid configuration for {field}={value!r}: {message}")


def _parse_int(value: str | None, default: int | None = None) -> int | None:
    """Parse an integer from environment variable."""
    if value is None or value.strip() == "":
        return default
    try:
        return int(value.strip(), 0)  # Support hex with 0x prefix
    except ValueError:
        return default


def _parse_float(value: str | None, default: float | None = None) -> float | None:
    """Parse a float from environment variable."""
    if value is None or value.strip() == "":
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def _parse_enum(enum_cls: type[Enum], value: str | None, default: Enum) -> Any:
    v = (value or "").strip().lower()
    if v in [e.value for e in enum_cls]:
        return enum_cls(v)
    return default


def _get_version_from_pyproject() -> str:
    """Extract version from pyproject.toml."""
    try:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        version: str = str(data.get("project", {}).get("version", "0.0.0"))
        return version
    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"


@dataclass
class Settings:
    """
    Unified settings class with validation.

    All configuration is loaded and validated at instantiation time.
    """

    PROJECT_NAME: str = "eth-wallet-core"
    VERSION: str = field(default_factory=_get_version_from_pyproject)

    # Key store
    WALLET_KEYSTORE_TYPE: KeyStoreType = field(
        default_factory=lambda: _parse_enum(KeyStoreType, os.getenv("WALLET_KEYSTORE_TYPE", "software"), KeyStoreType.SOFTWARE)
    )
    WALLET_KEY_ID: str = field(default_factory=lambda: os.getenv("WALLET_KEY_ID", "wallet-primary").strip())
    WALLET_AUTH_TIMEOUT_SEC: float = field(default_factory=lambda: _parse_float(os.getenv("WALLET_AUTH_TIMEOUT_SEC"), 60.0) or 60.0)
    WALLET_BUSY_POLICY: BusyPolicy = field(
        default_factory=lambda: _parse_enum(BusyPolicy, os.getenv("WALLET_BUSY_POLICY", "queue"), BusyPolicy.QUEUE)
    )
    KEYSTORE_REMOTE_URL: str | None = field(default_factory=lambda: os.getenv("KEYSTORE_REMOTE_URL"))
    KEYSTORE_REMOTE_TOKEN: str | None = field(default_factory=lambda: os.getenv("KEYSTORE_REMOTE_TOKEN"))
    HTTP_TIMEOUT_SEC: int = field(default_factory=lambda: _parse_int(os.getenv("HTTP_TIMEOUT_SEC"), 10) or 10)

    # Transactions
    WALLET_CHAIN_ID: int = field(default_factory=lambda: _parse_int(os.getenv("WALLET_CHAIN_ID"), 1) or 1)

    # Observability
    WALLET_LOG_LEVEL: str = field(default_factory=lambda: os.getenv("WALLET_LOG_LEVEL", "info").strip().lower())
    WALLET_SERVICE_NAME: str = field(default_factory=lambda: os.getenv("WALLET_SERVICE_NAME", "wallet").strip())

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        self._validate()

    def _validate(self) -> None:
        errors: list[str] = []

        if self.WALLET_KEYSTORE_TYPE == KeyStoreType.REMOTE and not self.KEYSTORE_REMOTE_URL:
            errors.append("KEYSTORE_REMOTE_URL required when WALLET_KEYSTORE_TYPE=remote")

        if not self.WALLET_KEY_ID:
            errors.append("WALLET_KEY_ID must not be empty")

        if self.WALLET_CHAIN_ID <= 0:
            errors.append(f"WALLET_CHAIN_ID must be positive, got {self.WALLET_CHAIN_ID}")

        if self.WALLET_AUTH_TIMEOUT_SEC <= 0:
            errors.append(f"WALLET_AUTH_TIMEOUT_SEC must be positive, got {self.WALLET_AUTH_TIMEOUT_SEC}")

        if self.WALLET_LOG_LEVEL not in ("debug", "info", "warning", "error"):
            errors.append(f"WALLET_LOG_LEVEL must be one of debug/info/warning/error, got {self.WALLET_LOG_LEVEL}")

        if errors:
            raise SettingsValidationError("MULTIPLE", None, "; ".join(errors))

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary (redacting secrets)."""
        result: dict[str, Any] = {}
        for key in dir(self):
            if key.startswith("_") or key.isupper() is False:
                continue
            value = getattr(self, key)
            if any(s in key.upper() for s in ["SECRET", "PASSWORD", "TOKEN"]):
                result[key] = "***REDACTED***" if value else None
            elif isinstance(value, Enum):
                result[key] = value.value
            else:
                result[key] = value
        return result


# Global settings instance
settings = Settings()
