from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict


@dataclass(eq=False)
class WalletError(Exception):
    """
    Base class for every failure raised by the wallet core.

    Each subclass carries a stable snake_case `code` so the embedding UI can
    render a precise message without parsing text.
    """

    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    code: ClassVar[str] = "wallet_error"

    def __str__(self) -> str:
        return self.message or self.code


class InvalidValue(WalletError):
    code = "invalid_value"


class InvalidHexString(WalletError):
    code = "invalid_hex_string"


class InvalidAddress(WalletError):
    code = "invalid_address"


class InvalidData(WalletError):
    code = "invalid_data"


class InvalidPublicKey(WalletError):
    code = "invalid_public_key"


class MissingSignature(WalletError):
    code = "missing_signature"


class ValueOverflow(WalletError):
    code = "value_overflow"


class SignatureFailed(WalletError):
    code = "signature_failed"


# Key store failures. Opaque to the encoding layers.


class KeyGenerationFailed(WalletError):
    code = "key_generation_failed"


class KeyNotFound(WalletError):
    code = "key_not_found"


class AuthenticationFailed(WalletError):
    code = "authentication_failed"


class CapabilityUnavailable(WalletError):
    code = "capability_unavailable"


class CapabilityBusy(WalletError):
    code = "capability_busy"


@dataclass
class AppError(Exception):
    code: str
    message: str
    data: Dict[str, Any]


def classify_exception(e: Exception) -> AppError:
    """
    Map wallet exceptions into stable error codes for the bridge.
    """
    if isinstance(e, WalletError):
        return AppError(e.code, str(e), dict(e.data))
    return AppError("unknown_error", str(e), {})
