from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from encoding.hexutil import is_hex_digits, strip_0x
from errors import InvalidHexString

JSONRPC_VERSION = "2.0"
SEND_RAW_TRANSACTION = "eth_sendRawTransaction"


@dataclass(frozen=True)
class JSONRPCRequest:
    method: str
    params: Tuple[Any, ...] = field(default_factory=tuple)
    id: int = 1
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
            "params": list(self.params),
            "id": self.id,
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True).encode("utf-8")


def build_send_raw_transaction(signed_tx_hex: str) -> JSONRPCRequest:
    """
    Wrap a signed transaction hex string (``0x`` optional) for broadcast.

    Only the character class is checked: an odd number of digits is accepted,
    matching what wallets have historically sent.
    """
    clean = strip_0x(signed_tx_hex)
    if not is_hex_digits(clean):
        raise InvalidHexString("signed transaction is not a hex string", {"input": signed_tx_hex[:16]})
    return JSONRPCRequest(method=SEND_RAW_TRANSACTION, params=("0x" + clean.lower(),), id=1)
