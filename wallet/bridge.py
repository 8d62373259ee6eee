"""
Operation surface exposed to the embedding front-end.

Three coroutines, each resolving to a JSON string: ``{"ok": true, "data": ...}``
on success or ``{"ok": false, "error": {"code", "message", "data"}}`` on failure.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Mapping, Optional, Union

from encoding.hexutil import encode_hex
from errors import classify_exception
from observability import build_log_context, log_event

from .orchestrator import WalletOrchestrator
from .transaction import encode_signed, transaction_from_fields, transaction_to_dict

CTX = build_log_context(component="bridge")


def _json_ok(data: Dict[str, Any] | None = None) -> str:
    payload = {"ok": True, "data": data or {}}
    return json.dumps(payload, indent=2, sort_keys=True)


def _json_err(code: str, message: str, data: Dict[str, Any] | None = None) -> str:
    payload = {"ok": False, "error": {"code": code, "message": message, "data": data or {}}}
    return json.dumps(payload, indent=2, sort_keys=True)


def _reject(op: str, e: Exception) -> str:
    err = classify_exception(e)
    log_event("bridge_rejected", ctx=CTX, data={"op": op, "code": err.code})
    return _json_err(err.code, err.message, err.data)


class WalletBridge:
    def __init__(self, orchestrator: WalletOrchestrator, *, default_chain_id: int = 1) -> None:
        self._orchestrator = orchestrator
        self._default_chain_id = default_chain_id

    async def create_wallet(self, *, cancel: Optional[asyncio.Event] = None) -> str:
        try:
            address = await self._orchestrator.create_wallet(cancel=cancel)
        except Exception as e:
            return _reject("create_wallet", e)
        return _json_ok({"address": address})

    async def authenticate(self, *, cancel: Optional[asyncio.Event] = None) -> str:
        try:
            await self._orchestrator.authenticate(cancel=cancel)
        except Exception as e:
            return _reject("authenticate", e)
        return _json_ok({"authenticated": True})

    async def sign_transaction(
        self,
        transaction: Union[str, Mapping[str, Any]],
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        try:
            tx = transaction_from_fields(transaction, default_chain_id=self._default_chain_id)
            signed = await self._orchestrator.sign_transaction(tx, cancel=cancel)
            request = self._orchestrator.submit_payload(signed)
        except Exception as e:
            return _reject("sign_transaction", e)
        return _json_ok(
            {
                "signed_transaction": encode_hex(encode_signed(signed)),
                "transaction": transaction_to_dict(signed),
                "rpc_request": request.to_dict(),
            }
        )
