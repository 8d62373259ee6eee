from __future__ import annotations

import asyncio
from typing import Optional

from eth_utils import keccak

from encoding.address import address_from_public_key
from encoding.hexutil import encode_hex
from errors import KeyNotFound
from observability import build_log_context, log_event
from signing.base import KeyPairHandle, KeyStore
from signing.recovery import recover_signature
from signing.serialized import BUSY_QUEUE, ensure_serialized

from .jsonrpc import JSONRPCRequest, build_send_raw_transaction
from .transaction import (
    Signature,
    SignedTransaction,
    UnsignedTransaction,
    attach_signature,
    eip155_v,
    encode_signed,
    encode_unsigned,
)

DEFAULT_KEY_ID = "wallet-primary"

CTX = build_log_context(component="orchestrator")


def personal_message_hash(message: str) -> bytes:
    """EIP-191 version 0x45 ("Ethereum Signed Message") digest."""
    body = message.encode("utf-8")
    return keccak(b"\x19Ethereum Signed Message:\n" + str(len(body)).encode("ascii") + body)


class WalletOrchestrator:
    """
    Composes the encoders with an injected key store.

    The key store is always wrapped in a SerializedKeyStore, so concurrent
    requests against the wallet key never overlap. Errors from lower layers
    pass through unchanged.
    """

    def __init__(
        self,
        key_store: KeyStore,
        *,
        key_id: str = DEFAULT_KEY_ID,
        auth_timeout: Optional[float] = None,
        busy_policy: str = BUSY_QUEUE,
    ) -> None:
        self._key_store = ensure_serialized(key_store, timeout=auth_timeout, busy_policy=busy_policy)
        self._key_id = key_id
        self._handle: Optional[KeyPairHandle] = None

    @property
    def key_store(self) -> KeyStore:
        return self._key_store

    async def _current_handle(self) -> KeyPairHandle:
        if self._handle is None:
            self._handle = await self._key_store.lookup(self._key_id)
        return self._handle

    async def create_wallet(self, *, cancel: Optional[asyncio.Event] = None) -> str:
        """
        Generate (or replace) the wallet key and return its checksummed address.
        """
        handle = await self._key_store.generate_key_pair(self._key_id, cancel=cancel)
        self._handle = handle
        address = address_from_public_key(await self._key_store.public_key(handle)).checksum
        log_event("wallet_created", ctx=CTX, data={"key_id": handle.key_id, "address": address})
        return address

    async def public_key(self) -> bytes:
        return await self._key_store.public_key(await self._current_handle())

    async def address(self) -> str:
        return address_from_public_key(await self.public_key()).checksum

    async def has_wallet(self) -> bool:
        try:
            await self._current_handle()
        except KeyNotFound:
            return False
        return True

    async def authenticate(self, reason: str = "Authenticate to access your wallet", *, cancel: Optional[asyncio.Event] = None) -> None:
        await self._key_store.authenticate(reason, key_id=self._key_id, cancel=cancel)
        log_event("authenticated", ctx=CTX, data={"reason": reason})

    async def _sign_digest(self, digest: bytes, *, cancel: Optional[asyncio.Event]) -> tuple[int, int, int]:
        handle = await self._current_handle()
        public_key = await self._key_store.public_key(handle)
        raw = await self._key_store.sign(handle, digest, cancel=cancel)
        recid, r, s = recover_signature(digest, raw, public_key)
        log_event("digest_signed", ctx=CTX, data={"key_id": handle.key_id, "digest": digest.hex()[:16], "recid": recid})
        return recid, r, s

    async def sign_transaction(self, tx: UnsignedTransaction, *, cancel: Optional[asyncio.Event] = None) -> SignedTransaction:
        digest = keccak(encode_unsigned(tx))
        recid, r, s = await self._sign_digest(digest, cancel=cancel)
        return attach_signature(tx, Signature(v=eip155_v(recid, tx.chain_id), r=r, s=s))

    async def sign_message(self, message: str, *, cancel: Optional[asyncio.Event] = None) -> str:
        """
        personal_sign: 65-byte r||s||v hex with v in {27, 28}.
        """
        recid, r, s = await self._sign_digest(personal_message_hash(message), cancel=cancel)
        return encode_hex(r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([27 + recid]))

    def submit_payload(self, signed: SignedTransaction) -> JSONRPCRequest:
        request = build_send_raw_transaction(encode_hex(encode_signed(signed)))
        log_event("payload_built", ctx=CTX, data={"method": request.method, "bytes": (len(request.params[0]) - 2) // 2})
        return request
