from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional

import requests

from encoding.hexutil import decode_hex
from errors import (
    AuthenticationFailed,
    CapabilityUnavailable,
    InvalidData,
    KeyGenerationFailed,
    KeyNotFound,
    SignatureFailed,
)

from .base import KeyPairHandle, KeyStore


def _http_timeout() -> float:
    return float((os.getenv("HTTP_TIMEOUT_SEC") or "10").strip())


class RemoteKeyStore(KeyStore):
    """
    Key store backed by a secure-element or HSM proxy.

    The proxy owns the keys and the presence check (it blocks until the user
    approves on the device). Protocol (HTTP JSON):

    POST {url}/keys                       body: {"key_id": "..."}  -> {"key_id": "..."}
    GET  {url}/keys/{key_id}/public_key                            -> {"public_key_hex": "0x..."}
    POST {url}/keys/{key_id}/sign_digest  body: {"digest_hex": "0x..."}
                                                                   -> {"ok": true, "signature_der_hex": "0x..."}
    POST {url}/authenticate               body: {"reason": "..."}  -> {"ok": true}
    """

    name = "remote"

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        http_timeout: Optional[float] = None,
        url_env: str = "KEYSTORE_REMOTE_URL",
        token_env: str = "KEYSTORE_REMOTE_TOKEN",
    ) -> None:
        url = (url if url is not None else os.getenv(url_env) or "").strip()
        if not url:
            raise ValueError(f"{url_env} environment variable not set")
        self._base_url = url.rstrip("/")
        self._token = (token if token is not None else os.getenv(token_env) or "").strip() or None
        self._http_timeout = http_timeout if http_timeout is not None else _http_timeout()

    def _headers(self) -> Dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def _request(self, method: str, path: str, *, key_id: Optional[str] = None, json: Any = None) -> Dict[str, Any]:
        try:
            r = requests.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                headers=self._headers(),
                timeout=self._http_timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise CapabilityUnavailable(f"key store unreachable: {exc}") from exc
        if r.status_code in (401, 403):
            raise AuthenticationFailed("key store rejected authentication", {"status": r.status_code})
        if r.status_code == 404:
            raise KeyNotFound(f"no key in slot {key_id}", {"key_id": key_id})
        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            raise CapabilityUnavailable(f"key store error: {exc}", {"status": r.status_code}) from exc
        return r.json()

    async def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        # A worker thread cannot be interrupted. A cancelled caller still waits
        # for the proxy to answer, so the key slot stays busy until it does.
        fut = asyncio.ensure_future(asyncio.to_thread(self._request, method, path, **kwargs))
        try:
            return await asyncio.shield(fut)
        except asyncio.CancelledError:
            await asyncio.gather(fut, return_exceptions=True)
            raise

    async def generate_key_pair(self, key_id: str) -> KeyPairHandle:
        try:
            data = await self._call("POST", "/keys", key_id=key_id, json={"key_id": key_id})
        except CapabilityUnavailable as exc:
            if exc.data.get("status", 0) >= 500:
                raise KeyGenerationFailed(str(exc), exc.data) from exc
            raise
        returned = str(data.get("key_id") or key_id)
        return KeyPairHandle(key_id=returned, store=self.name)

    async def lookup(self, key_id: str) -> KeyPairHandle:
        await self._call("GET", f"/keys/{key_id}/public_key", key_id=key_id)
        return KeyPairHandle(key_id=key_id, store=self.name)

    async def public_key(self, handle: KeyPairHandle) -> bytes:
        data = await self._call("GET", f"/keys/{handle.key_id}/public_key", key_id=handle.key_id)
        raw = decode_hex(str(data.get("public_key_hex") or ""), name="public_key_hex")
        if len(raw) == 65 and raw[0] == 0x04:
            raw = raw[1:]
        return raw

    async def sign(self, handle: KeyPairHandle, digest: bytes) -> bytes:
        if len(digest) != 32:
            raise InvalidData("digest must be 32 bytes", {"length": len(digest)})
        data = await self._call(
            "POST",
            f"/keys/{handle.key_id}/sign_digest",
            key_id=handle.key_id,
            json={"digest_hex": "0x" + digest.hex()},
        )
        if not data.get("ok"):
            raise SignatureFailed(f"remote signing failed: {data.get('error') or data}")
        sig = decode_hex(str(data.get("signature_der_hex") or ""), name="signature_der_hex")
        if not sig:
            raise SignatureFailed("key store returned empty signature")
        return sig

    async def authenticate(self, reason: str) -> None:
        data = await self._call("POST", "/authenticate", json={"reason": reason})
        if not data.get("ok"):
            raise AuthenticationFailed(f"authentication declined: {reason}")
