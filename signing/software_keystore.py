from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from errors import AuthenticationFailed, InvalidData, KeyGenerationFailed, KeyNotFound
from observability import build_log_context, log_event

from .base import KeyPairHandle, KeyStore

Authenticator = Callable[[str], Awaitable[bool]]

DIGEST_LENGTH = 32

CTX = build_log_context(component="software_keystore")


async def approve_all(reason: str) -> bool:
    return True


class SoftwareKeyStore(KeyStore):
    """
    secp256k1 keys kept as in-process `cryptography` key objects.

    Private keys are never serialized or exported; only the public point and
    DER signatures leave this object. The authenticator stands in for the
    local-presence proof a secure element would demand (biometric prompt,
    PIN pad, ...); it returns False or is cancelled when the user declines.
    """

    name = "software"

    def __init__(self, authenticator: Optional[Authenticator] = None) -> None:
        self._authenticator: Authenticator = authenticator or approve_all
        self._keys: Dict[str, ec.EllipticCurvePrivateKey] = {}

    async def authenticate(self, reason: str) -> None:
        try:
            ok = await self._authenticator(reason)
        except asyncio.CancelledError:
            # The prompt was dismissed. Our own task is not being cancelled.
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            ok = False
        if not ok:
            log_event("auth_denied", ctx=CTX, data={"reason": reason})
            raise AuthenticationFailed(f"authentication declined: {reason}")
        log_event("auth_granted", ctx=CTX, data={"reason": reason})

    async def generate_key_pair(self, key_id: str) -> KeyPairHandle:
        await self.authenticate("Authenticate to create wallet")
        try:
            key = ec.generate_private_key(ec.SECP256K1())
        except (UnsupportedAlgorithm, ValueError) as exc:
            raise KeyGenerationFailed(f"secp256k1 key generation failed: {exc}") from exc
        # Replace only once the new key exists.
        self._keys[key_id] = key
        log_event("key_generated", ctx=CTX, data={"key_id": key_id})
        return KeyPairHandle(key_id=key_id, store=self.name)

    async def lookup(self, key_id: str) -> KeyPairHandle:
        if key_id not in self._keys:
            raise KeyNotFound(f"no key in slot {key_id}", {"key_id": key_id})
        return KeyPairHandle(key_id=key_id, store=self.name)

    def _key(self, handle: KeyPairHandle) -> ec.EllipticCurvePrivateKey:
        key = self._keys.get(handle.key_id)
        if key is None:
            raise KeyNotFound(f"no key in slot {handle.key_id}", {"key_id": handle.key_id})
        return key

    async def public_key(self, handle: KeyPairHandle) -> bytes:
        point = self._key(handle).public_key().public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)
        return point[1:]

    async def sign(self, handle: KeyPairHandle, digest: bytes) -> bytes:
        key = self._key(handle)
        if len(digest) != DIGEST_LENGTH:
            raise InvalidData("digest must be 32 bytes", {"length": len(digest)})
        await self.authenticate("Authenticate to sign transaction")
        # Prehashed only checks the length; the digest is keccak256.
        return key.sign(bytes(digest), ec.ECDSA(Prehashed(hashes.SHA256())))
