from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyPairHandle:
    """
    Opaque reference to a key held by a key store. Carries no key material.
    """

    key_id: str
    store: str = ""


class KeyStore(ABC):
    """
    A minimal hardware-style key capability for secp256k1 keys.

    Every operation may wait on an interactive authentication gate, so all of
    them are coroutines. Implementations raise the key store errors from
    `errors` (KeyGenerationFailed, KeyNotFound, AuthenticationFailed,
    CapabilityUnavailable).
    """

    @abstractmethod
    async def generate_key_pair(self, key_id: str) -> KeyPairHandle:
        raise NotImplementedError

    @abstractmethod
    async def lookup(self, key_id: str) -> KeyPairHandle:
        raise NotImplementedError

    @abstractmethod
    async def public_key(self, handle: KeyPairHandle) -> bytes:
        """64-byte uncompressed public key, X||Y without the 0x04 prefix."""
        raise NotImplementedError

    @abstractmethod
    async def sign(self, handle: KeyPairHandle, digest: bytes) -> bytes:
        """Raw ECDSA signature over a 32-byte digest (DER, r||s or r||s||v)."""
        raise NotImplementedError

    @abstractmethod
    async def authenticate(self, reason: str) -> None:
        raise NotImplementedError
