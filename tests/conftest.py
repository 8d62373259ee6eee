import asyncio
import os
import sys

import pytest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature
from eth_keys import keys

from errors import AuthenticationFailed, KeyNotFound
from signing.base import KeyPairHandle, KeyStore
from signing.recovery import SECP256K1_N

# Private key from the EIP-155 worked example.
EIP155_PRIVATE_KEY = b"\x46" * 32


class DeterministicKeyStore(KeyStore):
    """
    In-memory key store double. eth_keys signs with RFC 6979 nonces, so every
    signature is reproducible.
    """

    def __init__(self, private_key=EIP155_PRIVATE_KEY, *, signature_format="rsv", high_s=False, approve=True, delay=0.0):
        self._private_key = keys.PrivateKey(private_key)
        self._format = signature_format
        self._high_s = high_s
        self.approve = approve
        self.delay = delay
        self.generated = []
        self.signed = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _gate(self, reason):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        if not self.approve:
            raise AuthenticationFailed(f"authentication declined: {reason}")

    async def generate_key_pair(self, key_id):
        await self._gate("create")
        self.generated.append(key_id)
        return KeyPairHandle(key_id=key_id, store="deterministic")

    async def lookup(self, key_id):
        if not self.generated:
            raise KeyNotFound(f"no key in slot {key_id}")
        return KeyPairHandle(key_id=key_id, store="deterministic")

    async def public_key(self, handle):
        return self._private_key.public_key.to_bytes()

    async def sign(self, handle, digest):
        await self._gate("sign")
        self.signed.append(digest)
        sig = self._private_key.sign_msg_hash(digest)
        r, s, v = sig.r, sig.s, sig.v
        if self._high_s:
            s, v = SECP256K1_N - s, v ^ 1
        if self._format == "der":
            return encode_dss_signature(r, s)
        if self._format == "rs":
            return r.to_bytes(32, "big") + s.to_bytes(32, "big")
        return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([v])

    async def authenticate(self, reason):
        await self._gate(reason)

    @property
    def address(self):
        return self._private_key.public_key.to_checksum_address()


@pytest.fixture
def key_store():
    return DeterministicKeyStore()


@pytest.fixture
def eip155_tx():
    from wallet.transaction import UnsignedTransaction

    return UnsignedTransaction(
        nonce=9,
        gas_price=20 * 10**9,
        gas_limit=21000,
        to="0x3535353535353535353535353535353535353535",
        value=10**18,
        data=b"",
        chain_id=1,
    )


@pytest.fixture
def make_key_store():
    return DeterministicKeyStore
