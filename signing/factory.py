from __future__ import annotations

from functools import lru_cache

from app.core.settings import KeyStoreType, settings

from .base import KeyStore
from .remote_keystore import RemoteKeyStore
from .software_keystore import SoftwareKeyStore


@lru_cache(maxsize=1)
def get_key_store() -> KeyStore:
    """
    Select the key store based on WALLET_KEYSTORE_TYPE.

    Supported:
    - software (default): in-process secp256k1 keys
    - remote: secure element / HSM proxy at KEYSTORE_REMOTE_URL
    """
    if settings.WALLET_KEYSTORE_TYPE == KeyStoreType.SOFTWARE:
        return SoftwareKeyStore()
    if settings.WALLET_KEYSTORE_TYPE == KeyStoreType.REMOTE:
        return RemoteKeyStore(
            settings.KEYSTORE_REMOTE_URL,
            settings.KEYSTORE_REMOTE_TOKEN,
            http_timeout=settings.HTTP_TIMEOUT_SEC,
        )
    raise ValueError(f"Unsupported WALLET_KEYSTORE_TYPE: {settings.WALLET_KEYSTORE_TYPE}")
