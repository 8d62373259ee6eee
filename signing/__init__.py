from .base import KeyPairHandle, KeyStore
from .factory import get_key_store
from .recovery import recover_signature
from .remote_keystore import RemoteKeyStore
from .serialized import SerializedKeyStore, ensure_serialized
from .software_keystore import SoftwareKeyStore

__all__ = [
    "KeyPairHandle",
    "KeyStore",
    "RemoteKeyStore",
    "SerializedKeyStore",
    "SoftwareKeyStore",
    "ensure_serialized",
    "get_key_store",
    "recover_signature",
]
