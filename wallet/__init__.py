"""Transaction building, signing orchestration and the front-end bridge."""

from .bridge import WalletBridge
from .jsonrpc import JSONRPCRequest, build_send_raw_transaction
from .orchestrator import WalletOrchestrator, personal_message_hash
from .transaction import (
    Signature,
    SignedTransaction,
    UnsignedTransaction,
    attach_signature,
    build_token_transfer,
    eip155_v,
    encode_signed,
    encode_unsigned,
    signing_hash,
    transaction_from_fields,
    transaction_hash,
    validate_transaction,
)

__all__ = [
    "JSONRPCRequest",
    "Signature",
    "SignedTransaction",
    "UnsignedTransaction",
    "WalletBridge",
    "WalletOrchestrator",
    "attach_signature",
    "build_send_raw_transaction",
    "build_token_transfer",
    "eip155_v",
    "encode_signed",
    "encode_unsigned",
    "personal_message_hash",
    "signing_hash",
    "transaction_from_fields",
    "transaction_hash",
    "validate_transaction",
]
