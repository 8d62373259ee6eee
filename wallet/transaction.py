"""
Legacy (type 0) Ethereum transactions with EIP-155 replay protection.

The unsigned encoding is the 9-item list
``[nonce, gasPrice, gasLimit, to, value, data, chainId, 0, 0]``; once a
signature is attached the last three items become ``[v, r, s]``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from eth_utils import keccak

from encoding import rlp
from encoding.abi import UINT256_MAX, encode_transfer
from encoding.address import AddressLike, to_address, validate_address
from encoding.hexutil import decode_hex, encode_hex
from errors import InvalidData, MissingSignature, ValueOverflow

EIP155_OFFSET = 35

# EIP-2681
NONCE_MAX = 2**64 - 1


@dataclass(frozen=True)
class UnsignedTransaction:
    nonce: int
    gas_price: int
    gas_limit: int
    to: str
    value: int
    data: bytes = b""
    chain_id: int = 1

    def __str__(self) -> str:
        return (
            "Transaction:\n"
            f"  To: {self.to}\n"
            f"  Value: {self.value} Wei\n"
            f"  Nonce: {self.nonce}\n"
            f"  Gas Price: {self.gas_price} Wei\n"
            f"  Gas Limit: {self.gas_limit}\n"
            f"  Chain ID: {self.chain_id}\n"
            f"  Data: {self.data.hex()}"
        )


@dataclass(frozen=True)
class Signature:
    """EIP-155 adjusted ``v`` plus the ECDSA ``r`` and ``s`` scalars."""

    v: int
    r: int
    s: int

    def __post_init__(self) -> None:
        for name in ("v", "r", "s"):
            x = getattr(self, name)
            if isinstance(x, bool) or not isinstance(x, int) or x < 0:
                raise InvalidData(f"signature {name} must be a non-negative int", {"field": name})
            if x > UINT256_MAX:
                raise ValueOverflow(f"signature {name} exceeds 256 bits", {"field": name})


@dataclass(frozen=True)
class SignedTransaction:
    transaction: UnsignedTransaction
    signature: Signature

    def __str__(self) -> str:
        return (
            f"{self.transaction}\n"
            "  Signature:\n"
            f"    v: {self.signature.v}\n"
            f"    r: {self.signature.r}\n"
            f"    s: {self.signature.s}"
        )


def eip155_v(recovery_id: int, chain_id: int) -> int:
    return recovery_id + chain_id * 2 + EIP155_OFFSET


def validate_transaction(tx: UnsignedTransaction) -> None:
    validate_address(tx.to)
    for name in ("nonce", "gas_price", "gas_limit", "value", "chain_id"):
        x = getattr(tx, name)
        if isinstance(x, bool) or not isinstance(x, int) or x < 0:
            raise InvalidData(f"{name} must be a non-negative int", {"field": name})
        limit = NONCE_MAX if name == "nonce" else UINT256_MAX
        if x > limit:
            raise ValueOverflow(f"{name} exceeds its field width", {"field": name})
    for name in ("gas_price", "gas_limit", "chain_id"):
        if getattr(tx, name) <= 0:
            raise InvalidData(f"{name} must be greater than zero", {"field": name})
    if not isinstance(tx.data, (bytes, bytearray)):
        raise InvalidData("data must be bytes", {"field": "data"})


def _common_fields(tx: UnsignedTransaction) -> list:
    return [
        rlp.RLPInt(tx.nonce),
        rlp.RLPInt(tx.gas_price),
        rlp.RLPInt(tx.gas_limit),
        rlp.RLPBytes(validate_address(tx.to).raw),
        rlp.RLPInt(tx.value),
        rlp.RLPBytes(tx.data),
    ]


def encode_unsigned(tx: UnsignedTransaction) -> bytes:
    validate_transaction(tx)
    fields = _common_fields(tx) + [rlp.RLPInt(tx.chain_id), rlp.RLPInt(0), rlp.RLPInt(0)]
    return rlp.encode(rlp.RLPList(fields))


def encode_signed(signed: Union[SignedTransaction, UnsignedTransaction]) -> bytes:
    if not isinstance(signed, SignedTransaction) or signed.signature is None:
        raise MissingSignature("transaction has no signature attached")
    validate_transaction(signed.transaction)
    sig = signed.signature
    fields = _common_fields(signed.transaction) + [rlp.RLPInt(sig.v), rlp.RLPInt(sig.r), rlp.RLPInt(sig.s)]
    return rlp.encode(rlp.RLPList(fields))


def attach_signature(tx: UnsignedTransaction, signature: Signature) -> SignedTransaction:
    """
    Pair a transaction with a signature. ``signature.v`` must already be
    chain-id adjusted (see ``eip155_v``).
    """
    return SignedTransaction(transaction=tx, signature=signature)


def signing_hash(tx: UnsignedTransaction) -> bytes:
    return keccak(encode_unsigned(tx))


def transaction_hash(signed: SignedTransaction) -> bytes:
    return keccak(encode_signed(signed))


def build_token_transfer(
    token: AddressLike,
    recipient: AddressLike,
    amount: int,
    *,
    nonce: int,
    gas_price: int,
    gas_limit: int,
    chain_id: int = 1,
) -> UnsignedTransaction:
    """ERC-20 transfer: the call goes to the token contract and carries no ether."""
    return UnsignedTransaction(
        nonce=nonce,
        gas_price=gas_price,
        gas_limit=gas_limit,
        to="0x" + to_address(token).raw.hex(),
        value=0,
        data=encode_transfer(recipient, amount),
        chain_id=chain_id,
    )


def _to_int(v: Any, *, name: str) -> int:
    if v is None:
        raise InvalidData(f"Missing required tx field: {name}", {"field": name})
    if isinstance(v, bool):
        raise InvalidData(f"Invalid int field {name}: {v}", {"field": name})
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        try:
            if s.startswith("0x"):
                return int(s, 16)
            return int(s, 10)
        except ValueError:
            raise InvalidData(f"Invalid int field {name}: {v!r}", {"field": name}) from None
    raise InvalidData(f"Invalid int field {name}: {type(v).__name__}", {"field": name})


def _to_bytes(v: Any, *, name: str) -> bytes:
    if v is None:
        return b""
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    if isinstance(v, str):
        return decode_hex(v, name=name)
    raise InvalidData(f"Invalid bytes field {name}: {type(v).__name__}", {"field": name})


def transaction_from_fields(
    fields: Union[Mapping[str, Any], str],
    *,
    default_chain_id: int | None = None,
) -> UnsignedTransaction:
    """
    Build a transaction from loosely-typed wallet fields (a mapping or its JSON).

    Integers may be ints, decimal strings or 0x hex strings. ``gas`` is accepted
    as an alias of ``gasLimit``.
    """
    if isinstance(fields, str):
        try:
            fields = json.loads(fields)
        except json.JSONDecodeError as exc:
            raise InvalidData(f"transaction fields are not valid JSON: {exc}") from exc
    if not isinstance(fields, Mapping):
        raise InvalidData("transaction fields must be an object")

    chain_id = fields.get("chainId")
    if chain_id is None:
        chain_id = default_chain_id
    gas_limit = fields.get("gasLimit")
    if gas_limit is None:
        gas_limit = fields.get("gas")
    to = fields.get("to")
    if not isinstance(to, str):
        raise InvalidData("Missing required tx field: to", {"field": "to"})

    return UnsignedTransaction(
        nonce=_to_int(fields.get("nonce", 0), name="nonce"),
        gas_price=_to_int(fields.get("gasPrice"), name="gasPrice"),
        gas_limit=_to_int(gas_limit, name="gasLimit"),
        to=to,
        value=_to_int(fields.get("value", 0), name="value"),
        data=_to_bytes(fields.get("data"), name="data"),
        chain_id=_to_int(chain_id, name="chainId"),
    )


def transaction_to_dict(signed: SignedTransaction) -> Dict[str, Any]:
    tx = signed.transaction
    return {
        "nonce": tx.nonce,
        "gasPrice": tx.gas_price,
        "gasLimit": tx.gas_limit,
        "to": tx.to,
        "value": tx.value,
        "data": encode_hex(tx.data),
        "chainId": tx.chain_id,
        "v": signed.signature.v,
        "r": hex(signed.signature.r),
        "s": hex(signed.signature.s),
        "hash": encode_hex(transaction_hash(signed)),
    }
