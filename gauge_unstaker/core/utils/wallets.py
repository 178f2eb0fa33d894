from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from eth_account import Account
from hexbytes import HexBytes

SignTransactionCallback = Callable[[dict[str, Any]], Awaitable[bytes]]
SignHashCallback = Callable[[bytes], Awaitable[bytes]]


@dataclass(frozen=True)
class LocalSigner:
    address: str
    sign_transaction: SignTransactionCallback
    sign_hash: SignHashCallback


def encode_signature(r: int, s: int, v: int) -> bytes:
    """Pack an ECDSA signature as ``r || s || v`` (65 bytes)."""
    return r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big") + bytes([v])


def make_local_signer(private_key: str) -> LocalSigner:
    account = Account.from_key(private_key)

    async def sign_transaction(tx: dict[str, Any]) -> bytes:
        signed = account.sign_transaction(tx)
        return signed.raw_transaction

    async def sign_hash(message_hash: bytes) -> bytes:
        # Safe accepts a raw-hash ECDSA signature with v in {27, 28}.
        signed = Account.unsafe_sign_hash(HexBytes(message_hash), private_key)
        return encode_signature(signed.r, signed.s, signed.v)

    return LocalSigner(
        address=account.address,
        sign_transaction=sign_transaction,
        sign_hash=sign_hash,
    )
