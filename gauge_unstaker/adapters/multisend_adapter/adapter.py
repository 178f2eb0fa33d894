from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_abi.packed import encode_packed
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from hexbytes import HexBytes

from gauge_unstaker.core.adapters.BaseAdapter import BaseAdapter
from gauge_unstaker.core.constants.contracts import SAFE_MULTI_SEND_CALL_ONLY_ADDRESS
from gauge_unstaker.core.types import TransactionIntent

OPERATION_CALL = 0
OPERATION_DELEGATE_CALL = 1

MULTI_SEND_SELECTOR = function_signature_to_4byte_selector("multiSend(bytes)")

# operation (1) + to (20) + value (32) + data length (32)
_PACKED_HEADER_LEN = 1 + 20 + 32 + 32


@dataclass(frozen=True)
class MultiSendTx:
    to: str
    value: int
    data: bytes
    operation: int = OPERATION_CALL

    def encode_packed(self) -> bytes:
        return encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [self.operation, self.to, int(self.value), len(self.data), self.data],
        )


class MultiSendAdapter(BaseAdapter):
    """Packs a list of calls into one Safe ``MultiSendCallOnly.multiSend`` call."""

    adapter_type = "MULTISEND"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        address: str | None = None,
    ) -> None:
        super().__init__("multisend_adapter", config)
        self.address = to_checksum_address(address or SAFE_MULTI_SEND_CALL_ONLY_ADDRESS)

    def build_tx(self, intent: TransactionIntent | MultiSendTx) -> MultiSendTx:
        if isinstance(intent, MultiSendTx):
            return intent
        return MultiSendTx(
            to=to_checksum_address(intent.target),
            value=int(intent.value),
            data=self._normalize_call_data(intent.calldata),
            operation=OPERATION_CALL,
        )

    def encode_transactions(
        self, intents: Iterable[TransactionIntent | MultiSendTx]
    ) -> bytes:
        return b"".join(self.build_tx(i).encode_packed() for i in intents)

    def encode_multisend(
        self, intents: Iterable[TransactionIntent | MultiSendTx]
    ) -> str:
        """Calldata for ``multiSend(bytes)`` covering every intent, in order."""
        txs = list(intents)
        if not txs:
            raise ValueError("Cannot build a multiSend call with no transactions")
        packed = self.encode_transactions(txs)
        self.logger.debug(f"Packed {len(txs)} call(s) into {len(packed)} bytes")
        return "0x" + (MULTI_SEND_SELECTOR + encode(["bytes"], [packed])).hex()

    @staticmethod
    def decode_multisend(calldata: bytes | str) -> list[MultiSendTx]:
        raw = MultiSendAdapter._normalize_call_data(calldata)
        if raw[:4] != MULTI_SEND_SELECTOR:
            raise ValueError("Calldata is not a multiSend(bytes) call")
        (packed,) = decode(["bytes"], raw[4:])
        return MultiSendAdapter.decode_transactions(packed)

    @staticmethod
    def decode_transactions(packed: bytes) -> list[MultiSendTx]:
        txs: list[MultiSendTx] = []
        offset = 0
        while offset < len(packed):
            if offset + _PACKED_HEADER_LEN > len(packed):
                raise ValueError("Truncated multiSend payload")
            operation = packed[offset]
            to = to_checksum_address("0x" + packed[offset + 1 : offset + 21].hex())
            value = int.from_bytes(packed[offset + 21 : offset + 53], "big")
            length = int.from_bytes(packed[offset + 53 : offset + 85], "big")
            start = offset + _PACKED_HEADER_LEN
            data = bytes(packed[start : start + length])
            if len(data) != length:
                raise ValueError("Truncated multiSend payload")
            txs.append(MultiSendTx(to=to, value=value, data=data, operation=operation))
            offset = start + length
        return txs

    @staticmethod
    def as_intents(txs: Sequence[MultiSendTx]) -> list[TransactionIntent]:
        return [
            TransactionIntent(target=tx.to, calldata="0x" + tx.data.hex(), value=tx.value)
            for tx in txs
        ]

    @staticmethod
    def _normalize_call_data(data: bytes | str) -> bytes:
        if isinstance(data, HexBytes):
            return bytes(data)
        if isinstance(data, bytes):
            return data
        if isinstance(data, str):
            if data.startswith("0x"):
                return bytes.fromhex(data[2:])
            return bytes.fromhex(data)
        raise TypeError("Unsupported calldata type")
