from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NftMetadata(BaseModel):
    # tokenURI payloads carry arbitrary extra keys (e.g. "external_url").
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str | None = None
    description: str | None = None
    image: str | None = None
    attributes: list[dict[str, Any]] = Field(default_factory=list)


class SafeTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    to: str
    value: int = 0
    data: str
    operation: int = 0
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str
    refund_receiver: str
    nonce: int

    def hash_args(self) -> list[Any]:
        return [
            self.to,
            self.value,
            self.data,
            self.operation,
            self.safe_tx_gas,
            self.base_gas,
            self.gas_price,
            self.gas_token,
            self.refund_receiver,
            self.nonce,
        ]


class SafeProposal(BaseModel):
    safe_address: str
    safe_tx_hash: str
    sender: str
    signature: str
    threshold: int
    transaction: SafeTransaction

    def service_payload(self, *, origin: str | None = None) -> dict[str, Any]:
        tx = self.transaction
        payload: dict[str, Any] = {
            "to": tx.to,
            "value": str(tx.value),
            "data": tx.data,
            "operation": tx.operation,
            "safeTxGas": str(tx.safe_tx_gas),
            "baseGas": str(tx.base_gas),
            "gasPrice": str(tx.gas_price),
            "gasToken": tx.gas_token,
            "refundReceiver": tx.refund_receiver,
            "nonce": tx.nonce,
            "contractTransactionHash": self.safe_tx_hash,
            "sender": self.sender,
            "signature": self.signature,
        }
        if origin:
            payload["origin"] = origin
        return payload
