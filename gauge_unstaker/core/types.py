from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from eth_utils import to_checksum_address

from gauge_unstaker.core.adapters.models import NftMetadata

IntentAction = Literal["claim", "withdraw"]


@dataclass(frozen=True)
class StakedPosition:
    token_id: int
    earned_rewards: int
    metadata: NftMetadata = field(default_factory=NftMetadata)

    @property
    def name(self) -> str:
        return self.metadata.name or f"Position #{self.token_id}"


@dataclass(frozen=True)
class TransactionIntent:
    target: str
    calldata: str
    value: int = 0
    token_id: int | None = None
    action: IntentAction | None = None

    def as_transaction(self, from_address: str, chain_id: int) -> dict[str, Any]:
        return {
            "chainId": int(chain_id),
            "from": to_checksum_address(from_address),
            "to": to_checksum_address(self.target),
            "data": self.calldata,
            "value": int(self.value),
        }

    def as_call(self) -> dict[str, str]:
        return {"to": self.target, "data": self.calldata, "value": hex(self.value)}


@dataclass(frozen=True)
class Batch:
    depositor: str
    chain_id: int
    intents: tuple[TransactionIntent, ...] = ()

    def __len__(self) -> int:
        return len(self.intents)

    def __iter__(self) -> Iterator[TransactionIntent]:
        return iter(self.intents)

    def __getitem__(self, index: int) -> TransactionIntent:
        return self.intents[index]

    @property
    def is_empty(self) -> bool:
        return not self.intents

    @property
    def token_ids(self) -> list[int]:
        seen: list[int] = []
        for intent in self.intents:
            if intent.token_id is not None and intent.token_id not in seen:
                seen.append(intent.token_id)
        return seen


def total_earned(positions: list[StakedPosition]) -> int:
    return sum(int(p.earned_rewards) for p in positions)
