from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from web3 import AsyncWeb3

from gauge_unstaker.core.config import get_contract_overrides
from gauge_unstaker.core.constants.contracts import (
    GAUGE_ADDRESS,
    POSITION_MANAGER_ADDRESS,
)
from gauge_unstaker.core.constants.gauge_abi import GAUGE_ABI, POSITION_MANAGER_ABI


def resolve_contract_addresses(
    *, gauge: str | None = None, position_manager: str | None = None
) -> tuple[str, str]:
    overrides = get_contract_overrides()
    gauge_address = gauge or overrides.get("gauge") or GAUGE_ADDRESS
    nft_address = (
        position_manager or overrides.get("position_manager") or POSITION_MANAGER_ADDRESS
    )
    return (
        AsyncWeb3.to_checksum_address(gauge_address),
        AsyncWeb3.to_checksum_address(nft_address),
    )


@dataclass(frozen=True)
class ContractHandles:
    """Gauge and position-manager contracts bound to one web3 client."""

    web3: Any
    gauge: Any
    position_manager: Any

    @classmethod
    def from_web3(
        cls,
        web3: AsyncWeb3,
        *,
        gauge: str | None = None,
        position_manager: str | None = None,
    ) -> ContractHandles:
        gauge_address, nft_address = resolve_contract_addresses(
            gauge=gauge, position_manager=position_manager
        )
        return cls(
            web3=web3,
            gauge=web3.eth.contract(address=gauge_address, abi=GAUGE_ABI),
            position_manager=web3.eth.contract(
                address=nft_address, abi=POSITION_MANAGER_ABI
            ),
        )

    @property
    def gauge_address(self) -> str:
        return self.gauge.address

    @property
    def position_manager_address(self) -> str:
        return self.position_manager.address
