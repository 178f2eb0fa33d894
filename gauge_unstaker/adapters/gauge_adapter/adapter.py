from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, is_address, to_checksum_address

from gauge_unstaker.core.adapters.BaseAdapter import BaseAdapter
from gauge_unstaker.core.clients.NftMetadataClient import NftMetadataClient
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.constants.gauge_abi import ERC20_METADATA_ABI
from gauge_unstaker.core.errors import AggregationFailed, DiscoveryFailed
from gauge_unstaker.core.types import Batch, StakedPosition, TransactionIntent
from gauge_unstaker.core.utils.contracts import ContractHandles, resolve_contract_addresses
from gauge_unstaker.core.utils.web3 import web3_from_chain_id
from gauge_unstaker.core.utils.web3_batch import batch_web3_calls

GET_REWARD_SIGNATURE = "getReward(uint256)"
WITHDRAW_SIGNATURE = "withdraw(uint256)"


def encode_token_id_call(signature: str, token_id: int) -> str:
    selector = function_signature_to_4byte_selector(signature)
    return "0x" + (selector + encode(["uint256"], [int(token_id)])).hex()


class GaugeAdapter(BaseAdapter):
    adapter_type = "GAUGE"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int = CHAIN_ID_OPTIMISM,
        handles: ContractHandles | None = None,
        metadata_client: NftMetadataClient | None = None,
    ) -> None:
        super().__init__("gauge_adapter", config)
        cfg = config or {}
        self.chain_id = int(chain_id)
        self.gauge_address, self.position_manager_address = resolve_contract_addresses(
            gauge=cfg.get("gauge"), position_manager=cfg.get("position_manager")
        )
        self._handles_override = handles
        self._metadata_client = metadata_client

    @property
    def metadata_client(self) -> NftMetadataClient:
        if self._metadata_client is None:
            self._metadata_client = NftMetadataClient()
        return self._metadata_client

    @asynccontextmanager
    async def _handles(self) -> AsyncIterator[ContractHandles]:
        if self._handles_override is not None:
            yield self._handles_override
            return
        async with web3_from_chain_id(self.chain_id) as web3:
            yield ContractHandles.from_web3(
                web3,
                gauge=self.gauge_address,
                position_manager=self.position_manager_address,
            )

    async def discover_positions(self, depositor: str) -> list[int]:
        """Token ids currently staked in the gauge by ``depositor`` (may be empty)."""
        if not depositor or not is_address(depositor):
            raise DiscoveryFailed(f"Invalid depositor address: {depositor!r}")
        depositor = to_checksum_address(depositor)

        try:
            async with self._handles() as handles:
                staked = await handles.gauge.functions.stakedValues(depositor).call()
        except Exception as exc:
            raise DiscoveryFailed(
                f"stakedValues read failed for {depositor}: {exc}"
            ) from exc

        token_ids = [int(t) for t in staked]
        self.logger.info(f"{depositor} has {len(token_ids)} staked position(s)")
        return token_ids

    async def aggregate(
        self, depositor: str, token_ids: Iterable[int]
    ) -> list[StakedPosition]:
        """Read pending reward and NFT metadata for every token id.

        ``earned`` and ``tokenURI`` for one position go out as a single
        JSON-RPC batch; positions fan out concurrently. The first failure
        cancels the remaining reads and aborts the whole aggregation.
        Results keep the order of ``token_ids``.
        """
        token_ids = [int(t) for t in token_ids]
        if not token_ids:
            return []
        depositor = to_checksum_address(depositor)

        async with self._handles() as handles:

            async def _position(token_id: int) -> StakedPosition:
                try:
                    earned, token_uri = await batch_web3_calls(
                        handles.web3,
                        lambda: handles.gauge.functions.earned(
                            depositor, token_id
                        ).call(),
                        lambda: handles.position_manager.functions.tokenURI(
                            token_id
                        ).call(),
                    )
                    metadata = await self.metadata_client.fetch(token_uri)
                except Exception as exc:
                    raise AggregationFailed(
                        f"Failed to read position {token_id}: {exc}",
                        token_id=token_id,
                    ) from exc
                return StakedPosition(
                    token_id=token_id, earned_rewards=int(earned), metadata=metadata
                )

            try:
                async with asyncio.TaskGroup() as tg:
                    tasks = [tg.create_task(_position(t)) for t in token_ids]
            except ExceptionGroup as group:
                failures = [
                    e for e in group.exceptions if isinstance(e, AggregationFailed)
                ]
                if not failures:
                    raise
                raise failures[0]

        return [task.result() for task in tasks]

    async def reward_token(self) -> str:
        async with self._handles() as handles:
            token = await handles.gauge.functions.rewardToken().call()
        return to_checksum_address(token)

    async def reward_token_info(self) -> dict[str, Any]:
        async with self._handles() as handles:
            token = to_checksum_address(
                await handles.gauge.functions.rewardToken().call()
            )
            erc20 = handles.web3.eth.contract(address=token, abi=ERC20_METADATA_ABI)
            symbol, decimals = await batch_web3_calls(
                handles.web3,
                lambda: erc20.functions.symbol().call(),
                lambda: erc20.functions.decimals().call(),
            )
        return {"address": token, "symbol": str(symbol), "decimals": int(decimals)}

    def build_claim_intent(self, token_id: int) -> TransactionIntent:
        return TransactionIntent(
            target=self.gauge_address,
            calldata=encode_token_id_call(GET_REWARD_SIGNATURE, token_id),
            value=0,
            token_id=int(token_id),
            action="claim",
        )

    def build_withdraw_intent(self, token_id: int) -> TransactionIntent:
        return TransactionIntent(
            target=self.gauge_address,
            calldata=encode_token_id_call(WITHDRAW_SIGNATURE, token_id),
            value=0,
            token_id=int(token_id),
            action="withdraw",
        )

    def compile(
        self, positions: Iterable[StakedPosition], *, depositor: str | None = None
    ) -> Batch:
        """Flatten positions into ``[claim(a), withdraw(a), claim(b), withdraw(b), ...]``.

        Claiming first keeps unclaimed rewards from being lost when the
        position leaves the gauge.
        """
        intents: list[TransactionIntent] = []
        for position in positions:
            intents.append(self.build_claim_intent(position.token_id))
            intents.append(self.build_withdraw_intent(position.token_id))
        return Batch(
            depositor=to_checksum_address(depositor) if depositor else "",
            chain_id=self.chain_id,
            intents=tuple(intents),
        )

    async def close(self) -> None:
        if self._metadata_client is not None:
            await self._metadata_client.close()
