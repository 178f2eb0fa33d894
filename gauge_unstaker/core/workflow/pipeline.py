from __future__ import annotations

from loguru import logger

from gauge_unstaker.adapters.gauge_adapter.adapter import GaugeAdapter
from gauge_unstaker.core.config import (
    get_depositor_address,
    get_safe_address,
    get_wallet_address,
    get_wallet_private_key,
    get_wallet_rpc_url,
)
from gauge_unstaker.core.adapters.decorators import stage_result
from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.constants.contracts import DEFAULT_DEPOSITOR_ADDRESS
from gauge_unstaker.core.errors import (
    DiscoveryFailed,
    NoSigner,
    SubmissionFailed,
    as_workflow_error,
)
from gauge_unstaker.core.submitters.base import Submitter
from gauge_unstaker.core.submitters.local import LocalAccountSubmitter
from gauge_unstaker.core.submitters.safe import SafeSubmitter
from gauge_unstaker.core.submitters.wallet_rpc import WalletRpcSubmitter
from gauge_unstaker.core.types import Batch, StakedPosition, total_earned
from gauge_unstaker.core.utils.units import format_units
from gauge_unstaker.core.utils.wallets import make_local_signer
from gauge_unstaker.core.workflow.context import WorkflowContext
from gauge_unstaker.core.workflow.results import SubmissionResult, SubmissionState
from gauge_unstaker.core.workflow.submission import submit


class UnstakeWorkflow:
    """Discover -> aggregate -> compile -> submit for one gauge depositor."""

    def __init__(
        self,
        context: WorkflowContext | None = None,
        *,
        gauge: GaugeAdapter | None = None,
    ) -> None:
        self.context = context or WorkflowContext()
        self.gauge = gauge or GaugeAdapter(chain_id=self.context.chain_id)
        self.logger = logger.bind(workflow=self.__class__.__name__)

    @classmethod
    def from_config(cls, *, chain_id: int = CHAIN_ID_OPTIMISM) -> UnstakeWorkflow:
        """Build submitters from the loaded ``CONFIG``.

        A private key gives a local account (and the Safe owner signer); a
        wallet RPC URL without a key gives an external wallet submitter.
        """
        private_key = get_wallet_private_key()
        signer = make_local_signer(private_key) if private_key else None

        submitter: Submitter | None = None
        if signer is not None:
            submitter = LocalAccountSubmitter(signer, chain_id=chain_id)
        elif get_wallet_rpc_url() and get_wallet_address():
            submitter = WalletRpcSubmitter(get_wallet_address(), chain_id=chain_id)

        safe_address = get_safe_address()
        safe_submitter = (
            SafeSubmitter(safe_address, signer=signer, chain_id=chain_id)
            if safe_address
            else None
        )

        context = WorkflowContext(
            depositor=get_depositor_address() or DEFAULT_DEPOSITOR_ADDRESS,
            chain_id=chain_id,
            submitter=submitter,
            safe_submitter=safe_submitter,
        )
        return cls(context)

    @property
    def is_loading(self) -> bool:
        return self.context.is_loading

    @stage_result(DiscoveryFailed)
    async def get_staked(self, depositor: str | None = None) -> list[StakedPosition]:
        with self.context.busy():
            address = self.context.resolve_depositor(depositor)
            token_ids = await self.gauge.discover_positions(address)
            return await self.gauge.aggregate(address, token_ids)

    @stage_result(SubmissionFailed)
    async def compile_txs(
        self, positions: list[StakedPosition], depositor: str | None = None
    ) -> Batch:
        return self.gauge.compile(
            positions, depositor=self.context.resolve_depositor(depositor)
        )

    async def execute_transactions_in_order(self, batch: Batch) -> SubmissionResult:
        """Send from the depositor's own account, atomically when the wallet can."""
        return await self._execute(batch, self.context.submitter, "signer")

    async def execute_safe_transactions(self, batch: Batch) -> SubmissionResult:
        """Propose the batch to the configured Safe for its owners to confirm."""
        return await self._execute(batch, self.context.safe_submitter, "Safe")

    async def _execute(
        self, batch: Batch, submitter: Submitter | None, label: str
    ) -> SubmissionResult:
        with self.context.busy():
            if submitter is None:
                error = NoSigner(f"No {label} configured")
                self.logger.error(f"Error in submission: {error!r}")
                return SubmissionResult(state=SubmissionState.FAILED, error=error)
            if batch.is_empty:
                return await submit(batch, submitter)
            try:
                capability = await self.context.capability_for(submitter)
            except Exception as exc:
                error = as_workflow_error(exc, SubmissionFailed)
                self.logger.error(f"Error in capability check: {error!r}")
                return SubmissionResult(state=SubmissionState.FAILED, error=error)
            return await submit(batch, submitter, capability=capability)

    async def run(self, depositor: str | None = None) -> SubmissionResult:
        with self.context.busy():
            staked = await self.get_staked(depositor)
            if not staked.ok:
                return SubmissionResult(state=SubmissionState.FAILED, error=staked.error)

            compiled = await self.compile_txs(staked.value, depositor)
            if not compiled.ok:
                return SubmissionResult(
                    state=SubmissionState.FAILED, error=compiled.error
                )

            batch = compiled.value
            self.logger.info(
                f"Unstaking {len(staked.value)} position(s) for {batch.depositor} "
                f"with {format_units(total_earned(staked.value))} pending rewards"
            )
            if self.context.is_safe_depositor(batch.depositor):
                return await self.execute_safe_transactions(batch)
            return await self.execute_transactions_in_order(batch)

    async def close(self) -> None:
        await self.gauge.close()
        for submitter in (self.context.submitter, self.context.safe_submitter):
            if submitter is not None:
                await submitter.close()
