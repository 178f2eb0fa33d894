from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from eth_utils import is_address, to_checksum_address

from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM
from gauge_unstaker.core.constants.contracts import DEFAULT_DEPOSITOR_ADDRESS
from gauge_unstaker.core.errors import DiscoveryFailed
from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability


@dataclass
class WorkflowContext:
    """State shared by the stages of one unstaking session.

    Holds the depositor being inspected, the submitters available to send
    with, their capabilities once asked for, and a busy flag for callers
    that render progress.
    """

    depositor: str = DEFAULT_DEPOSITOR_ADDRESS
    chain_id: int = CHAIN_ID_OPTIMISM
    submitter: Submitter | None = None
    safe_submitter: Submitter | None = None
    capabilities: dict[str, SubmitterCapability] = field(default_factory=dict)
    _busy_depth: int = field(default=0, repr=False)

    @property
    def is_loading(self) -> bool:
        return self._busy_depth > 0

    @contextmanager
    def busy(self) -> Iterator[None]:
        self._busy_depth += 1
        try:
            yield
        finally:
            self._busy_depth -= 1

    def resolve_depositor(self, depositor: str | None = None) -> str:
        address = depositor or self.depositor
        if not address or not is_address(address):
            raise DiscoveryFailed(f"Invalid depositor address: {address!r}")
        return to_checksum_address(address)

    async def capability_for(self, submitter: Submitter) -> SubmitterCapability:
        key = submitter.cache_key
        if key not in self.capabilities:
            self.capabilities[key] = await submitter.capability()
        return self.capabilities[key]

    def is_safe_depositor(self, depositor: str) -> bool:
        if self.safe_submitter is None or not self.safe_submitter.address:
            return False
        return to_checksum_address(depositor) == to_checksum_address(
            self.safe_submitter.address
        )
