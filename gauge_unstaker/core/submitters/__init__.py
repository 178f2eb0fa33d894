from gauge_unstaker.core.submitters.base import Submitter, SubmitterCapability
from gauge_unstaker.core.submitters.local import LocalAccountSubmitter
from gauge_unstaker.core.submitters.safe import SafeSubmitter
from gauge_unstaker.core.submitters.wallet_rpc import WalletRpcSubmitter

__all__ = [
    "LocalAccountSubmitter",
    "SafeSubmitter",
    "Submitter",
    "SubmitterCapability",
    "WalletRpcSubmitter",
]
