from gauge_unstaker.core.constants.chains import CHAIN_ID_OPTIMISM, SUPPORTED_CHAINS
from gauge_unstaker.core.constants.contracts import (
    GAUGE_ADDRESS,
    POSITION_MANAGER_ADDRESS,
    ZERO_ADDRESS,
)

__all__ = [
    "CHAIN_ID_OPTIMISM",
    "GAUGE_ADDRESS",
    "POSITION_MANAGER_ADDRESS",
    "SUPPORTED_CHAINS",
    "ZERO_ADDRESS",
]
