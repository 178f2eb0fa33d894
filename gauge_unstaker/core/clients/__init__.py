from gauge_unstaker.core.clients.NftMetadataClient import NftMetadataClient
from gauge_unstaker.core.clients.SafeTransactionServiceClient import (
    SafeTransactionServiceClient,
)

__all__ = [
    "NftMetadataClient",
    "SafeTransactionServiceClient",
]
