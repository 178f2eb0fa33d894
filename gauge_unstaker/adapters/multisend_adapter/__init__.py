from .adapter import MultiSendAdapter, MultiSendTx

__all__ = ["MultiSendAdapter", "MultiSendTx"]
