from .adapter import SafeAdapter

__all__ = ["SafeAdapter"]
