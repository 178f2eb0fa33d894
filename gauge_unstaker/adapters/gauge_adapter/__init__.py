from .adapter import GaugeAdapter

__all__ = ["GaugeAdapter"]
