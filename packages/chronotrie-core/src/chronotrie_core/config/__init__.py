from .loader import load_config
from .models import ChronotrieConfig, ClockConfig, TrieConfig

__all__ = [
    "ChronotrieConfig",
    "ClockConfig",
    "TrieConfig",
    "load_config",
]
