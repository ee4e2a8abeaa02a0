"""
Flobot Common Module

Shared infrastructure: configuration and rate limiting.
"""

from .config import FlobotConfig, InstanceConfig, RuntimeConfig, load_config
from .tempo import Tempo

__all__ = [
    "FlobotConfig",
    "InstanceConfig",
    "RuntimeConfig",
    "load_config",
    "Tempo",
]
