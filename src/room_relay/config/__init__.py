"""
Configuration management for the Room Relay system.

This package provides:
- The RelayConfig settings dataclass and its validation
- Environment variable and .env file loading
"""

from .settings import RelayConfig, RelayConfigManager

__all__ = [
    "RelayConfig",
    "RelayConfigManager",
]
