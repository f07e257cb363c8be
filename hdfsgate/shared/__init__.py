"""
Shared utilities for hdfsgate.

Provides access to common functionality used across Gate implementations.
"""

from hdfsgate.shared.gate import (
    GateLogger,
    GateHealth,
    build_health_status,
    get_logger,
)

__all__ = [
    # Gate utilities
    "GateLogger",
    "GateHealth",
    "build_health_status",
    "get_logger",
]
