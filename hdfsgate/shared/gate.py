"""
Logging and health helpers shared by the hdfsgate components.

GateLogger hands out loggers below the ``hdfsgate`` namespace, and
build_health_status assembles the payload reported by HdfsGate health checks.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable


ROOT_LOGGER_NAME = "hdfsgate"
LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


class GateLogger:
    """
    Loggers for hdfsgate components.

    ``GateLogger.get("StreamGuard")`` returns ``hdfsgate.StreamGuard``. The
    ``hdfsgate`` logger gets a stream handler on first use unless the host
    application already attached one.
    """

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def _ensure_configured(cls):
        if cls._configured:
            return

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if not root_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root_logger.addHandler(handler)
            root_logger.setLevel(logging.INFO)

        cls._configured = True

    @classmethod
    def get(cls, component: str) -> logging.Logger:
        """Logger named ``hdfsgate.<component>``."""
        cls._ensure_configured()

        name = f"{ROOT_LOGGER_NAME}.{component}"
        logger = cls._loggers.get(name)
        if logger is None:
            logger = cls._loggers[name] = logging.getLogger(name)
        return logger

    @classmethod
    def set_level(cls, level: Union[int, str], component: Optional[str] = None):
        """
        Change the level of one component, or of the whole tree.

        Args:
            level: logging constant or level name ("debug", "INFO", ...)
            component: component name, or None for the ``hdfsgate`` root

        Raises:
            ValueError: for an unknown level name
        """
        level = _to_level(level)
        if component:
            cls.get(component).setLevel(level)
            return
        cls._ensure_configured()
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


@runtime_checkable
class GateHealth(Protocol):
    """What a gate exposes for health monitoring."""

    @classmethod
    def is_healthy(cls) -> bool:
        ...

    @classmethod
    def get_health_status(cls) -> Dict[str, Any]:
        ...

    @classmethod
    def get_dependencies(cls) -> List[str]:
        ...


def build_health_status(
    gate_name: str,
    initialized: bool,
    dependencies: List[str],
    checks: Dict[str, bool],
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Assemble a health payload.

    The gate is healthy when it is initialized and no check failed; the
    names of failed checks are listed under ``failed``.
    """
    failed = sorted(name for name, passed in checks.items() if not passed)

    return {
        "gate": gate_name,
        "healthy": initialized and not failed,
        "initialized": initialized,
        "dependencies": list(dependencies),
        "checks": dict(checks),
        "failed": failed,
        "checked_at": datetime.now(timezone.utc).isoformat(),
        "details": details or {},
    }


def get_logger(component: str) -> logging.Logger:
    """Shortcut for GateLogger.get()."""
    return GateLogger.get(component)
