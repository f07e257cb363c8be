"""
HdfsGate security module.

Provides path validation and blacklist enforcement for remote paths.
"""

import posixpath
from typing import Iterable, Optional

from hdfsgate.shared.gate import GateLogger

from .errors import BlacklistedPathError, InvalidPathError
from .models import PathPolicy

_log = GateLogger.get("PathGuard")


def validate_path(path: Optional[str], label: str = "Path") -> str:
    """
    Validate a remote path and return its normalized form.

    Args:
        path: Raw path string
        label: Name used in error messages (e.g. "sourcePath")

    Returns:
        Normalized path

    Raises:
        InvalidPathError: if the path is empty, blank or lacks the "/" prefix
    """
    if path is None or not path.strip():
        raise InvalidPathError(f"{label} cannot be empty.")

    if len(path) > 1 and not path.startswith("/"):
        raise InvalidPathError(
            f"{label} error: must use a valid absolute-path prefix, such as /one (got {path!r})"
        )

    if len(path) == 1:
        return path

    # normpath keeps a leading "//", which HDFS treats as "/"
    normalized = posixpath.normpath(path)
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def require_local_path(path: Optional[str], label: str = "Local path") -> str:
    """Reject empty or blank local filesystem paths."""
    if path is None or not str(path).strip():
        raise InvalidPathError(f"{label} cannot be empty.")
    return str(path)


def top_level_segment(path: str) -> Optional[str]:
    """Return the first component after the leading slash, if any."""
    segments = path.split("/")
    if len(segments) < 2:
        return None
    return segments[1]


def is_blacklisted(path: str, blacklist: Iterable[str]) -> bool:
    """
    Check whether a path falls under a reserved top-level directory.

    Only exact matches of the first path component count, so with
    ``{"tmp"}`` the path ``/tmp/x`` is blacklisted and ``/tmpdir/x`` is not.

    Args:
        path: Validated path
        blacklist: Reserved directory names

    Returns:
        True if the path is in the blacklist
    """
    segment = top_level_segment(path)
    if segment is None:
        return False
    return any(segment == key for key in blacklist)


def check_mutation_allowed(path: str, policy: PathPolicy) -> None:
    """
    Guard a mutating operation against the path policy.

    The path must already have passed validate_path.

    Raises:
        InvalidPathError: if the path names no top-level directory
        BlacklistedPathError: if the top-level directory is reserved
    """
    if not top_level_segment(path):
        raise InvalidPathError(
            f"Path error: {path!r} does not name a directory below the root"
        )

    if is_blacklisted(path, policy.blacklist):
        _log.warning(f"Denied mutation of reserved path {path}")
        raise BlacklistedPathError(path, policy.blacklist)
