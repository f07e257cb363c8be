"""
HdfsGate error types.

Every failure raised by the gate derives from HdfsGateError.
"""

from typing import Iterable, List, Optional


class HdfsGateError(Exception):
    """Base class for all HdfsGate errors."""
    pass


class InvalidPathError(HdfsGateError, ValueError):
    """Raised when a path is empty, blank or not absolute."""
    pass


class ConfigError(HdfsGateError):
    """Raised when the cluster configuration is incomplete or inconsistent."""
    pass


class HdfsConnectionError(HdfsGateError):
    """Raised when the filesystem client cannot be constructed."""
    pass


class BlacklistedPathError(HdfsGateError):
    """Raised when a mutating operation targets a reserved top-level directory."""

    def __init__(self, path: str, reserved: Iterable[str]):
        self.path = path
        self.reserved: List[str] = sorted(reserved)
        super().__init__(
            "No permission to operate. Files in the following directories "
            f"cannot be updated: {self.reserved} (path: {path})"
        )


class FileTooLargeError(HdfsGateError):
    """Raised when a text read exceeds the size ceiling."""

    def __init__(self, path: str, size: int, limit: int):
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(
            f"File size {size} of {path} is over the {limit} byte limit for text reads"
        )


class PathIsDirectoryError(HdfsGateError):
    """Raised when an operation expects a file but found a directory."""
    pass


class PathNotFoundError(HdfsGateError):
    """Raised when an operation requires an existing path."""
    pass


class DirectoryNotEmptyError(HdfsGateError):
    """Raised when a non-recursive delete targets a populated directory."""
    pass


class RemoteOperationError(HdfsGateError):
    """Wraps an I/O failure reported by the filesystem client."""

    def __init__(self, message: str, operation: str, path: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        super().__init__(message)
