"""
Scoped handling of byte streams obtained from the filesystem client.
"""

from typing import Any, Optional

from hdfsgate.shared.gate import GateLogger

_log = GateLogger.get("StreamGuard")


def close_quietly(stream: Optional[Any], label: str = "stream") -> None:
    """Close a stream, logging instead of raising if the close fails."""
    if stream is None:
        return
    try:
        stream.close()
    except Exception:
        _log.exception(f"{label} close exception")


class StreamGuard:
    """
    Context manager that always closes the stream it guards.

    A failure inside the block propagates unchanged; a failure while
    closing is only logged.

    Usage:
        with StreamGuard(client.open(path), "inputStream") as stream:
            data = stream.read()
    """

    def __init__(self, stream: Any, label: str = "stream"):
        self.stream = stream
        self.label = label

    def __enter__(self) -> Any:
        return self.stream

    def __exit__(self, exc_type, exc, tb) -> bool:
        close_quietly(self.stream, self.label)
        return False
