"""
HdfsGate - Guarded HDFS access.

Provides:
- Single-namenode or HA (two namenode) connection from configuration
- Path validation on every operation
- Blacklisted top-level directories that cannot be modified
- A size ceiling on text reads
- Streams that are always closed

Usage:
    from hdfsgate.HdfsGate import HdfsGate

    # Initialize (call on startup, reads HDFS_* configuration)
    HdfsGate.initialize()

    # Create a directory and upload a file
    HdfsGate.mkdir("/data/reports")
    HdfsGate.upload_content("/data/reports", b"a,b\\n1,2\\n", "q1.csv")

    # Read it back
    text = HdfsGate.read_file_as_text("/data/reports/q1.csv")
"""

from typing import Any, Dict, List, Optional

from hdfsgate.shared.gate import (
    GateLogger,
    build_health_status,
)
from hdfsgate import Config

from .models import (
    BlockLocation,
    ClusterConfig,
    FileEntry,
    HdfsProperties,
    HighAvailabilityClusterConfig,
    PathPolicy,
    RemoteFileStatus,
    SimpleClusterConfig,
)
from .errors import (
    BlacklistedPathError,
    ConfigError,
    DirectoryNotEmptyError,
    FileTooLargeError,
    HdfsConnectionError,
    HdfsGateError,
    InvalidPathError,
    PathIsDirectoryError,
    PathNotFoundError,
    RemoteOperationError,
)
from .client import ArrowHadoopClient, HadoopClient
from .connection import build_client, connect, resolve_cluster_config
from .security import is_blacklisted, validate_path
from .service import COPY_BUFFER_SIZE, FILE_SIZE_LIMIT, HdfsService
from .streams import StreamGuard, close_quietly

# Logger for this gate
_log = GateLogger.get("HdfsGate")

# Module-level state
_service: Optional[HdfsService] = None
_cluster: Optional[ClusterConfig] = None
_initialized: bool = False


class HdfsGate:
    """
    Main interface for HDFS access.

    All methods are class methods for easy access throughout the application.
    The bound HdfsService is created once and never mutated.
    """

    @classmethod
    def initialize(
        cls,
        properties: Optional[HdfsProperties] = None,
        client: Optional[HadoopClient] = None,
        client_factory=ArrowHadoopClient,
    ) -> bool:
        """
        Initialize the gate.

        Args:
            properties: Connection settings (default: read from hdfsgate.Config)
            client: Pre-built client; skips connection resolution
            client_factory: Client constructor used when connecting

        Returns:
            True if initialization successful

        Raises:
            ConfigError: if the configuration is incomplete
            HdfsConnectionError: if the client cannot be constructed
        """
        global _service, _cluster, _initialized

        if properties is None:
            manager = Config.get_manager()
            properties = HdfsProperties.from_config(manager)
            level = manager.get("HDFS_LOG_LEVEL", "INFO")
            try:
                GateLogger.set_level(level)
            except ValueError as e:
                _log.error(f"Initialization failed: {e}")
                raise ConfigError(f"Invalid HDFS_LOG_LEVEL: {level!r}") from e

        cluster = None
        try:
            if client is None:
                cluster = resolve_cluster_config(properties)
                client = build_client(cluster, properties.username, client_factory)
        except (ConfigError, HdfsConnectionError) as e:
            _log.error(f"Initialization failed: {e}")
            raise

        _cluster = cluster
        _service = HdfsService(client, PathPolicy(blacklist=properties.blacklist))
        _initialized = True
        _log.info(
            f"Initialized successfully ({cluster.mode if cluster else 'external client'}, "
            f"blacklist={_service.policy.reserved_names()})"
        )
        return True

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if the gate is initialized."""
        return _initialized

    @classmethod
    def reset(cls) -> None:
        """Drop the bound service (used by tests and on reconfiguration)."""
        global _service, _cluster, _initialized
        _service = None
        _cluster = None
        _initialized = False

    @classmethod
    def get_service(cls) -> HdfsService:
        """Get the bound service, initializing from configuration if needed."""
        if _service is None:
            cls.initialize()
        return _service

    @classmethod
    def get_cluster(cls) -> Optional[ClusterConfig]:
        """The resolved cluster configuration, if the gate connected itself."""
        return _cluster

    # ==================== Health Checks ====================

    @classmethod
    def is_healthy(cls) -> bool:
        """Check if the gate is operational."""
        if not _initialized:
            return False
        try:
            return _service.client.exists("/")
        except OSError:
            return False

    @classmethod
    def get_health_status(cls) -> Dict[str, Any]:
        """Get detailed health information."""
        checks = {}
        details = {}

        if _initialized:
            checks["client_bound"] = _service is not None
            checks["root_reachable"] = cls.is_healthy()
            details["blacklist"] = _service.policy.reserved_names()
            if _cluster is not None:
                details["mode"] = _cluster.mode
                details["endpoint"] = _cluster.endpoint_uri
                if isinstance(_cluster, HighAvailabilityClusterConfig):
                    details["namenodes"] = _cluster.rpc_addresses

        return build_health_status(
            gate_name="HdfsGate",
            initialized=_initialized,
            dependencies=cls.get_dependencies(),
            checks=checks,
            details=details,
        )

    @classmethod
    def get_dependencies(cls) -> List[str]:
        """List external dependencies."""
        return ["hdfs"]

    # ==================== File Operations ====================

    @classmethod
    def mkdir(cls, path: str) -> bool:
        """Create a directory (no-op if it exists)."""
        return cls.get_service().mkdir(path)

    @classmethod
    def exists(cls, path: str) -> bool:
        """Check whether a path exists."""
        return cls.get_service().exists(path)

    @classmethod
    def list_path_info(cls, path: str) -> Optional[List[FileEntry]]:
        """List one level of a directory."""
        return cls.get_service().list_path_info(path)

    @classmethod
    def list_files_recursive(cls, path: str) -> Optional[List[FileEntry]]:
        """List every file below a path."""
        return cls.get_service().list_files_recursive(path)

    @classmethod
    def read_file_as_text(cls, path: str, encoding: str = "utf-8",
                          keep_line_breaks: bool = True) -> Optional[str]:
        """Read a file of at most 30 MiB as text."""
        return cls.get_service().read_file_as_text(path, encoding, keep_line_breaks)

    @classmethod
    def read_file_as_bytes(cls, path: str) -> Optional[bytes]:
        """Read a file's bytes."""
        return cls.get_service().read_file_as_bytes(path)

    @classmethod
    def upload_content(cls, path: str, content, filename: str) -> None:
        """Write content to path/filename."""
        cls.get_service().upload_content(path, content, filename)

    @classmethod
    def upload_from_local(cls, local_path: str, remote_path: str) -> None:
        """Copy a local file to HDFS."""
        cls.get_service().upload_from_local(local_path, remote_path)

    @classmethod
    def download_to_local(cls, remote_path: str, local_path: str) -> None:
        """Copy an HDFS file to the local filesystem."""
        cls.get_service().download_to_local(remote_path, local_path)

    @classmethod
    def rename(cls, old_path: str, new_path: str) -> bool:
        """Rename a file or directory."""
        return cls.get_service().rename(old_path, new_path)

    @classmethod
    def delete_file(cls, path: str) -> bool:
        """Delete a file or empty directory."""
        return cls.get_service().delete_file(path)

    @classmethod
    def copy(cls, source_path: str, target_path: str) -> None:
        """Copy one HDFS file to another."""
        cls.get_service().copy(source_path, target_path)

    @classmethod
    def get_block_locations(cls, path: str) -> List[BlockLocation]:
        """Get the block locations of a file."""
        return cls.get_service().get_block_locations(path)

    @classmethod
    def get_file_status(cls, path: str) -> RemoteFileStatus:
        """Get the status of a path."""
        return cls.get_service().get_file_status(path)


# ==================== Convenience Functions ====================

def initialize(properties: Optional[HdfsProperties] = None,
               client: Optional[HadoopClient] = None) -> bool:
    """Initialize HdfsGate."""
    return HdfsGate.initialize(properties, client)


def is_initialized() -> bool:
    """Check if initialized."""
    return HdfsGate.is_initialized()


def get_health_status() -> Dict[str, Any]:
    """Get detailed health information."""
    return HdfsGate.get_health_status()


def mkdir(path: str) -> bool:
    """Create a directory."""
    return HdfsGate.mkdir(path)


def exists(path: str) -> bool:
    """Check whether a path exists."""
    return HdfsGate.exists(path)


def read_file_as_text(path: str, **kwargs) -> Optional[str]:
    """Read a file as text."""
    return HdfsGate.read_file_as_text(path, **kwargs)


def read_file_as_bytes(path: str) -> Optional[bytes]:
    """Read a file's bytes."""
    return HdfsGate.read_file_as_bytes(path)


def delete_file(path: str) -> bool:
    """Delete a file or empty directory."""
    return HdfsGate.delete_file(path)


def get_info() -> dict:
    """
    Get documentation for HdfsGate.

    Returns the operation table with call formats, responses and the
    guards applied to each operation.
    """
    return {
        "gate": "HdfsGate",
        "version": "1.0",
        "purpose": "Guarded access to an HDFS cluster. Paths must be absolute, reserved top-level directories cannot be modified, and text reads are limited in size.",

        "concepts": {
            "path": "Absolute HDFS path starting with '/'. '..' segments are resolved before any check.",
            "blacklist": "Top-level directory names that upload and delete operations refuse to touch.",
            "ha": "High-availability clusters are reached through a nameservice alias with two namenodes.",
        },

        "tools": {
            "mkdir": {
                "purpose": "Create a directory and its parents",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "true if the directory exists afterwards",
            },
            "exists": {
                "purpose": "Check whether a path exists",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "boolean",
            },
            "list_path_info": {
                "purpose": "List one level of a directory",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "array of {name, path, status}, or null if missing or empty",
            },
            "list_files_recursive": {
                "purpose": "List every file below a directory",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "array of {name, path}, or null if missing",
            },
            "read_file_as_text": {
                "purpose": "Read a file as text",
                "call_format": {
                    "path": {"type": "string", "required": True},
                    "encoding": {"type": "string", "required": False, "default": "utf-8"},
                    "keep_line_breaks": {"type": "boolean", "required": False, "default": True},
                },
                "response": "string, or null if missing",
                "note": f"Files over {FILE_SIZE_LIMIT} bytes raise FileTooLargeError; use read_file_as_bytes.",
            },
            "read_file_as_bytes": {
                "purpose": "Read a file's bytes",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "bytes, or null if missing",
            },
            "upload_content": {
                "purpose": "Write bytes to path/filename, replacing an existing file",
                "call_format": {
                    "path": {"type": "string", "required": True},
                    "content": {"type": "bytes", "required": True},
                    "filename": {"type": "string", "required": True},
                },
                "note": "Blacklist checked.",
            },
            "upload_from_local": {
                "purpose": "Copy a local file to HDFS",
                "call_format": {
                    "local_path": {"type": "string", "required": True},
                    "remote_path": {"type": "string", "required": True},
                },
                "note": "Blacklist checked. The local file is kept.",
            },
            "download_to_local": {
                "purpose": "Copy an HDFS file to the local filesystem",
                "call_format": {
                    "remote_path": {"type": "string", "required": True},
                    "local_path": {"type": "string", "required": True},
                },
            },
            "rename": {
                "purpose": "Rename or move a path",
                "call_format": {
                    "old_path": {"type": "string", "required": True},
                    "new_path": {"type": "string", "required": True},
                },
                "response": "boolean",
            },
            "delete_file": {
                "purpose": "Delete a file or empty directory",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "false if the path did not exist",
                "note": "Blacklist checked. Non-empty directories raise DirectoryNotEmptyError.",
            },
            "copy": {
                "purpose": "Copy one HDFS file to another",
                "call_format": {
                    "source_path": {"type": "string", "required": True},
                    "target_path": {"type": "string", "required": True},
                },
                "note": f"Streams through a {COPY_BUFFER_SIZE} byte buffer; the target is replaced.",
            },
            "get_block_locations": {
                "purpose": "Get where a file's blocks are stored",
                "call_format": {"path": {"type": "string", "required": True}},
                "response": "array of {offset, length, hosts, names, topology_paths, corrupt}",
                "note": "Not available through ArrowHadoopClient (pyarrow exposes no block metadata); raises RemoteOperationError there. Clients that implement get_file_block_locations, such as MemoryHadoopClient, return the blocks.",
            },
        },

        "errors": {
            "InvalidPathError": "Empty path or path without the '/' prefix",
            "BlacklistedPathError": "Mutation of a reserved top-level directory",
            "FileTooLargeError": "Text read over the size limit",
            "PathIsDirectoryError": "File expected, directory found",
            "PathNotFoundError": "Path required but missing",
            "DirectoryNotEmptyError": "Non-recursive delete of a populated directory",
            "RemoteOperationError": "Failure reported by the HDFS client (cause attached)",
        },
    }


__all__ = [
    # Class
    "HdfsGate",
    "HdfsService",
    # Health
    "is_initialized",
    "get_health_status",
    # Lifecycle
    "initialize",
    # File operations
    "mkdir",
    "exists",
    "read_file_as_text",
    "read_file_as_bytes",
    "delete_file",
    # Building blocks
    "HadoopClient",
    "ArrowHadoopClient",
    "StreamGuard",
    "close_quietly",
    "validate_path",
    "is_blacklisted",
    "resolve_cluster_config",
    "build_client",
    "connect",
    "FILE_SIZE_LIMIT",
    "COPY_BUFFER_SIZE",
    # Models
    "HdfsProperties",
    "ClusterConfig",
    "SimpleClusterConfig",
    "HighAvailabilityClusterConfig",
    "PathPolicy",
    "FileEntry",
    "BlockLocation",
    "RemoteFileStatus",
    # Errors
    "HdfsGateError",
    "InvalidPathError",
    "ConfigError",
    "HdfsConnectionError",
    "BlacklistedPathError",
    "FileTooLargeError",
    "PathIsDirectoryError",
    "PathNotFoundError",
    "DirectoryNotEmptyError",
    "RemoteOperationError",
    # Documentation
    "get_info",
]
