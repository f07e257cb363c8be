"""
HdfsGate file operations.

HdfsService binds one filesystem client and one PathPolicy for its whole
lifetime. Every operation validates its paths first, mutating operations
are checked against the blacklist, and streams are always closed.
"""

import errno
import re
import shutil
from contextlib import contextmanager
from typing import BinaryIO, List, Optional, Union

from hdfsgate.shared.gate import GateLogger

from .client import HadoopClient
from .errors import (
    DirectoryNotEmptyError,
    FileTooLargeError,
    InvalidPathError,
    PathIsDirectoryError,
    PathNotFoundError,
    RemoteOperationError,
)
from .models import BlockLocation, FileEntry, PathPolicy, RemoteFileStatus
from .security import (
    check_mutation_allowed,
    require_local_path,
    validate_path,
)
from .streams import StreamGuard

_log = GateLogger.get("HdfsService")

# Largest file read_file_as_text will load (30 MiB)
FILE_SIZE_LIMIT = 30 * 1024 * 1024

# Buffer used when streaming one remote file into another (64 MiB)
COPY_BUFFER_SIZE = 64 * 1024 * 1024

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")

Content = Union[bytes, bytearray, memoryview, str, BinaryIO]


@contextmanager
def remote_operation(operation: str, path: Optional[str], message: str):
    """Translate client OSErrors into RemoteOperationError, keeping the cause."""
    try:
        yield
    except OSError as e:
        raise RemoteOperationError(
            f"{message} ({path}): {e}", operation=operation, path=path, cause=e
        ) from e


class HdfsService:
    """
    Guarded file operations against one HDFS cluster.

    Usage:
        service = HdfsService(client, PathPolicy(blacklist={"hbase", "tmp"}))
        service.mkdir("/data/reports")
        service.upload_content("/data/reports", b"...", "q1.csv")
        text = service.read_file_as_text("/data/reports/q1.csv")
    """

    def __init__(self, client: HadoopClient, policy: Optional[PathPolicy] = None):
        if client is None:
            raise ValueError("client can't be empty.")
        self._client = client
        self._policy = policy or PathPolicy()

    @property
    def client(self) -> HadoopClient:
        """The bound filesystem client."""
        return self._client

    @property
    def policy(self) -> PathPolicy:
        """The immutable path policy."""
        return self._policy

    # ==================== Queries ====================

    def exists(self, path: str) -> bool:
        """Check whether a path exists."""
        path = validate_path(path)
        with remote_operation("exists", path, "Failed to check path"):
            return self._client.exists(path)

    def get_file_status(self, path: str) -> RemoteFileStatus:
        """
        Get the status of a path.

        Raises:
            PathNotFoundError: if the path does not exist
        """
        path = validate_path(path)
        if not self.exists(path):
            raise PathNotFoundError(f"Path does not exist: {path}")
        with remote_operation("getFileStatus", path, "Failed to get file status"):
            return self._client.get_file_status(path)

    def list_path_info(self, path: str) -> Optional[List[FileEntry]]:
        """
        List one level of a directory.

        Returns:
            Entries with name, path and status summary, or None if the
            path does not exist or is empty
        """
        path = validate_path(path)
        if not self.exists(path):
            return None

        with remote_operation("listStatus", path, "Failed to list directory"):
            statuses = self._client.list_status(path)

        if not statuses:
            return None
        return [
            FileEntry(name=status.name, path=status.path, status=status.summary())
            for status in statuses
        ]

    def list_files_recursive(self, path: str) -> Optional[List[FileEntry]]:
        """
        List every file below a path.

        Returns:
            Entries with name and path, or None if the path does not exist
        """
        path = validate_path(path)
        if not self.exists(path):
            return None

        with remote_operation("listFiles", path, "Failed to list files"):
            return [
                FileEntry(name=status.name, path=status.path)
                for status in self._client.list_files(path, True)
            ]

    def get_block_locations(self, path: str) -> List[BlockLocation]:
        """
        Get where each block of a file is stored.

        Raises:
            PathNotFoundError: if the path does not exist
            PathIsDirectoryError: if the path is a directory
        """
        path = validate_path(path)
        if not self.exists(path):
            raise PathNotFoundError(f"Path does not exist: {path}")

        with remote_operation("getFileBlockLocations", path, "Failed to get file location"):
            status = self._client.get_file_status(path)
            if status.is_directory:
                raise PathIsDirectoryError(
                    f"The current path is a directory. Current request path: {path}"
                )
            return list(self._client.get_file_block_locations(status, 0, status.length))

    # ==================== Reads ====================

    def read_file_as_text(
        self,
        path: str,
        encoding: str = "utf-8",
        keep_line_breaks: bool = True,
    ) -> Optional[str]:
        """
        Read a small file as text.

        Args:
            path: File to read
            encoding: Text encoding; undecodable bytes are replaced
            keep_line_breaks: False joins lines with no delimiter, as older
                clients of this service expect

        Returns:
            File contents, or None if the path does not exist

        Raises:
            FileTooLargeError: if the file is larger than FILE_SIZE_LIMIT
            PathIsDirectoryError: if the path is a directory
        """
        path = validate_path(path)
        if not self.exists(path):
            return None

        with remote_operation("readFile", path, "Failed to read file"):
            status = self._client.get_file_status(path)
            if status.is_directory:
                raise PathIsDirectoryError(f"Path error, cannot be directory: {path}")
            if status.length > FILE_SIZE_LIMIT:
                raise FileTooLargeError(path, status.length, FILE_SIZE_LIMIT)

            with StreamGuard(self._client.open(path), "inputStream") as stream:
                data = stream.read()

        text = bytes(data).decode(encoding, errors="replace")
        if keep_line_breaks:
            return text
        return "".join(_LINE_BREAKS.split(text))

    def read_file_as_bytes(self, path: str) -> Optional[bytes]:
        """
        Read a file's full content.

        Returns:
            File bytes, or None if the path does not exist

        Raises:
            PathIsDirectoryError: if the path is a directory
        """
        path = validate_path(path)
        if not self.exists(path):
            return None

        with remote_operation("openFile", path, "File opening failed"):
            if self._client.get_file_status(path).is_directory:
                raise PathIsDirectoryError(f"Path error, cannot be directory: {path}")
            with StreamGuard(self._client.open(path), "inputStream") as stream:
                return bytes(stream.read())

    # ==================== Directory operations ====================

    def mkdir(self, path: str) -> bool:
        """Create a directory and its parents; succeeds if it already exists."""
        path = validate_path(path)
        if self.exists(path):
            return True

        with remote_operation("mkdir", path, "File operation exception"):
            created = self._client.mkdirs(path)
        _log.debug(f"mkdir {path} -> {created}")
        return created

    def rename(self, old_path: str, new_path: str) -> bool:
        """Rename or move a file or directory."""
        old_path = validate_path(old_path, "oldPath")
        new_path = validate_path(new_path, "newPath")

        with remote_operation("rename", old_path, "Failed to rename file"):
            renamed = self._client.rename(old_path, new_path)
        _log.debug(f"rename {old_path} -> {new_path}: {renamed}")
        return renamed

    def delete_file(self, path: str) -> bool:
        """
        Delete a file or an empty directory.

        Returns:
            True if deleted, False if the path did not exist

        Raises:
            BlacklistedPathError: if the path is under a reserved directory
            DirectoryNotEmptyError: if the path is a populated directory
        """
        path = validate_path(path)
        check_mutation_allowed(path, self._policy)
        if not self.exists(path):
            return False

        try:
            deleted = self._client.delete(path, False)
        except OSError as e:
            if e.errno == errno.ENOTEMPTY:
                raise DirectoryNotEmptyError(
                    "Directory not empty, deletion failed. "
                    f"Only files and empty directories can be deleted: {path}"
                ) from e
            raise RemoteOperationError(
                f"Failed to delete file ({path}): {e}", operation="delete", path=path, cause=e
            ) from e
        _log.debug(f"delete {path} -> {deleted}")
        return deleted

    # ==================== Transfers ====================

    def upload_content(self, path: str, content: Content, filename: str) -> None:
        """
        Write content to ``path/filename``, replacing any existing file.

        Args:
            path: Destination directory
            content: Bytes, text (UTF-8 encoded) or a readable binary stream
            filename: Name of the file to create
        """
        path = validate_path(path)
        if content is None:
            raise ValueError("content cannot be empty.")
        if filename is None or not filename.strip() or "/" in filename or filename in (".", ".."):
            raise InvalidPathError(f"Invalid file name: {filename!r}")
        check_mutation_allowed(path, self._policy)

        target = f"{path}/{filename}"
        with remote_operation("createFile", target, "File operation exception"):
            with StreamGuard(self._client.create(target, overwrite=True), "outputStream") as sink:
                if isinstance(content, str):
                    sink.write(content.encode("utf-8"))
                elif isinstance(content, (bytes, bytearray, memoryview)):
                    sink.write(bytes(content))
                else:
                    shutil.copyfileobj(content, sink, COPY_BUFFER_SIZE)
        _log.debug(f"uploaded {target}")

    def upload_from_local(self, local_path: str, remote_path: str) -> None:
        """Copy a local file to HDFS, keeping the local file."""
        local_path = require_local_path(local_path)
        remote_path = validate_path(remote_path, "uploadPath")
        check_mutation_allowed(remote_path, self._policy)

        with remote_operation("copyFromLocalFile", remote_path, "File upload failed"):
            self._client.copy_from_local_file(local_path, remote_path, delete_source=False)
        _log.debug(f"uploaded {local_path} -> {remote_path}")

    def download_to_local(self, remote_path: str, local_path: str) -> None:
        """Copy an HDFS file to the local filesystem, keeping the remote file."""
        remote_path = validate_path(remote_path)
        local_path = require_local_path(local_path, "downloadPath")

        with remote_operation("copyToLocalFile", remote_path, "File download failed"):
            self._client.copy_to_local_file(remote_path, local_path, delete_source=False)
        _log.debug(f"downloaded {remote_path} -> {local_path}")

    def copy(self, source_path: str, target_path: str) -> None:
        """Stream one HDFS file into another, replacing the target."""
        source_path = validate_path(source_path, "sourcePath")
        target_path = validate_path(target_path, "targetPath")

        with remote_operation("copy", source_path, "File copy failed"):
            with StreamGuard(self._client.open(source_path), "inputStream") as source:
                with StreamGuard(self._client.create(target_path, overwrite=True), "outputStream") as target:
                    shutil.copyfileobj(source, target, COPY_BUFFER_SIZE)
        _log.debug(f"copied {source_path} -> {target_path}")
