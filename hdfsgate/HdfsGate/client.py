"""
Filesystem client collaborator for HdfsGate.

HadoopClient is the set of primitives the gate needs from a distributed
filesystem. Implementations report failures as OSError (or a subclass such
as FileNotFoundError); the gate translates them into its own error types.

ArrowHadoopClient implements the protocol on top of
``pyarrow.fs.HadoopFileSystem`` (libhdfs), which accepts the same Hadoop
configuration keys the connection resolver produces.
"""

import errno
import io
import os
import posixpath
from typing import BinaryIO, Dict, Iterator, List, Optional, Protocol, runtime_checkable
from urllib.parse import urlparse

from hdfsgate.shared.gate import GateLogger

from .models import BlockLocation, RemoteFileStatus

_log = GateLogger.get("HadoopClient")


@runtime_checkable
class HadoopClient(Protocol):
    """Primitives of a distributed filesystem client."""

    def exists(self, path: str) -> bool:
        ...

    def mkdirs(self, path: str) -> bool:
        ...

    def list_status(self, path: str) -> List[RemoteFileStatus]:
        """One level of a directory; a file lists as itself."""
        ...

    def list_files(self, path: str, recursive: bool) -> Iterator[RemoteFileStatus]:
        """Files (never directories) under path."""
        ...

    def open(self, path: str) -> BinaryIO:
        ...

    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        ...

    def rename(self, src: str, dst: str) -> bool:
        ...

    def delete(self, path: str, recursive: bool) -> bool:
        """Fails with errno.ENOTEMPTY for a populated directory unless recursive."""
        ...

    def copy_from_local_file(self, src: str, dst: str, delete_source: bool = False) -> None:
        ...

    def copy_to_local_file(self, src: str, dst: str, delete_source: bool = False) -> None:
        ...

    def get_file_status(self, path: str) -> RemoteFileStatus:
        """Raises FileNotFoundError for a missing path."""
        ...

    def get_file_block_locations(
        self, status: RemoteFileStatus, start: int, length: int
    ) -> List[BlockLocation]:
        ...


def _strip_authority(path: str) -> str:
    """hdfs://ns/a/b -> /a/b; plain paths pass through."""
    if "://" in path:
        return urlparse(path).path or "/"
    return path


class ArrowHadoopClient:
    """HadoopClient backed by pyarrow's libhdfs binding."""

    def __init__(
        self,
        endpoint_uri: str,
        user: Optional[str] = None,
        extra_conf: Optional[Dict[str, str]] = None,
        filesystem=None,
    ):
        """
        Connect to the cluster.

        Args:
            endpoint_uri: fs.defaultFS of the cluster (hdfs://host:port or hdfs://<nameservice>)
            user: User to act as; None uses the login user
            extra_conf: Hadoop configuration overriding hdfs-site.xml
            filesystem: Pre-built pyarrow filesystem (skips connecting)
        """
        from pyarrow import fs as pafs

        self._pafs = pafs
        self.endpoint_uri = endpoint_uri
        self.user = user
        if filesystem is None:
            # port 0 lets libhdfs take host and port (or the nameservice) from the URI
            filesystem = pafs.HadoopFileSystem(
                endpoint_uri,
                0,
                user=user,
                extra_conf=dict(extra_conf or {}),
            )
            _log.debug(f"libhdfs filesystem created for {endpoint_uri}")
        self._fs = filesystem

    @property
    def filesystem(self):
        """The underlying pyarrow filesystem."""
        return self._fs

    def _status(self, info) -> RemoteFileStatus:
        return RemoteFileStatus(
            path=_strip_authority(info.path),
            length=info.size or 0,
            is_directory=info.type == self._pafs.FileType.Directory,
            modification_time=info.mtime,
        )

    def exists(self, path: str) -> bool:
        return self._fs.get_file_info(path).type != self._pafs.FileType.NotFound

    def mkdirs(self, path: str) -> bool:
        self._fs.create_dir(path, recursive=True)
        return True

    def list_status(self, path: str) -> List[RemoteFileStatus]:
        info = self._fs.get_file_info(path)
        if info.type == self._pafs.FileType.NotFound:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        if info.type != self._pafs.FileType.Directory:
            return [self._status(info)]
        selector = self._pafs.FileSelector(path, recursive=False)
        return [self._status(child) for child in self._fs.get_file_info(selector)]

    def list_files(self, path: str, recursive: bool) -> Iterator[RemoteFileStatus]:
        info = self._fs.get_file_info(path)
        if info.type == self._pafs.FileType.File:
            yield self._status(info)
            return
        selector = self._pafs.FileSelector(path, recursive=recursive)
        for child in self._fs.get_file_info(selector):
            if child.type == self._pafs.FileType.File:
                yield self._status(child)

    def open(self, path: str) -> BinaryIO:
        return self._fs.open_input_stream(path)

    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        if not overwrite and self.exists(path):
            raise FileExistsError(errno.EEXIST, "File exists", path)
        return self._fs.open_output_stream(path)

    def rename(self, src: str, dst: str) -> bool:
        self._fs.move(src, dst)
        return True

    def delete(self, path: str, recursive: bool) -> bool:
        info = self._fs.get_file_info(path)
        if info.type == self._pafs.FileType.NotFound:
            return False
        if info.type == self._pafs.FileType.Directory:
            if not recursive:
                children = self._fs.get_file_info(self._pafs.FileSelector(path))
                if children:
                    raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
            self._fs.delete_dir(path)
        else:
            self._fs.delete_file(path)
        return True

    def copy_from_local_file(self, src: str, dst: str, delete_source: bool = False) -> None:
        local = self._pafs.LocalFileSystem()
        src = os.path.abspath(src)
        if self._fs.get_file_info(dst).type == self._pafs.FileType.Directory:
            dst = posixpath.join(dst, os.path.basename(src))
        self._pafs.copy_files(
            src, dst, source_filesystem=local, destination_filesystem=self._fs
        )
        if delete_source:
            local.delete_file(src)

    def copy_to_local_file(self, src: str, dst: str, delete_source: bool = False) -> None:
        local = self._pafs.LocalFileSystem()
        dst = os.path.abspath(dst)
        if os.path.isdir(dst):
            dst = os.path.join(dst, posixpath.basename(src.rstrip("/")))
        self._pafs.copy_files(
            src, dst, source_filesystem=self._fs, destination_filesystem=local
        )
        if delete_source:
            self.delete(src, recursive=True)

    def get_file_status(self, path: str) -> RemoteFileStatus:
        info = self._fs.get_file_info(path)
        if info.type == self._pafs.FileType.NotFound:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return self._status(info)

    def get_file_block_locations(
        self, status: RemoteFileStatus, start: int, length: int
    ) -> List[BlockLocation]:
        # libhdfs block metadata is not exposed through pyarrow
        raise io.UnsupportedOperation(
            f"block locations are not available through pyarrow for {status.path}"
        )
