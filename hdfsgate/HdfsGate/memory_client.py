"""
In-memory HadoopClient for unit testing and local development.
"""

import errno
import io
import os
import posixpath
import threading
from datetime import datetime, timezone
from typing import BinaryIO, Dict, Iterator, List, Optional, Sequence

from .models import BlockLocation, RemoteFileStatus

DEFAULT_BLOCK_SIZE = 128 * 1024 * 1024


class _PendingFile(io.BytesIO):
    """Output stream whose bytes become visible when it is closed."""

    def __init__(self, client: "MemoryHadoopClient", path: str):
        super().__init__()
        self._client = client
        self._path = path

    def close(self):
        if not self.closed:
            self._client._commit(self._path, self.getvalue())
        super().close()


class MemoryHadoopClient:
    """HadoopClient holding the whole namespace in memory."""

    def __init__(
        self,
        block_size: int = DEFAULT_BLOCK_SIZE,
        datanodes: Sequence[str] = ("localhost:9866",),
        owner: str = "hdfs",
        group: str = "supergroup",
    ) -> None:
        self.block_size = block_size
        self.datanodes = list(datanodes)
        self.owner = owner
        self.group = group
        self._files: Dict[str, bytes] = {}
        self._mtimes: Dict[str, datetime] = {}
        self._dirs = {"/"}
        self._lock = threading.Lock()

    # ---- helpers ----

    @staticmethod
    def _norm(path: str) -> str:
        path = posixpath.normpath("/" + path.lstrip("/"))
        return "/" + path.lstrip("/")

    def _children(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        names = set()
        for entry in list(self._files) + list(self._dirs):
            if entry != path and entry.startswith(prefix):
                names.add(prefix + entry[len(prefix):].split("/", 1)[0])
        return sorted(names)

    def _ensure_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent not in self._dirs:
            if parent in self._files:
                raise NotADirectoryError(errno.ENOTDIR, "Parent is a file", parent)
            self._dirs.add(parent)
            parent = posixpath.dirname(parent)

    def _commit(self, path: str, data: bytes) -> None:
        with self._lock:
            self._ensure_parents(path)
            self._files[path] = bytes(data)
            self._mtimes[path] = datetime.now(timezone.utc)

    def _status(self, path: str) -> RemoteFileStatus:
        if path in self._dirs:
            return RemoteFileStatus(
                path=path, is_directory=True, owner=self.owner,
                group=self.group, permission="rwxr-xr-x",
                modification_time=self._mtimes.get(path),
            )
        return RemoteFileStatus(
            path=path,
            length=len(self._files[path]),
            replication=len(self.datanodes),
            block_size=self.block_size,
            modification_time=self._mtimes.get(path),
            owner=self.owner,
            group=self.group,
            permission="rw-r--r--",
        )

    # ---- HadoopClient ----

    def exists(self, path: str) -> bool:
        path = self._norm(path)
        return path in self._files or path in self._dirs

    def mkdirs(self, path: str) -> bool:
        path = self._norm(path)
        with self._lock:
            if path in self._files:
                raise FileExistsError(errno.EEXIST, "File exists", path)
            self._ensure_parents(path)
            self._dirs.add(path)
            self._mtimes.setdefault(path, datetime.now(timezone.utc))
        return True

    def list_status(self, path: str) -> List[RemoteFileStatus]:
        path = self._norm(path)
        if path in self._files:
            return [self._status(path)]
        if path not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return [self._status(child) for child in self._children(path)]

    def list_files(self, path: str, recursive: bool) -> Iterator[RemoteFileStatus]:
        path = self._norm(path)
        if path in self._files:
            yield self._status(path)
            return
        if path not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        for child in self._children(path):
            if child in self._files:
                yield self._status(child)
            elif recursive:
                yield from self.list_files(child, True)

    def open(self, path: str) -> BinaryIO:
        path = self._norm(path)
        if path in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        if path not in self._files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return io.BytesIO(self._files[path])

    def create(self, path: str, overwrite: bool = True) -> BinaryIO:
        path = self._norm(path)
        if path in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        if path in self._files and not overwrite:
            raise FileExistsError(errno.EEXIST, "File exists", path)
        return _PendingFile(self, path)

    def rename(self, src: str, dst: str) -> bool:
        src, dst = self._norm(src), self._norm(dst)
        with self._lock:
            if not (src in self._files or src in self._dirs):
                return False
            if dst in self._dirs:
                dst = posixpath.join(dst, posixpath.basename(src))
            if dst in self._files or dst in self._dirs:
                return False
            self._ensure_parents(dst)
            moved = {}
            for entry in list(self._files):
                if entry == src or entry.startswith(src + "/"):
                    moved[dst + entry[len(src):]] = self._files.pop(entry)
            self._files.update(moved)
            for entry in list(self._mtimes):
                if entry == src or entry.startswith(src + "/"):
                    self._mtimes[dst + entry[len(src):]] = self._mtimes.pop(entry)
            for entry in list(self._dirs):
                if entry == src or entry.startswith(src + "/"):
                    self._dirs.discard(entry)
                    self._dirs.add(dst + entry[len(src):])
        return True

    def delete(self, path: str, recursive: bool) -> bool:
        path = self._norm(path)
        with self._lock:
            if path in self._files:
                del self._files[path]
                return True
            if path not in self._dirs:
                return False
            if self._children(path) and not recursive:
                raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
            for entry in list(self._files):
                if entry.startswith(path.rstrip("/") + "/"):
                    del self._files[entry]
            for entry in list(self._dirs):
                if entry == path or entry.startswith(path.rstrip("/") + "/"):
                    self._dirs.discard(entry)
            self._dirs.add("/")
        return True

    def copy_from_local_file(self, src: str, dst: str, delete_source: bool = False) -> None:
        dst = self._norm(dst)
        if dst in self._dirs:
            dst = posixpath.join(dst, os.path.basename(src))
        with open(src, "rb") as f:
            self._commit(dst, f.read())
        if delete_source:
            os.remove(src)

    def copy_to_local_file(self, src: str, dst: str, delete_source: bool = False) -> None:
        src = self._norm(src)
        if os.path.isdir(dst):
            dst = os.path.join(dst, posixpath.basename(src))
        with self.open(src) as stream, open(dst, "wb") as f:
            f.write(stream.read())
        if delete_source:
            self.delete(src, recursive=False)

    def get_file_status(self, path: str) -> RemoteFileStatus:
        path = self._norm(path)
        if not self.exists(path):
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return self._status(path)

    def get_file_block_locations(
        self, status: RemoteFileStatus, start: int, length: int
    ) -> List[BlockLocation]:
        end = min(start + length, status.length)
        hosts = [name.split(":", 1)[0] for name in self.datanodes]
        locations = []
        offset = (start // self.block_size) * self.block_size
        while offset < end:
            block_length = min(self.block_size, status.length - offset)
            locations.append(BlockLocation(
                offset=offset,
                length=block_length,
                hosts=hosts,
                names=list(self.datanodes),
                topology_paths=[f"/default-rack/{name}" for name in self.datanodes],
            ))
            offset += self.block_size
        return locations

    def close(self) -> None:
        """Nothing to release."""
        return None


def build_memory_client(files: Optional[Dict[str, bytes]] = None, **kwargs) -> MemoryHadoopClient:
    """Create a MemoryHadoopClient pre-populated with files."""
    client = MemoryHadoopClient(**kwargs)
    for path, data in (files or {}).items():
        client._commit(client._norm(path), data)
    return client
