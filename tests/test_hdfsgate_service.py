"""
Tests for HdfsService file operations against the in-memory cluster.
"""

import io
import pytest

from hdfsgate.HdfsGate.errors import (
    BlacklistedPathError,
    DirectoryNotEmptyError,
    FileTooLargeError,
    InvalidPathError,
    PathIsDirectoryError,
    PathNotFoundError,
    RemoteOperationError,
)
from hdfsgate.HdfsGate.memory_client import MemoryHadoopClient, build_memory_client
from hdfsgate.HdfsGate.models import PathPolicy
from hdfsgate.HdfsGate.service import FILE_SIZE_LIMIT, HdfsService


class SizedClient(MemoryHadoopClient):
    """Reports a fixed length for every file without storing that many bytes."""

    def __init__(self, reported_length: int, **kwargs):
        super().__init__(**kwargs)
        self.reported_length = reported_length

    def get_file_status(self, path):
        status = super().get_file_status(path)
        if status.is_directory:
            return status
        return status.model_copy(update={"length": self.reported_length})


class FailingClient(MemoryHadoopClient):
    """Raises OSError from the primitives that move bytes."""

    def open(self, path):
        raise OSError("connection reset by datanode")

    def mkdirs(self, path):
        raise PermissionError(13, "Permission denied", path)


class TestServiceConstruction:
    """Tests for HdfsService construction."""

    def test_requires_client(self):
        with pytest.raises(ValueError):
            HdfsService(None)

    def test_default_policy(self, memory_client):
        service = HdfsService(memory_client)
        assert "tmp" in service.policy.blacklist

    def test_exposes_client(self, service, memory_client):
        assert service.client is memory_client


class TestQueries:
    """Tests for exists, listings and status."""

    def test_exists(self, service):
        assert service.exists("/data/reports/q1.csv") is True
        assert service.exists("/data/reports") is True
        assert service.exists("/data/missing") is False

    def test_exists_validates_path(self, service):
        with pytest.raises(InvalidPathError):
            service.exists("data/reports")

    def test_list_path_info(self, service):
        """One level, with names, paths and a status summary."""
        entries = service.list_path_info("/data")

        assert [e.name for e in entries] == ["empty", "raw", "reports"]
        assert entries[2].path == "/data/reports"
        assert entries[2].status.startswith("FileStatus{path=/data/reports;")
        assert "isDirectory=true" in entries[2].status

    def test_list_path_info_missing(self, service):
        assert service.list_path_info("/nowhere") is None

    def test_list_path_info_empty_directory(self, service):
        assert service.list_path_info("/data/empty") is None

    def test_list_path_info_to_dict(self, service):
        entry = service.list_path_info("/data/reports")[0]
        assert set(entry.to_dict()) == {"name", "path", "status"}

    def test_list_files_recursive(self, service):
        """Every file below the path, no directories."""
        entries = service.list_files_recursive("/data")

        assert sorted(e.path for e in entries) == [
            "/data/raw/2024/events.log",
            "/data/reports/q1.csv",
            "/data/reports/q2.csv",
        ]
        assert all(e.status is None for e in entries)

    def test_list_files_recursive_missing(self, service):
        assert service.list_files_recursive("/nowhere") is None

    def test_get_file_status(self, service):
        status = service.get_file_status("/data/reports/q1.csv")

        assert status.length == 8
        assert status.is_directory is False
        assert status.name == "q1.csv"
        assert "length=8" in status.summary()

    def test_get_file_status_missing(self, service):
        with pytest.raises(PathNotFoundError):
            service.get_file_status("/data/missing")


class TestReads:
    """Tests for text and byte reads."""

    def test_read_text_keeps_line_breaks(self, service):
        assert service.read_file_as_text("/data/raw/2024/events.log") == "line1\nline2\r\nline3"

    def test_read_text_joined_lines(self, service):
        """Lines are concatenated with no delimiter when asked."""
        text = service.read_file_as_text("/data/raw/2024/events.log", keep_line_breaks=False)
        assert text == "line1line2line3"

    def test_read_text_missing(self, service):
        assert service.read_file_as_text("/data/missing.txt") is None

    def test_read_text_directory(self, service):
        with pytest.raises(PathIsDirectoryError):
            service.read_file_as_text("/data/reports")

    def test_read_text_replaces_undecodable_bytes(self, memory_client):
        memory_client._commit("/data/bad.txt", b"ok\xff")
        service = HdfsService(memory_client)

        assert service.read_file_as_text("/data/bad.txt") == "ok\ufffd"

    def test_read_text_other_encoding(self, memory_client):
        memory_client._commit("/data/latin.txt", "café".encode("latin-1"))
        service = HdfsService(memory_client)

        assert service.read_file_as_text("/data/latin.txt", encoding="latin-1") == "café"

    def test_read_text_at_size_limit(self):
        """A file of exactly the limit is still read."""
        client = SizedClient(FILE_SIZE_LIMIT)
        client._commit("/data/edge.txt", b"edge")

        assert HdfsService(client).read_file_as_text("/data/edge.txt") == "edge"

    def test_read_text_over_size_limit(self):
        """One byte over the limit is refused before opening the file."""
        client = SizedClient(FILE_SIZE_LIMIT + 1)
        client._commit("/data/big.txt", b"big")

        with pytest.raises(FileTooLargeError) as exc_info:
            HdfsService(client).read_file_as_text("/data/big.txt")

        assert exc_info.value.size == FILE_SIZE_LIMIT + 1
        assert exc_info.value.limit == FILE_SIZE_LIMIT

    def test_read_bytes(self, service):
        assert service.read_file_as_bytes("/data/reports/q1.csv") == b"a,b\n1,2\n"

    def test_read_bytes_missing(self, service):
        assert service.read_file_as_bytes("/data/missing.bin") is None

    def test_read_bytes_directory(self, service):
        with pytest.raises(PathIsDirectoryError):
            service.read_file_as_bytes("/data")

    def test_read_bytes_ignores_size_limit(self):
        client = SizedClient(FILE_SIZE_LIMIT * 2)
        client._commit("/data/big.bin", b"\x00\x01")

        assert HdfsService(client).read_file_as_bytes("/data/big.bin") == b"\x00\x01"


class TestDirectoryOperations:
    """Tests for mkdir, rename and delete."""

    def test_mkdir_creates_parents(self, service):
        assert service.mkdir("/data/a/b/c") is True
        assert service.exists("/data/a/b") is True

    def test_mkdir_idempotent(self, service):
        assert service.mkdir("/data/reports") is True
        assert service.mkdir("/data/reports") is True
        assert service.exists("/data/reports/q1.csv") is True

    def test_mkdir_not_blacklist_checked(self, service):
        """Only uploads and deletes consult the blacklist."""
        assert service.mkdir("/tmp/new") is True

    def test_rename(self, service):
        assert service.rename("/data/reports/q1.csv", "/data/reports/renamed.csv") is True
        assert service.exists("/data/reports/q1.csv") is False
        assert service.read_file_as_bytes("/data/reports/renamed.csv") == b"a,b\n1,2\n"

    def test_rename_keeps_modification_time(self, service):
        before = service.get_file_status("/data/reports/q1.csv").modification_time

        service.rename("/data/reports", "/data/archive")

        after = service.get_file_status("/data/archive/q1.csv")
        assert before is not None
        assert after.modification_time == before
        assert "modification_time=0;" not in after.summary()

    def test_rename_missing_source(self, service):
        assert service.rename("/data/nothing", "/data/other") is False

    def test_rename_validates_both_paths(self, service):
        with pytest.raises(InvalidPathError, match="newPath"):
            service.rename("/data/reports/q1.csv", "")

    def test_delete_file(self, service):
        assert service.delete_file("/data/reports/q1.csv") is True
        assert service.exists("/data/reports/q1.csv") is False

    def test_delete_empty_directory(self, service):
        assert service.delete_file("/data/empty") is True
        assert service.exists("/data/empty") is False

    def test_delete_missing(self, service):
        assert service.delete_file("/data/missing") is False

    def test_delete_non_empty_directory(self, service):
        """Populated directories are never removed."""
        with pytest.raises(DirectoryNotEmptyError):
            service.delete_file("/data/reports")

        assert service.exists("/data/reports/q1.csv") is True

    def test_delete_blacklisted(self, service):
        with pytest.raises(BlacklistedPathError):
            service.delete_file("/tmp/scratch.txt")

        assert service.exists("/tmp/scratch.txt") is True

    def test_delete_blacklisted_missing_path(self, service):
        """The blacklist is checked before existence."""
        with pytest.raises(BlacklistedPathError):
            service.delete_file("/tmp/never-existed")

    def test_delete_dot_dot_into_blacklist(self, service):
        with pytest.raises(BlacklistedPathError):
            service.delete_file("/data/../tmp/scratch.txt")

        assert service.exists("/tmp/scratch.txt") is True


class TestTransfers:
    """Tests for uploads, downloads and copies."""

    def test_upload_bytes(self, service):
        service.upload_content("/data/new", b"hello", "greeting.txt")

        assert service.read_file_as_bytes("/data/new/greeting.txt") == b"hello"

    def test_upload_text(self, service):
        service.upload_content("/data/new", "héllo", "greeting.txt")

        assert service.read_file_as_text("/data/new/greeting.txt") == "héllo"

    def test_upload_stream(self, service):
        service.upload_content("/data/new", io.BytesIO(b"streamed"), "s.bin")

        assert service.read_file_as_bytes("/data/new/s.bin") == b"streamed"

    def test_upload_replaces_existing(self, service):
        service.upload_content("/data/reports", b"new", "q1.csv")

        assert service.read_file_as_bytes("/data/reports/q1.csv") == b"new"

    def test_upload_none_content(self, service):
        with pytest.raises(ValueError):
            service.upload_content("/data/new", None, "x.txt")

    @pytest.mark.parametrize("filename", [None, "", "  ", "a/b.txt", ".", ".."])
    def test_upload_bad_filename(self, service, filename):
        with pytest.raises(InvalidPathError):
            service.upload_content("/data/new", b"x", filename)

    def test_upload_dot_dot_does_not_escape(self, service):
        """A parent-directory filename never writes above the destination."""
        with pytest.raises(InvalidPathError):
            service.upload_content("/data/reports", b"x", "..")

        assert service.read_file_as_bytes("/data/reports/q1.csv") == b"a,b\n1,2\n"
        assert service.exists("/data/reports") is True

    def test_upload_blacklisted(self, service):
        """Nothing is written under a reserved directory."""
        with pytest.raises(BlacklistedPathError):
            service.upload_content("/tmp/reports", b"x", "x.txt")

        assert service.exists("/tmp/reports/x.txt") is False

    def test_upload_from_local(self, service, temp_dir):
        local = temp_dir / "local.txt"
        local.write_bytes(b"from disk")

        service.upload_from_local(str(local), "/data/uploaded.txt")

        assert service.read_file_as_bytes("/data/uploaded.txt") == b"from disk"
        assert local.exists()

    def test_upload_from_local_into_directory(self, service, temp_dir):
        local = temp_dir / "local.txt"
        local.write_bytes(b"from disk")

        service.upload_from_local(str(local), "/data/reports")

        assert service.exists("/data/reports/local.txt") is True

    def test_upload_from_local_blacklisted(self, service, temp_dir):
        local = temp_dir / "local.txt"
        local.write_bytes(b"x")

        with pytest.raises(BlacklistedPathError):
            service.upload_from_local(str(local), "/user/local.txt")

        assert service.exists("/user/local.txt") is False

    def test_upload_from_local_missing_file(self, service, temp_dir):
        with pytest.raises(RemoteOperationError) as exc_info:
            service.upload_from_local(str(temp_dir / "missing.txt"), "/data/x.txt")

        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_download_to_local(self, service, temp_dir):
        target = temp_dir / "q1.csv"

        service.download_to_local("/data/reports/q1.csv", str(target))

        assert target.read_bytes() == b"a,b\n1,2\n"
        assert service.exists("/data/reports/q1.csv") is True

    def test_download_blank_local_path(self, service):
        with pytest.raises(InvalidPathError, match="downloadPath"):
            service.download_to_local("/data/reports/q1.csv", " ")

    def test_copy(self, service):
        service.copy("/data/reports/q1.csv", "/data/copy.csv")

        assert service.read_file_as_bytes("/data/copy.csv") == service.read_file_as_bytes(
            "/data/reports/q1.csv"
        )

    def test_copy_replaces_target(self, service):
        service.copy("/data/reports/q1.csv", "/data/reports/q2.csv")

        assert service.read_file_as_bytes("/data/reports/q2.csv") == b"a,b\n1,2\n"

    def test_copy_missing_source(self, service):
        with pytest.raises(RemoteOperationError) as exc_info:
            service.copy("/data/missing.csv", "/data/copy.csv")

        assert exc_info.value.operation == "copy"
        assert service.exists("/data/copy.csv") is False


class TestBlockLocations:
    """Tests for get_block_locations."""

    def test_blocks_cover_file(self):
        client = build_memory_client(
            {"/data/big.bin": b"x" * 250},
            block_size=100,
            datanodes=("dn1:9866", "dn2:9866"),
        )
        blocks = HdfsService(client).get_block_locations("/data/big.bin")

        assert [(b.offset, b.length) for b in blocks] == [(0, 100), (100, 100), (200, 50)]
        assert blocks[0].hosts == ["dn1", "dn2"]
        assert blocks[0].names == ["dn1:9866", "dn2:9866"]

    def test_missing_path(self, service):
        with pytest.raises(PathNotFoundError):
            service.get_block_locations("/data/missing")

    def test_directory(self, service):
        with pytest.raises(PathIsDirectoryError):
            service.get_block_locations("/data/reports")


class TestRemoteErrors:
    """Tests for translation of client failures."""

    def test_read_failure_wrapped_with_cause(self):
        client = FailingClient()
        client._commit("/data/x.txt", b"x")

        with pytest.raises(RemoteOperationError) as exc_info:
            HdfsService(client).read_file_as_bytes("/data/x.txt")

        error = exc_info.value
        assert error.operation == "openFile"
        assert error.path == "/data/x.txt"
        assert isinstance(error.cause, OSError)
        assert error.__cause__ is error.cause

    def test_mkdir_failure_wrapped(self):
        with pytest.raises(RemoteOperationError) as exc_info:
            HdfsService(FailingClient()).mkdir("/data/new")

        assert isinstance(exc_info.value.cause, PermissionError)

    def test_policy_errors_not_wrapped(self):
        client = FailingClient()
        service = HdfsService(client, PathPolicy(blacklist={"data"}))

        with pytest.raises(BlacklistedPathError):
            service.upload_content("/data", b"x", "x.txt")
