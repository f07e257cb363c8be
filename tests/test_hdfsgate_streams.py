"""
Tests for StreamGuard and close_quietly.
"""

import io
import logging
import pytest
from unittest.mock import MagicMock

from hdfsgate.HdfsGate.memory_client import build_memory_client
from hdfsgate.HdfsGate.service import HdfsService
from hdfsgate.HdfsGate.streams import StreamGuard, close_quietly


class BrokenCloseStream(io.BytesIO):
    """A stream whose close always fails."""

    def close(self):
        if self.closed:
            return
        super().close()
        raise OSError("close failed")


class TestCloseQuietly:
    """Tests for close_quietly."""

    def test_closes_stream(self):
        stream = io.BytesIO(b"x")
        close_quietly(stream)
        assert stream.closed

    def test_none_is_ignored(self):
        close_quietly(None)

    def test_close_failure_logged(self, caplog):
        """A failing close is logged, not raised."""
        with caplog.at_level(logging.ERROR, logger="hdfsgate"):
            close_quietly(BrokenCloseStream(), "inputStream")

        assert "inputStream close exception" in caplog.text


class TestStreamGuard:
    """Tests for the StreamGuard context manager."""

    def test_yields_stream_and_closes(self):
        stream = io.BytesIO(b"data")

        with StreamGuard(stream) as guarded:
            assert guarded is stream
            assert guarded.read() == b"data"

        assert stream.closed

    def test_closes_on_error(self):
        stream = MagicMock()

        with pytest.raises(RuntimeError):
            with StreamGuard(stream):
                raise RuntimeError("boom")

        stream.close.assert_called_once()

    def test_close_failure_does_not_mask_error(self, caplog):
        """The primary failure propagates even when close also fails."""
        with caplog.at_level(logging.ERROR, logger="hdfsgate"):
            with pytest.raises(RuntimeError, match="primary"):
                with StreamGuard(BrokenCloseStream(), "outputStream"):
                    raise RuntimeError("primary")

        assert "outputStream close exception" in caplog.text

    def test_close_failure_after_success(self, caplog):
        """A successful block is not turned into a failure by close."""
        with caplog.at_level(logging.ERROR, logger="hdfsgate"):
            with StreamGuard(BrokenCloseStream(b"ok")) as stream:
                data = stream.read()

        assert data == b"ok"
        assert "close exception" in caplog.text


class TestServiceStreams:
    """Streams opened by HdfsService are always closed."""

    def test_read_closes_input_stream(self):
        client = build_memory_client({"/data/x.txt": b"x"})
        opened = []
        real_open = client.open

        def tracking_open(path):
            stream = real_open(path)
            opened.append(stream)
            return stream

        client.open = tracking_open
        HdfsService(client).read_file_as_text("/data/x.txt")

        assert len(opened) == 1
        assert opened[0].closed

    def test_read_survives_failing_close(self, caplog):
        client = build_memory_client({"/data/x.txt": b"payload"})
        client.open = lambda path: BrokenCloseStream(b"payload")

        with caplog.at_level(logging.ERROR, logger="hdfsgate"):
            assert HdfsService(client).read_file_as_bytes("/data/x.txt") == b"payload"

        assert "inputStream close exception" in caplog.text
