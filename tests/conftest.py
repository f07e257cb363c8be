"""
Pytest configuration and fixtures for hdfsgate tests.
"""

import sys
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from hdfsgate.Config.schema import CONFIG_SCHEMA
from hdfsgate.HdfsGate.memory_client import MemoryHadoopClient, build_memory_client
from hdfsgate.HdfsGate.models import PathPolicy
from hdfsgate.HdfsGate.service import HdfsService


TEST_BLACKLIST = {"hbase", "kylin", "tmp", "user", "one"}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def memory_client() -> MemoryHadoopClient:
    """An in-memory cluster with a small directory tree."""
    client = build_memory_client({
        "/data/reports/q1.csv": b"a,b\n1,2\n",
        "/data/reports/q2.csv": b"a,b\n3,4\n",
        "/data/raw/2024/events.log": b"line1\nline2\r\nline3",
        "/tmp/scratch.txt": b"scratch",
    })
    client.mkdirs("/data/empty")
    return client


@pytest.fixture
def policy() -> PathPolicy:
    """Path policy with the standard reserved directories."""
    return PathPolicy(blacklist=TEST_BLACKLIST)


@pytest.fixture
def service(memory_client, policy) -> HdfsService:
    """HdfsService bound to the in-memory cluster."""
    return HdfsService(memory_client, policy)


@pytest.fixture
def env_files(temp_dir: Path):
    """Paths for an isolated .env and config.json."""
    return temp_dir / ".env", temp_dir / "data" / "config.json"


@pytest.fixture
def clean_hdfs_env(monkeypatch):
    """Remove HDFS_* variables and restore them after the test."""
    for key in [f.env_var for f in CONFIG_SCHEMA]:
        # setenv first so the variable is removed again on undo
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_module_state():
    """Reset module-level state between tests."""
    yield

    # Reset HdfsGate
    try:
        import hdfsgate.HdfsGate as hdfs_gate
        hdfs_gate._service = None
        hdfs_gate._cluster = None
        hdfs_gate._initialized = False
    except (ImportError, AttributeError):
        pass

    # Reset Config
    try:
        import hdfsgate.Config as config_module
        config_module._manager = None
    except (ImportError, AttributeError):
        pass
