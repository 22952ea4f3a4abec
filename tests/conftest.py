"""
Pytest configuration and shared fixtures for the buildagent test suite.

This module provides common fixtures, a recording fake of the reporting
client, and configuration for all test modules in the buildagent project.
"""

import shutil
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from buildagent.models.api import JobStepState  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data():
    """Sample agent configuration data for testing."""
    return {
        "general": {"log_level": "DEBUG"},
        "server": {
            "timeout_seconds": 5.0,
            "max_attempts": 2,
            "retry_delay_seconds": 0.0,
        },
        "heartbeat": {"interval_seconds": 0.05},
        "logs": {
            "flush_size_bytes": 1024,
            "flush_interval_seconds": 0.5,
        },
        "process": {
            "shell": "/bin/sh",
            "termination_grace_seconds": 1.0,
            "output_poll_interval": 0.01,
        },
    }


@pytest.fixture
def sample_jobstep_data():
    """A job-step document as served by the coordinating server."""
    return {
        "id": "job_1",
        "status": {"id": "in_progress"},
        "result": {"id": "unknown"},
        "repository": {
            "url": "https://github.com/example/project.git",
            "backend": {"id": "git"},
        },
        "source": {
            "revision": {"sha": "master"},
            "patch": {"id": "patch_1"},
        },
        "commands": [
            {
                "id": "cmd_1",
                "script": "#!/bin/bash\necho -n $VAR",
                "env": {"VAR": "hello world"},
                "cwd": "/tmp",
                "artifacts": ["junit.xml"],
            },
            {
                "id": "cmd_2",
                "script": "#!/bin/bash\nexit 1",
                "cwd": "/tmp",
            },
        ],
    }


# ============================================================================
# Fake Reporting Client
# ============================================================================


class RecordingClient:
    """
    In-memory stand-in for ``ReportingClient``.

    Every call is appended to ``calls`` as a ``(kind, payload)`` tuple.
    Artifact payloads capture the file bytes at upload time. Set ``errors``
    to make a kind of call raise, and ``heartbeat_states`` to script the
    heartbeat responses (the last one repeats). ``heartbeat_delay`` makes
    each heartbeat block that long before answering.
    """

    def __init__(self, jobstep_id: str = "job_1"):
        self.jobstep_id = jobstep_id
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.errors: Dict[str, Exception] = {}
        self.heartbeat_states: List[JobStepState] = [
            JobStepState(id=jobstep_id, status="in_progress")
        ]
        self.jobstep_data: Dict[str, Any] = {"id": jobstep_id}
        self.heartbeats = 0
        self.closed = False
        self.clone_configs: List[Any] = []
        self.heartbeat_delay = 0.0
        self._lock = threading.Lock()

    def clone(self, config=None) -> "RecordingClient":
        self.clone_configs.append(config)
        return self

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "RecordingClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _record(self, kind: str, payload: Dict[str, Any]) -> None:
        error = self.errors.get(kind)
        if error is not None:
            raise error
        with self._lock:
            self.calls.append((kind, payload))

    def update_jobstep_status(self, update) -> None:
        self._record("jobstep", update.to_form())

    def update_command_status(self, command_id, update) -> None:
        payload = dict(update.to_form(), command_id=command_id)
        self._record("command", payload)

    def append_log(self, entry) -> None:
        self._record("log", entry.to_form())

    def upload_artifact(self, upload) -> None:
        payload = dict(upload.to_form(), content=Path(upload.path).read_bytes())
        self._record("artifact", payload)

    def heartbeat(self) -> JobStepState:
        if self.heartbeat_delay:
            time.sleep(self.heartbeat_delay)
        error = self.errors.get("heartbeat")
        with self._lock:
            self.heartbeats += 1
            index = min(self.heartbeats, len(self.heartbeat_states)) - 1
        if error is not None:
            raise error
        return self.heartbeat_states[index]

    def fetch_jobstep(self) -> JobStepState:
        error = self.errors.get("fetch")
        if error is not None:
            raise error
        return JobStepState.from_dict(self.jobstep_data)

    # --- Helpers for assertions ---

    def of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [payload for k, payload in self.calls if k == kind]

    def log_bytes(self) -> bytes:
        return b"".join(payload["text"] for payload in self.of_kind("log"))

    def log_text(self) -> str:
        return self.log_bytes().decode("utf-8", errors="replace")

    def index_of(self, kind: str, start: int = 0, **fields: Any) -> int:
        """
        Index of the first call at or after ``start`` matching ``fields``.

        A ``str`` given for the log ``text`` field is compared as UTF-8 bytes.
        """
        expected = {
            key: value.encode("utf-8") if isinstance(value, str) and key == "text" else value
            for key, value in fields.items()
        }
        for index in range(start, len(self.calls)):
            call_kind, payload = self.calls[index]
            if call_kind != kind:
                continue
            if all(payload.get(key) == value for key, value in expected.items()):
                return index
        raise AssertionError(f"No {kind} call matching {fields} after index {start}: {self.calls}")


@pytest.fixture
def recording_client():
    """A fake reporting client that records every call."""
    return RecordingClient()


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary agent configuration file for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump({"agent": sample_config_data}, f)

    return {
        "config": config_file,
        "dir": temp_dir,
    }


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from buildagent.config import clear_config_cache, set_config_path

    clear_config_cache()

    # Always reset to original config path
    set_config_path(original_config_path)


def make_state(status: str = "in_progress", result: str = "unknown", jobstep_id: str = "job_1") -> JobStepState:
    """Build a heartbeat response."""
    return JobStepState(id=jobstep_id, status=status, result=result)


@pytest.fixture
def state_factory():
    """Factory for heartbeat responses."""
    return make_state


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def waiter():
    """Polling helper for tests involving background threads."""
    return wait_for

