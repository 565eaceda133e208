"""Pytest configuration and fixtures for hpc-cluster-registry tests."""

import os
import pytest
from dataclasses import dataclass
from unittest.mock import patch, MagicMock

# Set test environment variables before importing modules
os.environ.setdefault("HPC_CLUSTERS_SSH_USER", "testuser")
os.environ.setdefault("HPC_CLUSTERS_SSH_CONNECT_TIMEOUT", "2")
os.environ.setdefault("HPC_CLUSTERS_SSH_RETRIES", "1")


@dataclass(frozen=True)
class StaticValidator:
    """Test validator answering a configured result."""
    result: bool = True

    @classmethod
    def from_config(cls, cfg):
        return cls(result=cfg.get("result", True))

    def valid(self):
        return self.result


class BrokenValidator:
    """Test validator whose check raises."""

    def __init__(self, cfg):
        self.cfg = cfg

    def valid(self):
        raise OSError("group database unavailable")


@pytest.fixture
def test_validators():
    """Register static_validator and broken_validator for one test."""
    from hpc_cluster_registry.resolver import VALIDATORS

    VALIDATORS.add("static_validator", StaticValidator.from_config)
    VALIDATORS.add("broken_validator", BrokenValidator)
    yield VALIDATORS
    VALIDATORS.remove("static_validator")
    VALIDATORS.remove("broken_validator")


@pytest.fixture
def owens_config():
    """Single accessible cluster with one login server."""
    return {
        "v1": {
            "osc": {
                "title": "Owens",
                "hpc_cluster": True,
                "validators": {},
                "servers": {
                    "login": {"type": "ssh_server", "host": "owens.osc.edu"},
                },
            }
        }
    }


@pytest.fixture
def clusters_yaml(tmp_path):
    """Write YAML text to a temporary clusters file and return its path."""
    def write(text: str):
        path = tmp_path / "clusters.yml"
        path.write_text(text)
        return path
    return write


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for testing without actual SSH calls."""
    with patch("subprocess.run") as mock_run:
        mock_result = MagicMock()
        mock_result.returncode = 0
        mock_result.stdout = ""
        mock_result.stderr = ""
        mock_run.return_value = mock_result
        yield mock_run


@pytest.fixture
def mock_groups():
    """Mock the current user's groups."""
    with patch(
        "hpc_cluster_registry.validators.get_user_groups",
        return_value={"users", "hpcusers"},
    ) as mock_get:
        yield mock_get


@pytest.fixture
def reset_mcp_server():
    """Drop the cached MCP server instance around a test."""
    import hpc_cluster_registry.mcp_server as server_module
    server_module._server = None
    yield server_module
    server_module._server = None
