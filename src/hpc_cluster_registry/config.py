#!/usr/bin/env python3
"""
Configuration module for the HPC cluster registry.

Centralizes environment variables, logging and the location of the
clusters configuration document.

Configuration document layout (schema version v1):
- v1: top-level version block, the only one consumed
- <cluster name>: title, hpc_cluster, validators, servers
- validators/servers: mapping of name -> {type: <tag>, ...}
"""
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# Schema version block read from the configuration document
CONFIG_VERSION = "v1"


def _get_config_root() -> Path:
    """Detect the directory holding clusters.yml."""
    # Check environment variable first
    env_path = os.environ.get("HPC_CLUSTERS_CONFIG_ROOT")
    if env_path and Path(env_path).exists():
        return Path(env_path)

    # System-wide portal configuration
    system_path = Path("/etc/ood/config")
    if system_path.exists():
        return system_path

    # Fallback to the sample shipped with the package
    return Path(__file__).parent / "etc"


_CONFIG_ROOT = _get_config_root()


# =============================================================================
# Logging Setup
# =============================================================================

LOG_LEVEL = os.getenv("HPC_CLUSTERS_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger("hpc-cluster-registry")


# =============================================================================
# Environment Configuration
# =============================================================================

@dataclass(frozen=True)
class RegistryConfig:
    """Registry configuration from environment variables."""

    # Clusters document
    clusters_file: str = field(
        default_factory=lambda: os.getenv("HPC_CLUSTERS_FILE", str(_CONFIG_ROOT / "clusters.yml"))
    )

    # SSH reachability checks
    ssh_user: str = field(
        default_factory=lambda: os.getenv("HPC_CLUSTERS_SSH_USER", os.getenv("USER", ""))
    )
    ssh_timeout: int = field(default_factory=lambda: int(os.getenv("HPC_CLUSTERS_SSH_TIMEOUT", "5")))
    ssh_connect_timeout: int = field(
        default_factory=lambda: int(os.getenv("HPC_CLUSTERS_SSH_CONNECT_TIMEOUT", "2"))
    )
    ssh_retries: int = field(default_factory=lambda: int(os.getenv("HPC_CLUSTERS_SSH_RETRIES", "1")))


# Global config instance
config = RegistryConfig()


def get_clusters_file() -> Path:
    """Get path to the clusters configuration document."""
    return Path(config.clusters_file)


# =============================================================================
# Validation Functions
# =============================================================================

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def validate_cluster_name(name: str) -> tuple[bool, Optional[str]]:
    """Validate a cluster name supplied by a caller."""
    if not name or not name.strip():
        return False, "Cluster name cannot be empty"
    if not _NAME_PATTERN.match(name):
        return False, f"Invalid cluster name: {name}"
    return True, None


def validate_role_name(role: str) -> tuple[bool, Optional[str]]:
    """Validate a server role supplied by a caller."""
    if not role or not role.strip():
        return False, "Role cannot be empty"
    if not _NAME_PATTERN.match(role):
        return False, f"Invalid role: {role}"
    return True, None


# =============================================================================
# Export All
# =============================================================================

__all__ = [
    "CONFIG_VERSION",
    "config",
    "RegistryConfig",
    "logger",
    "get_clusters_file",
    "validate_cluster_name",
    "validate_role_name",
]
