"""
HPC Cluster Registry

Describes the compute clusters of a multi-tenant HPC portal: the servers
each one exposes and whether the current user may use it.
"""

from .config import (
    CONFIG_VERSION,
    config,
    RegistryConfig,
    get_clusters_file,
)
from .errors import (
    ClusterRegistryError,
    ConfigEntryError,
    ConfigSourceError,
    ConfigVersionError,
    UnknownTypeError,
    ValidatorRuntimeError,
)
from .resolver import (
    TypeResolver,
    SERVERS,
    VALIDATORS,
)
from .validators import (
    Validator,
    GroupValidator,
    HostnameValidator,
    SSHValidator,
    get_user_groups,
    verify_ssh_connectivity,
)
from .servers import (
    Server,
    GangliaServer,
    MoabServer,
    SSHServer,
    TorqueServer,
)
from .cluster import Cluster
from .registry import (
    load_clusters,
    load_document,
    parse_config,
)

__version__ = "0.1.0"
__all__ = [
    # Config
    "CONFIG_VERSION",
    "config",
    "RegistryConfig",
    "get_clusters_file",
    # Errors
    "ClusterRegistryError",
    "ConfigEntryError",
    "ConfigSourceError",
    "ConfigVersionError",
    "UnknownTypeError",
    "ValidatorRuntimeError",
    # Type resolution
    "TypeResolver",
    "SERVERS",
    "VALIDATORS",
    # Validators
    "Validator",
    "GroupValidator",
    "HostnameValidator",
    "SSHValidator",
    "get_user_groups",
    "verify_ssh_connectivity",
    # Servers
    "Server",
    "GangliaServer",
    "MoabServer",
    "SSHServer",
    "TorqueServer",
    # Registry
    "Cluster",
    "load_clusters",
    "load_document",
    "parse_config",
]
