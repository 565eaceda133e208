"""
Cluster entity: a titled set of access validators and role-keyed servers.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, List, Optional

from .config import logger
from .errors import ClusterRegistryError, ConfigEntryError, ValidatorRuntimeError
from .resolver import SERVERS, VALIDATORS, TypeResolver
from .servers import Server  # registers built-in server types
from .validators import Validator  # registers built-in validator types

# Keys understood in a cluster entry
CLUSTER_FIELDS = ("title", "hpc_cluster", "validators", "servers")


def _build_all(resolver: TypeResolver, entries: Any, section: str) -> Dict[str, Any]:
    """Construct every entry of a validators/servers section."""
    if entries is None:
        return {}
    if not isinstance(entries, Mapping):
        raise ConfigEntryError("must be a mapping of name -> {type: ...}", field=section)

    built = {}
    for key, cfg in entries.items():
        built[str(key)] = resolver.build(str(key), cfg)
    return built


class Cluster:
    """
    An HPC cluster as described by one configuration entry.

    Validators decide whether the current user may use the cluster;
    servers are the endpoints it exposes, keyed by role (e.g. "login").
    A cluster is read-only once constructed.
    """

    def __init__(
        self,
        title: str,
        validators: Optional[Mapping] = None,
        servers: Optional[Mapping] = None,
        hpc_cluster: bool = True
    ):
        """
        Args:
            title: Human readable name of the cluster.
            validators: Mapping of name -> validator config ({type: ..., ...}).
            servers: Mapping of role -> server config ({type: ..., ...}).
            hpc_cluster: Whether this is an hpc-style cluster (meant for
                heavy computation).

        Raises:
            UnknownTypeError: A configured type tag is not registered.
            ConfigEntryError: Any field is malformed.
        """
        if not isinstance(title, str) or not title.strip():
            raise ConfigEntryError("must be a non-empty string", field="title")
        if not isinstance(hpc_cluster, bool):
            raise ConfigEntryError("must be a boolean", field="hpc_cluster")

        self._title = title
        self._hpc_cluster = hpc_cluster
        self._validators: Mapping[str, Validator] = MappingProxyType(
            _build_all(VALIDATORS, validators, "validators")
        )
        self._servers: Mapping[str, Server] = MappingProxyType(
            _build_all(SERVERS, servers, "servers")
        )

    @classmethod
    def from_config(cls, entry: Any) -> "Cluster":
        """Build a cluster from its configuration entry."""
        if not isinstance(entry, Mapping):
            raise ConfigEntryError("cluster entry must be a mapping")
        if "title" not in entry:
            raise ConfigEntryError("is required", field="title")

        unknown = [str(k) for k in entry if k not in CLUSTER_FIELDS]
        if unknown:
            logger.debug(f"Ignoring unknown cluster fields: {', '.join(unknown)}")

        return cls(
            title=entry["title"],
            validators=entry.get("validators"),
            servers=entry.get("servers"),
            hpc_cluster=entry.get("hpc_cluster", True),
        )

    @classmethod
    def all(cls, source: Any = None, force: bool = False) -> Dict[str, "Cluster"]:
        """
        Clusters the current user has access to.

        Args:
            source: Path to a clusters document, an already parsed
                document, or None for the configured clusters file.
            force: Include clusters whose validators fail as well.
        """
        from .registry import load_clusters

        return load_clusters(source, force=force)

    @property
    def title(self) -> str:
        return self._title

    @property
    def validators(self) -> Mapping[str, Validator]:
        return self._validators

    @property
    def servers(self) -> Mapping[str, Server]:
        return self._servers

    def valid(self) -> bool:
        """
        Whether the current user has access to this cluster.

        True iff every validator passes; a cluster without validators is
        valid. Validators may block on I/O.

        Raises:
            ValidatorRuntimeError: A validator raised instead of answering.
        """
        for name, validator in self._validators.items():
            try:
                ok = validator.valid()
            except ClusterRegistryError:
                raise
            except Exception as e:
                raise ValidatorRuntimeError(name, e) from e
            if not ok:
                logger.debug(f"Cluster '{self._title}' rejected by validator '{name}'")
                return False
        return True

    def is_hpc_cluster(self) -> bool:
        return self._hpc_cluster

    def has_server(self, name: str) -> bool:
        return name in self._servers

    def server(self, name: str) -> Optional[Server]:
        """Get the server registered under name, or None."""
        return self._servers.get(name)

    def server_by_role(self, role: str) -> Optional[Server]:
        """
        Get the server for a role such as "login" or "batch".

        Roles come from the configured server keys, so a new role needs
        only a new key in the configuration.
        """
        return self._servers.get(role)

    def has_server_by_role(self, role: str) -> bool:
        return role in self._servers

    def roles(self) -> List[str]:
        return list(self._servers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (validity not included, it may block)."""
        return {
            "title": self._title,
            "hpc_cluster": self._hpc_cluster,
            "validators": {name: type(v).__name__ for name, v in self._validators.items()},
            "servers": {
                role: {"kind": type(s).__name__, **s.to_dict()}
                for role, s in self._servers.items()
            },
        }

    def __repr__(self) -> str:
        return f"Cluster(title={self._title!r}, servers={self.roles()!r})"
