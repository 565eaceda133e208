"""Exceptions raised while loading and evaluating cluster configuration."""

from typing import Any, List, Optional


class ClusterRegistryError(Exception):
    """Base class for all cluster registry errors."""


class ConfigSourceError(ClusterRegistryError):
    """The configuration source could not be read or parsed."""

    def __init__(self, source: Any, reason: str):
        super().__init__(f"Cannot load cluster configuration from {source}: {reason}")
        self.source = source
        self.reason = reason


class ConfigVersionError(ClusterRegistryError):
    """The configuration document lacks a usable schema version block."""

    def __init__(self, version: str, found: Optional[List[str]] = None, reason: Optional[str] = None):
        self.version = version
        self.found = found or []
        if reason is None:
            available = ", ".join(self.found) if self.found else "none"
            reason = f"missing version block '{version}' (found: {available})"
        super().__init__(reason)


class ConfigEntryError(ClusterRegistryError):
    """A cluster entry is malformed.

    ``cluster`` may be unknown where the error is raised; the registry
    fills it in before the error leaves ``load_clusters``.
    """

    def __init__(self, message: str, cluster: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.cluster = cluster
        self.field = field

    def __str__(self) -> str:
        where = []
        if self.cluster is not None:
            where.append(f"cluster '{self.cluster}'")
        if self.field is not None:
            where.append(f"field '{self.field}'")
        if not where:
            return self.message
        return f"{', '.join(where)}: {self.message}"


class UnknownTypeError(ConfigEntryError):
    """A configured ``type`` tag has no registered implementation."""

    def __init__(self, type_tag: str, key: Optional[str], capability: str, cluster: Optional[str] = None):
        super().__init__(
            f"unknown {capability} type '{type_tag}'",
            cluster=cluster,
            field=key,
        )
        self.type_tag = type_tag
        self.key = key
        self.capability = capability


class ValidatorRuntimeError(ClusterRegistryError):
    """A validator raised instead of answering ``valid()``."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Validator '{name}' failed: {cause!r}")
        self.name = name
        self.cause = cause
