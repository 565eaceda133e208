"""
Type resolution for configured validators and servers.

A configuration entry names its implementation with a ``type`` tag.
Implementations register their tag here at import time, and cluster
construction turns each entry into an instance through the matching
resolver.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from .config import logger
from .errors import ClusterRegistryError, ConfigEntryError, UnknownTypeError

T = TypeVar("T")

Factory = Callable[[Mapping], Any]


class TypeResolver(Generic[T]):
    """Maps ``type`` tags to factories building one capability."""

    def __init__(self, capability: str):
        self.capability = capability
        self._factories: Dict[str, Callable[[Mapping], T]] = {}

    def register(self, type_tag: str, *aliases: str):
        """Class decorator registering an implementation under one or more tags."""
        def fn(cls):
            factory = getattr(cls, "from_config", cls)
            for tag in (type_tag, *aliases):
                self.add(tag, factory)
            return cls
        return fn

    def add(self, type_tag: str, factory: Callable[[Mapping], T]) -> None:
        existing = self._factories.get(type_tag)
        if existing is not None and existing != factory:
            raise ValueError(f"{self.capability} type '{type_tag}' is already registered")
        self._factories[type_tag] = factory
        logger.debug(f"Registered {self.capability} type '{type_tag}'")

    def remove(self, type_tag: str) -> None:
        self._factories.pop(type_tag, None)

    def resolve(self, type_tag: str, key: Optional[str] = None) -> Callable[[Mapping], T]:
        """
        Look up the factory for a type tag.

        Raises:
            UnknownTypeError: If nothing is registered under the tag.
        """
        try:
            return self._factories[type_tag]
        except KeyError:
            raise UnknownTypeError(type_tag, key, self.capability) from None

    def build(self, key: str, cfg: Any) -> T:
        """
        Construct the implementation described by one configuration entry.

        Args:
            key: Name of the entry inside its cluster (e.g. "login").
            cfg: Mapping with a ``type`` tag plus implementation fields.

        Raises:
            UnknownTypeError: If the tag is not registered.
            ConfigEntryError: If the entry is malformed or rejected by the
                implementation.
        """
        if not isinstance(cfg, Mapping):
            raise ConfigEntryError(f"{self.capability} entry must be a mapping", field=key)

        type_tag = cfg.get("type")
        if not isinstance(type_tag, str) or not type_tag:
            raise ConfigEntryError(f"{self.capability} entry is missing a 'type'", field=key)

        factory = self.resolve(type_tag, key)
        try:
            return factory(cfg)
        except ClusterRegistryError:
            raise
        except Exception as e:
            raise ConfigEntryError(
                f"invalid {self.capability} of type '{type_tag}': {e}", field=key
            ) from e

    def types(self) -> List[str]:
        """Get list of registered type tags."""
        return sorted(self._factories)

    def __contains__(self, type_tag: object) -> bool:
        return type_tag in self._factories


VALIDATORS: TypeResolver = TypeResolver("validator")
SERVERS: TypeResolver = TypeResolver("server")
