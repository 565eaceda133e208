"""
Cluster registry: turns the clusters configuration document into the
set of clusters available to the caller.

Nothing is cached. Every load re-reads the document and re-runs the
validators, since their answers depend on the live environment.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .cluster import Cluster
from .config import CONFIG_VERSION, get_clusters_file, logger
from .errors import ConfigEntryError, ConfigSourceError, ConfigVersionError

ConfigSource = Union[str, Path, Mapping, None]


def load_document(source: ConfigSource = None) -> Mapping:
    """
    Load the top-level configuration document.

    Args:
        source: A mapping (used as is), a path to a YAML file, or None
            for the configured clusters file.

    Raises:
        ConfigSourceError: If the file cannot be read or parsed, or its
            top level is not a mapping.
    """
    if isinstance(source, Mapping):
        return source

    path = get_clusters_file() if source is None else Path(source)
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigSourceError(path, e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigSourceError(path, f"invalid YAML: {e}") from e

    if document is None:
        # Empty file
        return {}
    if not isinstance(document, Mapping):
        raise ConfigSourceError(path, "top level must be a mapping")
    return document


def parse_config(source: ConfigSource = None) -> Mapping:
    """
    Get the cluster entries of the supported version block.

    A document without the version block is an error; a version block
    that is present but empty means no clusters. Other top-level keys
    are ignored.

    Raises:
        ConfigVersionError: If the version block is missing or malformed.
    """
    document = load_document(source)
    if CONFIG_VERSION not in document:
        raise ConfigVersionError(CONFIG_VERSION, found=[str(k) for k in document])

    entries = document[CONFIG_VERSION]
    if entries is None:
        return {}
    if not isinstance(entries, Mapping):
        raise ConfigVersionError(
            CONFIG_VERSION,
            reason=f"version block '{CONFIG_VERSION}' must map cluster names to entries",
        )
    return entries


def build_cluster(name: str, entry: Any) -> Cluster:
    """
    Build one cluster, naming it in any error raised during construction.

    Raises:
        ConfigEntryError: (or UnknownTypeError) identifying the cluster.
    """
    try:
        return Cluster.from_config(entry)
    except ConfigEntryError as e:
        if e.cluster is None:
            e.cluster = name
        raise
    except Exception as e:
        raise ConfigEntryError(str(e), cluster=name) from e


def load_clusters(source: ConfigSource = None, force: bool = False) -> Dict[str, Cluster]:
    """
    Load the clusters the current user has access to.

    Every entry is built before any validator runs, so one malformed
    entry fails the whole load instead of yielding a partial registry.

    Args:
        source: Path to a clusters document, a parsed document, or None
            for the configured clusters file.
        force: Include clusters whose validators fail as well.

    Returns:
        Mapping of cluster name -> Cluster.

    Raises:
        ConfigSourceError, ConfigVersionError, ConfigEntryError,
        UnknownTypeError: On configuration problems.
        ValidatorRuntimeError: If a validator raised (never when force).
    """
    entries = parse_config(source)
    built = {str(name): build_cluster(str(name), entry) for name, entry in entries.items()}

    clusters = {}
    for name, cluster in built.items():
        if force or cluster.valid():
            clusters[name] = cluster
        else:
            logger.debug(f"Cluster '{name}' is not accessible, skipping")

    logger.info(f"Loaded {len(clusters)} of {len(built)} configured clusters")
    return clusters


__all__ = [
    "ConfigSource",
    "load_document",
    "parse_config",
    "build_cluster",
    "load_clusters",
]
