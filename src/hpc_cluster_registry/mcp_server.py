#!/usr/bin/env python3
"""
HPC Cluster Registry MCP Server

Exposes the clusters configured for the portal, and the servers each
one offers, to MCP clients such as status pages and agents.

Tools:
- cluster_list: Clusters the current user may use (or all, with force)
- cluster_info: Details and validity of a single cluster
- cluster_server: Server registered under a role of a cluster
"""

import json
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .cluster import Cluster
from .config import CONFIG_VERSION, logger, validate_cluster_name, validate_role_name
from .errors import ClusterRegistryError, ValidatorRuntimeError
from .registry import ConfigSource, load_clusters


# =============================================================================
# MCP Server Setup
# =============================================================================

mcp = FastMCP("hpc-cluster-registry")


# =============================================================================
# Server Class
# =============================================================================

class ClusterRegistryServer:
    """MCP server answering questions about configured clusters."""

    def __init__(self, source: ConfigSource = None):
        self.source = source

    def check_access(self, name: str, cluster: Cluster) -> tuple[Optional[bool], Optional[str]]:
        """Run a cluster's validators once; (None, error) if one raised."""
        try:
            return cluster.valid(), None
        except ValidatorRuntimeError as e:
            logger.error(f"Validator failed for cluster {name}: {e}")
            return None, str(e)

    def describe(self, name: str, cluster: Cluster, valid: Optional[bool], error: Optional[str] = None) -> Dict[str, Any]:
        """Describe a cluster with an already computed validity."""
        info = {"name": name, **cluster.to_dict(), "valid": valid}
        if error is not None:
            info["error"] = error
        return info

    def list_clusters(self, force: bool = False) -> Dict[str, Any]:
        """List accessible clusters (all configured ones when force)."""
        try:
            # Validators run below, once per cluster
            clusters = load_clusters(self.source, force=True)
        except ClusterRegistryError as e:
            logger.error(f"Failed to load clusters: {e}")
            return {"success": False, "error": str(e)}

        listed = {}
        errors = {}
        for name, cluster in clusters.items():
            valid, error = self.check_access(name, cluster)
            if error is not None:
                errors[name] = error
            if force or valid:
                listed[name] = self.describe(name, cluster, valid, error)

        result = {
            "success": True,
            "version": CONFIG_VERSION,
            "force": force,
            "clusters": listed,
        }
        if errors:
            result["errors"] = errors
        return result

    def _find(self, name: str, force: bool) -> tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Look up one cluster, running only its own validators."""
        valid, error = validate_cluster_name(name)
        if not valid:
            return None, error

        clusters = load_clusters(self.source, force=True)
        cluster = clusters.get(name)
        if cluster is None:
            available = ", ".join(clusters) or "none"
            return None, f"Unknown cluster: {name}. Available: {available}"

        valid, error = self.check_access(name, cluster)
        if not force:
            if error is not None:
                return None, error
            if not valid:
                return None, f"Cluster {name} is not accessible to the current user"
        return {"cluster": cluster, "valid": valid, "error": error}, None

    def describe_cluster(self, name: str, force: bool = False) -> Dict[str, Any]:
        try:
            found, error = self._find(name, force)
        except ClusterRegistryError as e:
            logger.error(f"Failed to load clusters: {e}")
            return {"success": False, "error": str(e)}
        if found is None:
            return {"success": False, "error": error}

        return {
            "success": True,
            "cluster": self.describe(name, found["cluster"], found["valid"], found["error"]),
        }

    def get_server(self, name: str, role: str, force: bool = False) -> Dict[str, Any]:
        valid, error = validate_role_name(role)
        if not valid:
            return {"success": False, "error": error}

        try:
            found, error = self._find(name, force)
        except ClusterRegistryError as e:
            logger.error(f"Failed to load clusters: {e}")
            return {"success": False, "error": str(e)}
        if found is None:
            return {"success": False, "error": error}

        cluster = found["cluster"]
        server = cluster.server_by_role(role)
        if server is None:
            roles = ", ".join(cluster.roles()) or "none"
            return {
                "success": False,
                "error": f"Cluster {name} has no '{role}' server. Roles: {roles}",
            }

        return {
            "success": True,
            "cluster": name,
            "role": role,
            "server": {"kind": type(server).__name__, **server.to_dict()},
        }


# Global server instance
_server: Optional[ClusterRegistryServer] = None


def get_server() -> ClusterRegistryServer:
    """Get or create server instance."""
    global _server
    if _server is None:
        _server = ClusterRegistryServer()
    return _server


# =============================================================================
# MCP Tools
# =============================================================================

@mcp.tool()
async def cluster_list(force: bool = False) -> str:
    """
    List the HPC clusters available to the current user.

    Each cluster reports its title, whether it is an hpc-style cluster,
    its validators and the servers it exposes keyed by role (login,
    batch, ...).

    Parameters:
    - force (optional): Include clusters the current user may not use,
      e.g. for a status page (default: false)

    Returns JSON with one entry per cluster.
    """
    server = get_server()
    result = server.list_clusters(force=force)
    return json.dumps(result, indent=2, default=str)


@mcp.tool()
async def cluster_info(name: str, force: bool = False) -> str:
    """
    Get details about a single cluster.

    Parameters:
    - name (required): Cluster name as configured (e.g. "owens")
    - force (optional): Look the cluster up even if inaccessible

    Returns JSON describing the cluster and whether it is valid.
    """
    server = get_server()
    result = server.describe_cluster(name=name, force=force)
    return json.dumps(result, indent=2, default=str)


@mcp.tool()
async def cluster_server(name: str, role: str, force: bool = False) -> str:
    """
    Get the server a cluster exposes under a role.

    Roles are whatever the configuration defines (login, batch,
    ganglia, ...); no role list is built in.

    Parameters:
    - name (required): Cluster name
    - role (required): Server role (e.g. "login")
    - force (optional): Look the cluster up even if inaccessible

    Returns JSON with the server's fields.
    """
    server = get_server()
    result = server.get_server(name=name, role=role, force=force)
    return json.dumps(result, indent=2, default=str)


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Run the MCP server."""
    logger.info("Starting HPC Cluster Registry MCP Server")
    mcp.run()


if __name__ == "__main__":
    main()
