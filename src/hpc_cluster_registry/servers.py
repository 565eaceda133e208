"""
Servers: addressable endpoints a cluster exposes under a role name.

Each implementation declares the fields it understands as dataclass
fields. Fields it does not recognize are kept in ``extra`` so a server
always reads back what was configured.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode, urlunsplit

from .config import logger
from .resolver import SERVERS


@SERVERS.register("server")
@dataclass(frozen=True)
class Server:
    """A generic endpoint identified by its host."""
    host: str
    title: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not isinstance(self.host, str) or not self.host:
            raise ValueError("server requires a non-empty 'host'")

    @classmethod
    def from_config(cls, cfg: Mapping) -> "Server":
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in cfg.items():
            if key == "type":
                continue
            if key in known:
                kwargs[key] = value
            else:
                extra[key] = value
        if extra:
            logger.debug(f"{cls.__name__} keeps unrecognized fields: {', '.join(map(str, extra))}")
        return cls(**kwargs, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, unrecognized fields included."""
        data = dict(self.extra)
        for f in fields(self):
            if f.name != "extra":
                data[f.name] = getattr(self, f.name)
        return data


# =============================================================================
# Login / Shell Access
# =============================================================================

@SERVERS.register("ssh_server", "login_server")
@dataclass(frozen=True)
class SSHServer(Server):
    """A login node reached over SSH."""
    port: int = 22
    user: Optional[str] = None

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ValueError(f"invalid ssh port: {self.port!r}")

    @property
    def address(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host

    @property
    def url(self) -> str:
        return f"ssh://{self.address}:{self.port}"

    def ssh_command(self, *args: str) -> List[str]:
        """Build an ssh argument list for running args on this server."""
        # SECURITY: list arguments, never a shell string
        command = ["ssh", "-p", str(self.port), self.address]
        command.extend(args)
        return command


# =============================================================================
# Resource Managers / Schedulers
# =============================================================================

@SERVERS.register("torque_server")
@dataclass(frozen=True)
class TorqueServer(Server):
    """A Torque/PBS batch server."""
    lib: Optional[str] = None
    bin: Optional[str] = None
    version: Optional[str] = None

    def command(self, name: str) -> Path:
        """Path to a Torque client command (e.g. qsub)."""
        return Path(self.bin) / name if self.bin else Path(name)

    def environment(self) -> Dict[str, str]:
        env = {"PBS_DEFAULT": self.host}
        if self.lib:
            env["LD_LIBRARY_PATH"] = self.lib
        return env


@SERVERS.register("moab_server")
@dataclass(frozen=True)
class MoabServer(Server):
    """A Moab scheduler server."""
    bin: Optional[str] = None
    homedir: Optional[str] = None
    version: Optional[str] = None

    def command(self, name: str) -> Path:
        """Path to a Moab client command (e.g. showq)."""
        return Path(self.bin) / name if self.bin else Path(name)

    def environment(self) -> Dict[str, str]:
        return {"MOABHOMEDIR": self.homedir} if self.homedir else {}


# =============================================================================
# Monitoring
# =============================================================================

@SERVERS.register("ganglia_server")
@dataclass(frozen=True)
class GangliaServer(Server):
    """A Ganglia web frontend serving cluster graphs."""
    scheme: str = "https"
    segments: Tuple[str, ...] = ("gweb", "graph.php")
    req_query: Dict[str, Any] = field(default_factory=dict, compare=False)
    opt_query: Dict[str, Any] = field(default_factory=dict, compare=False)
    version: Optional[str] = None

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.scheme, str) or not self.scheme:
            raise ValueError(f"invalid ganglia scheme: {self.scheme!r}")
        # Accept "https://" as written in older configuration files
        object.__setattr__(self, "scheme", self.scheme.split("://")[0])
        if isinstance(self.segments, str):
            object.__setattr__(self, "segments", (self.segments,))
        else:
            object.__setattr__(self, "segments", tuple(str(s) for s in self.segments))
        if not isinstance(self.req_query, Mapping) or not isinstance(self.opt_query, Mapping):
            raise ValueError("ganglia 'req_query' and 'opt_query' must be mappings")

    def url(self, **query: Any) -> str:
        """
        Build a graph URL.

        Required query parameters always appear; optional ones are
        defaults that ``query`` overrides.
        """
        params = dict(self.opt_query)
        params.update(query)
        params.update(self.req_query)
        path = "/" + "/".join(s.strip("/") for s in self.segments)
        return urlunsplit((self.scheme, self.host, path, urlencode(params), ""))
