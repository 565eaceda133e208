"""
Validators deciding whether the current user may use a cluster.

Each validator is built from its configuration entry and answers
``valid()``. A ``False`` answer means the environment does not satisfy the
check; an exception means the check itself is broken and is reported
separately by the cluster.
"""

import grp
import os
import pwd
import re
import socket
import subprocess
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from .config import config, logger
from .resolver import VALIDATORS


class Validator(ABC):
    """Base class of a cluster access check."""

    @classmethod
    def from_config(cls, cfg: Mapping) -> "Validator":
        """Build from a configuration entry, dropping the ``type`` tag."""
        kwargs = {k: v for k, v in cfg.items() if k != "type"}
        return cls(**kwargs)

    @abstractmethod
    def valid(self) -> bool:
        """Whether the current context passes this check."""


# =============================================================================
# Group Membership
# =============================================================================

def get_user_groups(user: Optional[str] = None) -> Set[str]:
    """
    Get names of the groups a user belongs to.

    Args:
        user: Login name. If None, the groups of the running process.
    """
    if user is None:
        gids = set(os.getgroups())
        gids.add(os.getegid())
    else:
        entry = pwd.getpwnam(user)
        gids = set(os.getgrouplist(user, entry.pw_gid))

    names = set()
    for gid in gids:
        try:
            names.add(grp.getgrgid(gid).gr_name)
        except KeyError:
            # gid with no group database entry
            names.add(str(gid))
    return names


@VALIDATORS.register("group_validator")
@dataclass(frozen=True)
class GroupValidator(Validator):
    """Membership in any of ``groups`` (or in none of them if not ``allow``)."""
    groups: Tuple[str, ...]
    allow: bool = True
    user: Optional[str] = None

    @classmethod
    def from_config(cls, cfg: Mapping) -> "GroupValidator":
        groups = cfg.get("groups", cfg.get("group"))
        if groups is None:
            raise ValueError("group_validator requires 'group' or 'groups'")
        if isinstance(groups, str):
            groups = [groups]
        allow = cfg.get("allow", True)
        if not isinstance(allow, bool):
            raise ValueError(f"group_validator 'allow' must be a boolean, got {allow!r}")
        return cls(
            groups=tuple(str(g) for g in groups),
            allow=allow,
            user=cfg.get("user"),
        )

    def valid(self) -> bool:
        member = not set(self.groups).isdisjoint(get_user_groups(self.user))
        return member if self.allow else not member


# =============================================================================
# SSH Reachability
# =============================================================================

def verify_ssh_connectivity(
    host: str,
    port: int = 22,
    user: Optional[str] = None,
    timeout: Optional[int] = None,
    retries: Optional[int] = None
) -> bool:
    """
    Verify an SSH login to host works (not just that the port is open).

    Unreachable hosts are a normal negative answer, so timeouts and a
    missing ssh binary yield False rather than an exception.
    """
    timeout = timeout or config.ssh_connect_timeout
    retries = retries or config.ssh_retries
    user = config.ssh_user if user is None else user
    target = f"{user}@{host}" if user else host

    for attempt in range(retries):
        try:
            # SECURITY: Using list arguments, not shell=True
            result = subprocess.run(
                [
                    "ssh",
                    "-p", str(port),
                    "-o", f"ConnectTimeout={timeout}",
                    "-o", "StrictHostKeyChecking=accept-new",
                    "-o", "BatchMode=yes",
                    target,
                    "exit"
                ],
                capture_output=True,
                timeout=config.ssh_timeout + timeout
            )
            if result.returncode == 0:
                logger.debug(f"SSH connectivity verified for {host}")
                return True
        except subprocess.TimeoutExpired:
            logger.debug(f"SSH timeout for {host} (attempt {attempt + 1}/{retries})")
        except OSError as e:
            logger.debug(f"SSH error for {host}: {e}")

        if attempt < retries - 1:
            time.sleep(0.5)

    logger.warning(f"SSH connectivity failed for {host} after {retries} attempts")
    return False


@VALIDATORS.register("ssh_validator")
@dataclass(frozen=True)
class SSHValidator(Validator):
    """A non-interactive SSH login to ``host`` succeeds."""
    host: str
    port: int = 22
    user: Optional[str] = None
    timeout: Optional[int] = None
    retries: Optional[int] = None

    def valid(self) -> bool:
        return verify_ssh_connectivity(
            self.host,
            port=self.port,
            user=self.user,
            timeout=self.timeout,
            retries=self.retries,
        )


# =============================================================================
# Local Host
# =============================================================================

@VALIDATORS.register("hostname_validator")
@dataclass(frozen=True)
class HostnameValidator(Validator):
    """The local host name matches ``pattern`` (e.g. only some web nodes)."""
    pattern: str

    def __post_init__(self):
        try:
            re.compile(self.pattern)
        except re.error as e:
            raise ValueError(f"invalid hostname pattern '{self.pattern}': {e}") from e

    def valid(self) -> bool:
        return re.search(self.pattern, socket.gethostname(), re.IGNORECASE) is not None
