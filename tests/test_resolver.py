"""Tests for hpc_cluster_registry.resolver module."""

import pytest


class TestTypeResolver:
    """Tests for tag -> factory resolution."""

    def test_builtin_validators_registered(self):
        """Test built-in validator tags are available after import."""
        from hpc_cluster_registry import VALIDATORS
        assert "group_validator" in VALIDATORS
        assert "ssh_validator" in VALIDATORS
        assert "hostname_validator" in VALIDATORS

    def test_builtin_servers_registered(self):
        """Test built-in server tags (including aliases) are available."""
        from hpc_cluster_registry import SERVERS
        for tag in ("server", "ssh_server", "login_server", "torque_server",
                    "moab_server", "ganglia_server"):
            assert tag in SERVERS
        assert SERVERS.types() == sorted(SERVERS.types())

    def test_register_decorator(self):
        """Test a new implementation registers without touching core code."""
        from hpc_cluster_registry.resolver import TypeResolver

        resolver = TypeResolver("widget")

        @resolver.register("plain_widget", "widget_alias")
        class Widget:
            def __init__(self, cfg):
                self.size = cfg["size"]

        widget = resolver.build("w", {"type": "widget_alias", "size": 3})
        assert isinstance(widget, Widget)
        assert widget.size == 3
        assert resolver.types() == ["plain_widget", "widget_alias"]

    def test_register_prefers_from_config(self):
        """Test classes with from_config are built through it."""
        from hpc_cluster_registry.resolver import TypeResolver

        resolver = TypeResolver("widget")

        @resolver.register("w")
        class Widget:
            def __init__(self, size):
                self.size = size

            @classmethod
            def from_config(cls, cfg):
                return cls(size=cfg.get("size", 1))

        assert resolver.build("w", {"type": "w"}).size == 1

    def test_duplicate_registration_rejected(self):
        """Test a tag cannot be silently rebound to another factory."""
        from hpc_cluster_registry.resolver import TypeResolver

        resolver = TypeResolver("widget")
        resolver.add("w", dict)
        resolver.add("w", dict)  # same factory is fine
        with pytest.raises(ValueError, match="already registered"):
            resolver.add("w", list)

    def test_resolve_unknown_type(self):
        """Test unknown tags raise UnknownTypeError with tag and key."""
        from hpc_cluster_registry import SERVERS, UnknownTypeError

        with pytest.raises(UnknownTypeError) as exc_info:
            SERVERS.resolve("unregistered_type", "login")

        err = exc_info.value
        assert err.type_tag == "unregistered_type"
        assert err.key == "login"
        assert err.capability == "server"
        assert "unregistered_type" in str(err)

    def test_remove(self):
        """Test removing a tag."""
        from hpc_cluster_registry.resolver import TypeResolver

        resolver = TypeResolver("widget")
        resolver.add("w", dict)
        resolver.remove("w")
        assert "w" not in resolver
        resolver.remove("w")  # idempotent


class TestBuild:
    """Tests for building entries."""

    def test_build_requires_mapping(self):
        from hpc_cluster_registry import SERVERS, ConfigEntryError

        with pytest.raises(ConfigEntryError) as exc_info:
            SERVERS.build("login", "owens.osc.edu")
        assert exc_info.value.field == "login"

    def test_build_requires_type(self):
        from hpc_cluster_registry import SERVERS, ConfigEntryError

        with pytest.raises(ConfigEntryError, match="type"):
            SERVERS.build("login", {"host": "owens.osc.edu"})

    def test_build_wraps_constructor_errors(self):
        """Test constructor rejections become ConfigEntryError naming the key."""
        from hpc_cluster_registry import SERVERS, ConfigEntryError, UnknownTypeError

        with pytest.raises(ConfigEntryError) as exc_info:
            SERVERS.build("login", {"type": "ssh_server"})  # no host
        assert not isinstance(exc_info.value, UnknownTypeError)
        assert exc_info.value.field == "login"
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_build_wraps_any_factory_error(self):
        """Test a factory raising outside ValueError/TypeError is still wrapped."""
        from hpc_cluster_registry import SERVERS, ConfigEntryError

        def factory(cfg):
            raise RuntimeError("backend unavailable")

        SERVERS.add("failing_server", factory)
        try:
            with pytest.raises(ConfigEntryError) as exc_info:
                SERVERS.build("login", {"type": "failing_server"})
        finally:
            SERVERS.remove("failing_server")
        assert exc_info.value.field == "login"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "backend unavailable" in str(exc_info.value)

    def test_build_passes_config_through(self):
        from hpc_cluster_registry import SERVERS, SSHServer

        server = SERVERS.build("login", {"type": "login_server", "host": "h", "port": 2222})
        assert isinstance(server, SSHServer)
        assert server.port == 2222
