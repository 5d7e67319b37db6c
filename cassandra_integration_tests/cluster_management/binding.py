"""Binding of a single test to the shared fixture.

A binding is created when a test starts and dropped when it finishes. It owns nothing except
the per-test resources registered with `track` / `callback`; cluster and session handles are
borrowed from the fixture.
"""

import logging
import typing as tp

from cassandra_integration_tests.cluster_management import fixture as fixture_mod

LOGGER = logging.getLogger(__name__)


def canonical_name(name: str) -> str:
    """Return canonical (lowercase) form of a keyspace or table name.

    Unquoted CQL identifiers are case-insensitive and Cassandra stores them lowercased.
    """
    if not name:
        msg = "Name cannot be empty"
        raise ValueError(msg)
    return name.lower()


class TestBinding:
    """Per-test view of the shared fixture."""

    # Not a test class
    __test__ = False

    def __init__(self, fixture: fixture_mod.Fixture, test_identity: str) -> None:
        self.table_name_prefix = canonical_name(test_identity)
        self.keyspace_name = canonical_name(fixture.keyspace_name)
        self.test_identity = test_identity

        self._fixture: fixture_mod.Fixture | None = fixture
        self._callbacks: list[tuple[tp.Callable, tuple]] = []

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(keyspace_name={self.keyspace_name!r}, "
            f"table_name_prefix={self.table_name_prefix!r}, released={self.released})"
        )

    @property
    def released(self) -> bool:
        return self._fixture is None

    @property
    def fixture(self) -> fixture_mod.Fixture:
        if self._fixture is None:
            msg = f"Binding for '{self.test_identity}' was already released."
            raise RuntimeError(msg)
        return self._fixture

    @property
    def cluster(self) -> tp.Any:
        """Cluster handle, valid as long as the owning fixture is not closed."""
        return self.fixture.cluster

    @property
    def session(self) -> tp.Any:
        """Session handle, valid as long as the owning fixture is not closed."""
        return self.fixture.session

    @property
    def server_version(self) -> str:
        return self.fixture.server_version

    def table_name(self, suffix: str = "") -> str:
        """Return name of a table owned by the test."""
        if not suffix:
            return self.table_name_prefix
        return canonical_name(f"{self.table_name_prefix}_{suffix}")

    def callback(self, func: tp.Callable, *args: tp.Any) -> None:
        """Call `func(*args)` when the test finishes."""
        if self.released:
            msg = f"Binding for '{self.test_identity}' was already released."
            raise RuntimeError(msg)
        self._callbacks.append((func, args))

    def track(self, resource: tp.Any) -> tp.Any:
        """Close `resource` when the test finishes and return it."""
        self.callback(resource.close)
        return resource

    def release(self) -> list[Exception]:
        """Run the registered cleanup in reverse order and drop references to the fixture.

        Return errors raised by the cleanup. Calling it again does nothing.
        """
        if self.released:
            return []

        reclamation_errors: list[Exception] = []
        while self._callbacks:
            func, args = self._callbacks.pop()
            try:
                func(*args)
            except Exception as err:
                reclamation_errors.append(err)

        self._fixture = None
        return reclamation_errors


def bind(fixture: fixture_mod.Fixture, test_identity: str) -> TestBinding:
    """Bind test identified by `test_identity` to the shared fixture."""
    return TestBinding(fixture=fixture, test_identity=test_identity)
