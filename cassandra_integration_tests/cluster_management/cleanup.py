"""Cleanup performed after every test."""

import gc
import logging
import os
import warnings

from cassandra_integration_tests.cluster_management import binding as binding_mod
from cassandra_integration_tests.cluster_management import errors
from cassandra_integration_tests.cluster_management import fixture
from cassandra_integration_tests.cluster_management import registry as registry_mod
from cassandra_integration_tests.utils import configuration
from cassandra_integration_tests.utils import locking

LOGGER = logging.getLogger(__name__)


class CleanupCoordinator:
    """Release per-test resources and retire fixtures that must not be reused."""

    def __init__(
        self,
        registry: registry_mod.FixtureRegistry,
        *,
        collect_garbage: bool = configuration.COLLECT_GARBAGE_AFTER_TEST,
    ) -> None:
        self.registry = registry
        self.collect_garbage = collect_garbage
        self.warnings_count = 0
        self._retired: list[fixture.Fixture] = []

    def _warn(self, msg: str) -> None:
        self.warnings_count += 1
        LOGGER.warning(msg)
        warnings.warn(msg, errors.ReclamationWarning, stacklevel=3)

    def _close_retired(self) -> None:
        while self._retired:
            retired = self._retired.pop(0)
            try:
                # `ccm remove` must not interleave with ccm calls of other lanes
                with locking.lane_lock(self.registry.lock_file):
                    retired.close()
            except Exception as err:
                self._warn(
                    f"Failed to close fixture with keyspace '{retired.keyspace_name}': {err}"
                )

    def after_test(self, binding: binding_mod.TestBinding) -> None:
        """Release resources of a finished test.

        Reclamation errors never fail the test, they are reported as `ReclamationWarning`.
        """
        if binding.released and not self._retired:
            return

        current_test = os.environ.get("PYTEST_CURRENT_TEST") or binding.test_identity
        self.registry.log(f"called `after_test` for '{current_test}'")

        for err in binding.release():
            self._warn(f"Failed to release resource of '{binding.test_identity}': {err}")

        if self.collect_garbage:
            gc.collect()

        self._close_retired()

    def force_isolation(self) -> None:
        """Make sure the next test gets a freshly provisioned fixture.

        The current fixture may still be used by the running test, so it is closed only after
        the test finishes.
        """
        evicted = self.registry.invalidate()
        if evicted is not None:
            self._retired.append(evicted)

    def close(self) -> None:
        """Close all fixtures, used at the class or session boundary."""
        self.force_isolation()
        self._close_retired()
