"""Single-slot registry of the shared fixture.

The registry holds at most one live `Fixture`. The first test of a test class provisions it, the
following tests of the class reuse it. The slot moves through these states:

    EMPTY -> PROVISIONING -> READY (reused N times) -> EMPTY (after `invalidate`)
    PROVISIONING -> EMPTY on provisioning failure (the error propagates, there's no retry)
    READY -> DEAD when the health check of a reused fixture fails

Tests run sequentially on a single pytest worker, so the slot is never mutated while a test body
is running. With pytest-xdist every worker (execution lane) owns its own registry, and `ensure` and
`invalidate` are serialized between lanes with a file lock.
"""

import datetime
import enum
import logging
import typing as tp

from cassandra_integration_tests.cluster_management import common
from cassandra_integration_tests.cluster_management import errors
from cassandra_integration_tests.cluster_management import fixture
from cassandra_integration_tests.utils import configuration
from cassandra_integration_tests.utils import framework_log
from cassandra_integration_tests.utils import helpers
from cassandra_integration_tests.utils import locking
from cassandra_integration_tests.utils import types as ttypes

LOGGER = logging.getLogger(__name__)

KEYSPACE_PREFIX = "ks"
KEYSPACE_RAND_LEN = 8


class SlotState(enum.Enum):
    EMPTY = "empty"
    PROVISIONING = "provisioning"
    READY = "ready"
    DEAD = "dead"


def generate_keyspace_name(owner: str = "") -> str:
    """Return unique keyspace name for a new fixture.

    The owner (usually name of the test class) is kept in its original case. Cassandra folds
    unquoted identifiers to lowercase.
    """
    rand_str = helpers.get_rand_str(KEYSPACE_RAND_LEN)
    max_owner_len = common.MAX_KEYSPACE_LEN - len(KEYSPACE_PREFIX) - KEYSPACE_RAND_LEN - 2
    owner_part = helpers.sanitize_name(owner, max_len=max_owner_len).strip("_")
    if not owner_part:
        return f"{KEYSPACE_PREFIX}_{rand_str}"
    return f"{KEYSPACE_PREFIX}_{owner_part}_{rand_str}"


class FixtureRegistry:
    """Cache for a single shared fixture."""

    def __init__(
        self,
        tool: tp.Any,
        driver: tp.Any,
        *,
        worker_id: str = "master",
        lock_file: ttypes.FileType = "",
        log_lock_file: ttypes.FileType = "",
        check_health: bool = configuration.CHECK_HEALTH_ON_REUSE,
        keep_cluster: bool = configuration.KEEP_CLUSTERS_RUNNING,
    ) -> None:
        self.tool = tool
        self.driver = driver
        self.worker_id = worker_id
        self.lock_file = lock_file
        self.log_lock_file = log_lock_file
        self.check_health = check_health
        self.keep_cluster = keep_cluster

        self.provision_count = 0

        self._fixture: fixture.Fixture | None = None
        self._state = SlotState.EMPTY
        self._dead_reason = ""
        self._failed_owner = ""
        self._failure = ""

    @property
    def state(self) -> SlotState:
        return self._state

    def log(self, msg: str) -> None:
        """Log a message to the scheduling log."""
        LOGGER.debug(msg)
        if not configuration.SCHEDULING_LOG:
            return

        with (
            locking.lane_lock(self.log_lock_file),
            open(configuration.SCHEDULING_LOG, "a", encoding="utf-8") as logfile,
        ):
            logfile.write(
                f"{datetime.datetime.now(tz=datetime.timezone.utc)} on {self.worker_id}: {msg}\n"
            )

    def current(self) -> fixture.Fixture | None:
        """Return the fixture in the slot without provisioning anything."""
        return self._fixture

    def reset_failure(self) -> None:
        """Forget previous provisioning failure, so the failed owner can provision again."""
        self._failed_owner = ""
        self._failure = ""

    def _teardown_partial(self, cluster: tp.Any, session: tp.Any) -> None:
        """Tear down what was created before provisioning failed."""
        if session is not None:
            try:
                self.driver.close(session)
            except Exception as err:
                LOGGER.warning(f"Failed to close session of a failed fixture: {err}")

        if cluster is not None and not self.keep_cluster:
            try:
                self.tool.destroy(cluster)
            except Exception as err:
                LOGGER.warning(f"Failed to destroy cluster of a failed fixture: {err}")

    def _provision(self, params: fixture.CreationParams, owner: str) -> fixture.Fixture:
        self._state = SlotState.PROVISIONING
        self.log(f"provisioning fixture for '{owner}' with {params}")

        cluster = session = None
        try:
            self.provision_count += 1
            cluster = self.tool.create(params)
            session = self.driver.open_session(cluster)
            server_version = self.driver.server_version(session)
            keyspace_name = generate_keyspace_name(owner)
            self.driver.create_keyspace(session, keyspace_name, params.replication_strategy())
        except Exception as err:
            self._state = SlotState.EMPTY
            self._teardown_partial(cluster=cluster, session=session)
            self._failed_owner = owner
            self._failure = f"{err.__class__.__name__}: {err}"
            self.log(f"failed to provision fixture for '{owner}': {self._failure}")
            framework_log.log_failure(
                "Failed to provision fixture for '%s' on '%s':\n%s",
                owner,
                self.worker_id,
                self._failure,
            )
            if isinstance(err, errors.FixtureError):
                raise
            msg = f"Failed to provision fixture for '{owner}': {self._failure}"
            raise errors.ProvisioningError(msg) from err

        new_fixture = fixture.Fixture(
            cluster=cluster,
            session=session,
            server_version=server_version,
            params=params,
            keyspace_name=keyspace_name,
            tool=self.tool,
            driver=self.driver,
            keep_cluster=self.keep_cluster,
        )
        self._fixture = new_fixture
        self._state = SlotState.READY
        self.log(
            f"provisioned fixture with keyspace '{keyspace_name}', server version {server_version}"
        )
        return new_fixture

    def _reuse(self, params: fixture.CreationParams) -> fixture.Fixture:
        if self._fixture is None:
            msg = "Fixture not available, that cannot happen"
            raise RuntimeError(msg)

        if self._state == SlotState.DEAD:
            raise errors.ProvisioningError(self._dead_reason)

        # Callers are responsible for requesting the same parameters from all tests sharing
        # the fixture. A mismatch is not an error.
        if params != self._fixture.params:
            LOGGER.warning(
                f"Reusing fixture created with {self._fixture.params}, requested {params}."
            )

        if self.check_health and not self.tool.health_check(self._fixture.cluster):
            self._state = SlotState.DEAD
            self._dead_reason = f"Cluster {self._fixture.cluster} failed health check."
            self.log(self._dead_reason)
            framework_log.log_failure(
                "Health check failed on '%s':\n%s", self.worker_id, self._dead_reason
            )
            raise errors.ProvisioningError(self._dead_reason)

        return self._fixture

    def ensure(self, params: fixture.CreationParams, owner: str = "") -> fixture.Fixture:
        """Return the shared fixture, provision it first if the slot is empty.

        A fixture in the slot is returned as is, even when it was created with different `params`.

        Raise `ProvisioningError` or `SessionConnectionError` when the environment cannot be
        provisioned. After a failure, provisioning for the same `owner` is not attempted again.
        """
        with locking.lane_lock(self.lock_file):
            if self._fixture is not None:
                return self._reuse(params)

            if owner and owner == self._failed_owner:
                msg = f"Provisioning of fixture for '{owner}' already failed: {self._failure}"
                raise errors.ProvisioningError(msg)

            return self._provision(params=params, owner=owner)

    def invalidate(self) -> fixture.Fixture | None:
        """Empty the slot and return the evicted fixture.

        The evicted fixture is not closed, the caller is responsible for closing it.
        """
        with locking.lane_lock(self.lock_file):
            evicted = self._fixture
            self._fixture = None
            self._state = SlotState.EMPTY
            self._dead_reason = ""

        if evicted is not None:
            self.log(f"invalidated fixture with keyspace '{evicted.keyspace_name}'")
        return evicted
