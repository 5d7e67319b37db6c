"""Module for exposing useful components of the shared fixture management.

Integration tests need a running multi-node Cassandra cluster and a live driver session.
Provisioning them takes tens of seconds to minutes, so a single environment is shared by all the
tests of a test class.

Key concepts:
    - **Fixture**: The shared environment, i.e. a cluster provisioned by CCM, a session opened by
      the driver, the server version and a keyspace created for the test class. The fixture owns
      the cluster and session handles and is the only one that closes them.
    - **FixtureRegistry**: A single-slot cache holding at most one live fixture. Its `ensure()`
      method returns the fixture in the slot, or provisions a new one when the slot is empty.
      Provisioning failures are fatal and never retried.
    - **TestBinding**: Per-test view of the fixture, with the lowercase keyspace name and table
      name prefix derived from the test name. It only borrows the cluster and session handles.
    - **CleanupCoordinator**: Releases per-test resources after each test. Tests that leave
      the cluster in an unusable state can request `force_isolation()`, so the next test gets
      a freshly provisioned fixture.

With pytest-xdist, every worker (execution lane) has its own registry, and operations of the
provisioning tool are serialized between lanes with a file lock.
"""

# flake8: noqa
from cassandra_integration_tests.cluster_management.binding import TestBinding
from cassandra_integration_tests.cluster_management.binding import bind
from cassandra_integration_tests.cluster_management.binding import canonical_name
from cassandra_integration_tests.cluster_management.cleanup import CleanupCoordinator
from cassandra_integration_tests.cluster_management.errors import FixtureError
from cassandra_integration_tests.cluster_management.errors import ProvisioningError
from cassandra_integration_tests.cluster_management.errors import ReclamationWarning
from cassandra_integration_tests.cluster_management.errors import SessionConnectionError
from cassandra_integration_tests.cluster_management.fixture import ClusterHandle
from cassandra_integration_tests.cluster_management.fixture import CreationParams
from cassandra_integration_tests.cluster_management.fixture import Fixture
from cassandra_integration_tests.cluster_management.registry import FixtureRegistry
from cassandra_integration_tests.cluster_management.registry import SlotState
