import logging
import typing as tp

import pytest
from _pytest.fixtures import FixtureRequest
from _pytest.tmpdir import TempPathFactory
from pytest_metadata.plugin import metadata_key

from cassandra_integration_tests.cluster_management import cluster_management
from cassandra_integration_tests.cluster_management import common
from cassandra_integration_tests.cluster_management import driver
from cassandra_integration_tests.cluster_management import provisioning
from cassandra_integration_tests.utils import configuration
from cassandra_integration_tests.utils import helpers
from cassandra_integration_tests.utils import temptools

LOGGER = logging.getLogger(__name__)


def pytest_configure(config: tp.Any) -> None:
    config.addinivalue_line(
        "markers",
        "creation_params(**kwargs): parameters of the fixture requested by the `binding` fixture",
    )

    config.stash[metadata_key]["CASSANDRA_VERSION"] = configuration.CASSANDRA_VERSION
    config.stash[metadata_key]["CCM_BIN"] = configuration.CCM_BIN
    config.stash[metadata_key]["CCM_CONFIG_DIR"] = str(configuration.CCM_CONFIG_DIR)
    config.stash[metadata_key]["SSL_DIR"] = str(configuration.SSL_DIR)
    config.stash[metadata_key]["KEEP_CLUSTERS_RUNNING"] = str(configuration.KEEP_CLUSTERS_RUNNING)
    config.stash[metadata_key]["CHECK_HEALTH_ON_REUSE"] = str(configuration.CHECK_HEALTH_ON_REUSE)


@pytest.fixture(scope="session")
def init_pytest_temp_dirs(tmp_path_factory: TempPathFactory) -> None:
    """Init `PytestTempDirs`."""
    temptools.PytestTempDirs.init(tmp_path_factory=tmp_path_factory)


@pytest.fixture(scope="session")
def fixture_registry(
    worker_id: str, init_pytest_temp_dirs: None
) -> cluster_management.FixtureRegistry:
    """Return registry of the shared fixture for this pytest worker."""
    if not helpers.tool_has(configuration.CCM_BIN):
        pytest.skip(f"`{configuration.CCM_BIN}` is not available.")

    return cluster_management.FixtureRegistry(
        tool=provisioning.CcmClusterTool(worker_id=worker_id),
        driver=driver.CassandraDriver(),
        worker_id=worker_id,
        lock_file=common.get_ccm_lock_file(),
        log_lock_file=common.get_log_lock_file(),
    )


@pytest.fixture(scope="session")
def cleanup_coordinator(
    fixture_registry: cluster_management.FixtureRegistry,
) -> tp.Iterator[cluster_management.CleanupCoordinator]:
    """Return cleanup coordinator, close all fixtures at the end of session."""
    coordinator = cluster_management.CleanupCoordinator(registry=fixture_registry)
    yield coordinator
    coordinator.close()


@pytest.fixture(scope="module")
def module_fixture_boundary(
    cleanup_coordinator: cluster_management.CleanupCoordinator,
) -> tp.Iterator[None]:
    """Don't share the fixture across test module boundaries."""
    cleanup_coordinator.close()
    yield
    cleanup_coordinator.close()


@pytest.fixture
def binding(
    request: FixtureRequest,
    fixture_registry: cluster_management.FixtureRegistry,
    cleanup_coordinator: cluster_management.CleanupCoordinator,
    module_fixture_boundary: None,
) -> tp.Iterator[cluster_management.TestBinding]:
    """Bind the test to the shared fixture.

    Alternative to `integration.BasicIntegrationTest` for tests that are plain functions.
    The fixture parameters come from the `creation_params` marker.
    """
    marker = request.node.get_closest_marker("creation_params")
    params = cluster_management.CreationParams(**(marker.kwargs if marker else {}))
    owner = request.node.module.__name__

    shared = fixture_registry.ensure(params, owner=owner)
    test_binding = cluster_management.bind(shared, request.node.originalname)

    yield test_binding

    cleanup_coordinator.after_test(test_binding)
