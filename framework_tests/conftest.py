import typing as tp

import pytest

from cassandra_integration_tests.cluster_management import cluster_management
from framework_tests import fakes


@pytest.fixture
def fake_tool() -> fakes.FakeClusterTool:
    return fakes.FakeClusterTool()


@pytest.fixture
def fake_driver() -> fakes.FakeDriver:
    return fakes.FakeDriver()


@pytest.fixture
def registry(
    fake_tool: fakes.FakeClusterTool, fake_driver: fakes.FakeDriver
) -> cluster_management.FixtureRegistry:
    return cluster_management.FixtureRegistry(
        tool=fake_tool, driver=fake_driver, check_health=False, keep_cluster=False
    )


@pytest.fixture
def coordinator(
    registry: cluster_management.FixtureRegistry,
) -> cluster_management.CleanupCoordinator:
    return cluster_management.CleanupCoordinator(registry=registry, collect_garbage=False)


# Fixtures used by `integration.BasicIntegrationTest`. Class scoped, so every test class starts
# with fresh fakes and the calls made by its tests can be counted.


@pytest.fixture(scope="class")
def fixture_registry() -> cluster_management.FixtureRegistry:
    return cluster_management.FixtureRegistry(
        tool=fakes.FakeClusterTool(),
        driver=fakes.FakeDriver(),
        check_health=False,
        keep_cluster=False,
    )


@pytest.fixture(scope="class")
def cleanup_coordinator(
    fixture_registry: cluster_management.FixtureRegistry,
) -> tp.Iterator[cluster_management.CleanupCoordinator]:
    coordinator = cluster_management.CleanupCoordinator(
        registry=fixture_registry, collect_garbage=False
    )
    yield coordinator
    coordinator.close()
