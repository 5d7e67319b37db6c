"""Fake provisioning tool and driver, no ccm or running cluster needed."""

import dataclasses
import typing as tp

from cassandra_integration_tests.cluster_management import cluster_management
from cassandra_integration_tests.cluster_management import driver
from cassandra_integration_tests.cluster_management import errors
from cassandra_integration_tests.cluster_management import provisioning


@dataclasses.dataclass(eq=False)
class FakeCluster:
    name: str
    params: cluster_management.CreationParams


@dataclasses.dataclass(eq=False)
class FakeSession:
    cluster: FakeCluster
    closed: bool = False
    keyspaces: dict[str, dict] = dataclasses.field(default_factory=dict)


class FakeClusterTool(provisioning.ClusterTool):
    """Provisioning tool that records calls instead of running ccm."""

    def __init__(self) -> None:
        self.created: list[FakeCluster] = []
        self.destroyed: list[FakeCluster] = []
        self.health_checks = 0
        self.fail_create = False
        self.fail_destroy = False
        self.healthy = True

    def create(self, params: cluster_management.CreationParams) -> FakeCluster:
        if self.fail_create:
            msg = "ccm create failed"
            raise errors.ProvisioningError(msg)
        cluster = FakeCluster(name=f"cluster{len(self.created) + 1}", params=params)
        self.created.append(cluster)
        return cluster

    def destroy(self, cluster: FakeCluster) -> None:
        if self.fail_destroy:
            msg = "ccm remove failed"
            raise RuntimeError(msg)
        self.destroyed.append(cluster)

    def health_check(self, cluster: FakeCluster) -> bool:
        self.health_checks += 1
        return self.healthy


class FakeDriver(driver.Driver):
    """Driver that records calls instead of connecting to a cluster."""

    def __init__(self, server_version: str = "3.11.16") -> None:
        self.version = server_version
        self.sessions: list[FakeSession] = []
        self.dropped_keyspaces: list[str] = []
        self.fail_connect = False
        self.fail_drop = False

    def open_session(self, cluster: FakeCluster) -> FakeSession:
        if self.fail_connect:
            msg = f"Failed to connect to cluster '{cluster.name}'"
            raise errors.SessionConnectionError(msg)
        session = FakeSession(cluster=cluster)
        self.sessions.append(session)
        return session

    def server_version(self, session: FakeSession) -> str:
        return self.version

    def close(self, session: FakeSession) -> None:
        session.closed = True

    def create_keyspace(
        self, session: FakeSession, name: str, replication: dict[str, tp.Any]
    ) -> None:
        session.keyspaces[name] = replication

    def drop_keyspace(self, session: FakeSession, name: str) -> None:
        if self.fail_drop:
            msg = f"Failed to drop keyspace {name}"
            raise RuntimeError(msg)
        session.keyspaces.pop(name, None)
        self.dropped_keyspaces.append(name)
