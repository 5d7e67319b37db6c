"""The shared fixture: a provisioned cluster plus an open driver session."""

import dataclasses
import logging
import pathlib as pl
import typing as tp

from packaging import version

LOGGER = logging.getLogger(__name__)


def _derive_replication_factor(nodes: int) -> int:
    """Majority of nodes in a data center, rounded up for odd node counts."""
    return nodes // 2 if nodes % 2 == 0 else (nodes + 1) // 2


@dataclasses.dataclass(frozen=True)
class CreationParams:
    """Parameters a test class declares for provisioning its fixture."""

    dc1_nodes: int = 1
    dc2_nodes: int = 0
    # -1 means "derive from number of nodes"
    replication_factor: int = -1
    use_ssl: bool = False
    use_auth: bool = False
    enable_udf_aggregates: bool = False

    def __post_init__(self) -> None:
        if self.dc1_nodes < 1:
            msg = f"Invalid number of nodes in DC1: {self.dc1_nodes}"
            raise ValueError(msg)
        if self.dc2_nodes < 0:
            msg = f"Invalid number of nodes in DC2: {self.dc2_nodes}"
            raise ValueError(msg)
        if self.replication_factor != -1 and self.replication_factor < 1:
            msg = f"Invalid replication factor: {self.replication_factor}"
            raise ValueError(msg)

    @property
    def effective_replication_factor(self) -> int:
        if self.replication_factor != -1:
            return self.replication_factor
        return _derive_replication_factor(self.dc1_nodes)

    def replication_strategy(self) -> dict[str, tp.Any]:
        """Return replication map for `CREATE KEYSPACE`."""
        if not self.dc2_nodes:
            return {
                "class": "SimpleStrategy",
                "replication_factor": self.effective_replication_factor,
            }

        return {
            "class": "NetworkTopologyStrategy",
            "dc1": self.effective_replication_factor,
            "dc2": _derive_replication_factor(self.dc2_nodes),
        }


@dataclasses.dataclass(frozen=True)
class ClusterHandle:
    """Reference to a cluster provisioned by CCM."""

    name: str
    version: str
    ip_prefix: str
    dc1_nodes: int
    dc2_nodes: int = 0
    use_auth: bool = False
    ssl_dir: pl.Path | None = None

    @property
    def contact_points(self) -> list[str]:
        return [f"{self.ip_prefix}{i}" for i in range(1, self.dc1_nodes + self.dc2_nodes + 1)]


@dataclasses.dataclass(eq=False)
class Fixture:
    """Environment shared by the tests of a single test class.

    The fixture owns both handles. Tests only borrow them through a `TestBinding`.
    """

    cluster: tp.Any
    session: tp.Any
    server_version: str
    params: CreationParams
    keyspace_name: str
    tool: tp.Any = dataclasses.field(repr=False)
    driver: tp.Any = dataclasses.field(repr=False)
    keep_cluster: bool = False
    closed: bool = dataclasses.field(default=False, init=False)

    @property
    def server_version_info(self) -> version.Version:
        return version.parse(self.server_version)

    def close(self) -> None:
        """Drop the keyspace, close the session and destroy the cluster.

        All steps are attempted. The first error is re-raised after the last step.
        """
        if self.closed:
            return
        self.closed = True

        LOGGER.info(f"Closing fixture with keyspace '{self.keyspace_name}'.")
        errors: list[Exception] = []

        try:
            self.driver.drop_keyspace(self.session, self.keyspace_name)
        except Exception as err:
            LOGGER.warning(f"Failed to drop keyspace '{self.keyspace_name}': {err}")
            errors.append(err)

        try:
            self.driver.close(self.session)
        except Exception as err:
            LOGGER.warning(f"Failed to close session: {err}")
            errors.append(err)

        if self.keep_cluster:
            LOGGER.info(f"Keeping cluster {self.cluster} running.")
        else:
            try:
                self.tool.destroy(self.cluster)
            except Exception as err:
                LOGGER.warning(f"Failed to destroy cluster {self.cluster}: {err}")
                errors.append(err)

        if errors:
            raise errors[0]
