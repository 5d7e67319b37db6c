"""Provisioning of Cassandra clusters.

The registry talks to the provisioning tool only through the `ClusterTool` interface, so tests of
the framework itself can replace CCM with a fake.
"""

import logging
import pathlib as pl
import typing as tp

from packaging import version

from cassandra_integration_tests.cluster_management import errors
from cassandra_integration_tests.cluster_management import fixture
from cassandra_integration_tests.utils import configuration
from cassandra_integration_tests.utils import helpers
from cassandra_integration_tests.utils import pytest_utils
from cassandra_integration_tests.utils import types as ttypes

LOGGER = logging.getLogger(__name__)


class ClusterTool:
    """Generic cluster provisioning tool."""

    def create(self, params: fixture.CreationParams) -> tp.Any:
        """Provision a running cluster and return a handle to it."""
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)

    def destroy(self, cluster: tp.Any) -> None:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)

    def health_check(self, cluster: tp.Any) -> bool:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)


def get_udf_options(cassandra_version: str) -> list[str]:
    """Return `cassandra.yaml` options enabling user defined functions and aggregates."""
    options = ["enable_user_defined_functions: true"]
    parsed = version.parse(cassandra_version)
    # Scripted UDFs are needed for UDAs written in javascript; removed in Cassandra 5
    if version.parse("3.0") <= parsed < version.parse("5.0"):
        options.append("enable_scripted_user_defined_functions: true")
    return options


class CcmClusterTool(ClusterTool):
    """Provision local clusters with CCM (Cassandra Cluster Manager)."""

    def __init__(
        self,
        *,
        worker_id: str = "master",
        ccm_bin: str = configuration.CCM_BIN,
        cassandra_version: str = configuration.CASSANDRA_VERSION,
        config_dir: ttypes.FileType = configuration.CCM_CONFIG_DIR,
        cluster_prefix: str = configuration.CLUSTER_PREFIX,
        ssl_dir: ttypes.FileType = configuration.SSL_DIR,
    ) -> None:
        self.worker_id = worker_id
        self.ccm_bin = ccm_bin
        self.cassandra_version = cassandra_version
        self.config_dir = config_dir
        self.cluster_prefix = cluster_prefix
        self.ssl_dir = pl.Path(ssl_dir) if ssl_dir else None

        # Every lane gets its own loopback subnet, so nodes of clusters provisioned by
        # different pytest workers never share an address
        self.ip_prefix = f"127.0.{pytest_utils.get_lane_num(worker_id) + 1}."

    def _ccm(self, *args: str) -> str:
        cmd = [self.ccm_bin, *args]
        if self.config_dir:
            cmd.append(f"--config-dir={self.config_dir}")
        return helpers.run_command(cmd).decode()

    def _get_create_args(self, name: str, params: fixture.CreationParams) -> list[str]:
        nodes = f"{params.dc1_nodes}"
        if params.dc2_nodes:
            nodes = f"{nodes}:{params.dc2_nodes}"

        args = ["create", name, "-v", self.cassandra_version, "-n", nodes, "-i", self.ip_prefix]

        if params.use_ssl:
            if not self.ssl_dir:
                msg = "SSL was requested but 'SSL_DIR' is not set."
                raise errors.ProvisioningError(msg)
            args.extend(["--ssl", str(self.ssl_dir)])

        return args

    def _get_conf_options(self, params: fixture.CreationParams) -> list[str]:
        options = []
        if params.use_auth:
            options.append("authenticator: PasswordAuthenticator")
        if params.enable_udf_aggregates:
            options.extend(get_udf_options(self.cassandra_version))
        return options

    def create(self, params: fixture.CreationParams) -> fixture.ClusterHandle:
        """Create and start a new CCM cluster."""
        name = f"{self.cluster_prefix}_{self.worker_id}_{helpers.get_rand_str(6)}"
        cluster = fixture.ClusterHandle(
            name=name,
            version=self.cassandra_version,
            ip_prefix=self.ip_prefix,
            dc1_nodes=params.dc1_nodes,
            dc2_nodes=params.dc2_nodes,
            use_auth=params.use_auth,
            ssl_dir=self.ssl_dir if params.use_ssl else None,
        )

        create_args = self._get_create_args(name=name, params=params)
        LOGGER.info(f"Creating cluster '{name}' with Cassandra {self.cassandra_version}.")
        try:
            self._ccm(*create_args)
        except RuntimeError as err:
            msg = f"Failed to create cluster '{name}': {err}"
            raise errors.ProvisioningError(msg) from err

        try:
            conf_options = self._get_conf_options(params=params)
            if conf_options:
                self._ccm("updateconf", *conf_options)
            self._ccm("start", "--wait-for-binary-proto")
        except RuntimeError as err:
            self._remove_quietly(name)
            msg = f"Failed to start cluster '{name}': {err}"
            raise errors.ProvisioningError(msg) from err

        LOGGER.info(f"Started cluster '{name}', nodes: {cluster.contact_points}.")
        return cluster

    def _remove_quietly(self, name: str) -> None:
        try:
            self._ccm("remove", name)
        except RuntimeError as err:
            LOGGER.warning(f"Failed to remove half-created cluster '{name}': {err}")

    def destroy(self, cluster: fixture.ClusterHandle) -> None:
        """Stop and remove the CCM cluster."""
        LOGGER.info(f"Removing cluster '{cluster.name}'.")
        self._ccm("remove", cluster.name)

    def health_check(self, cluster: fixture.ClusterHandle) -> bool:
        """Check that all nodes of the cluster are up."""
        try:
            self._ccm("switch", cluster.name)
            status = self._ccm("status")
        except RuntimeError as err:
            LOGGER.warning(f"Failed to get status of cluster '{cluster.name}': {err}")
            return False

        down_nodes = [line.split(":")[0].strip() for line in status.splitlines() if "DOWN" in line]
        if down_nodes:
            LOGGER.warning(f"Cluster '{cluster.name}' has nodes down: {down_nodes}")
        return not down_nodes
