"""Database driver used by the shared fixture.

Built on the DataStax `cassandra-driver`. The registry uses only the `Driver` interface, so tests of
the framework itself can replace the real driver with a fake.
"""

import dataclasses
import logging
import ssl
import typing as tp

from cassandra import OperationTimedOut
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster
from cassandra.cluster import NoHostAvailable
from cassandra.cluster import Session

from cassandra_integration_tests.cluster_management import errors
from cassandra_integration_tests.cluster_management import fixture
from cassandra_integration_tests.utils import configuration

LOGGER = logging.getLogger(__name__)

SSL_CERT = "cassandra.crt"


@dataclasses.dataclass
class SessionHandle:
    """Driver cluster object together with a session connected through it."""

    cluster: Cluster
    session: Session

    def execute(self, query: str, *args: tp.Any, **kwargs: tp.Any) -> tp.Any:
        return self.session.execute(query, *args, **kwargs)

    def close(self) -> None:
        self.session.shutdown()
        self.cluster.shutdown()


class Driver:
    """Generic database driver."""

    def open_session(self, cluster: tp.Any) -> tp.Any:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)

    def server_version(self, session: tp.Any) -> str:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)

    def close(self, session: tp.Any) -> None:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)

    def create_keyspace(self, session: tp.Any, name: str, replication: dict[str, tp.Any]) -> None:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)

    def drop_keyspace(self, session: tp.Any, name: str) -> None:
        msg = f"Not implemented for '{self.__class__.__name__}'."
        raise NotImplementedError(msg)


def format_replication(replication: dict[str, tp.Any]) -> str:
    """Format replication map as CQL map literal."""
    items = ", ".join(f"'{k}': {v!r}" for k, v in replication.items())
    return f"{{{items}}}"


class CassandraDriver(Driver):
    """Connect to CCM clusters with `cassandra-driver`."""

    def __init__(
        self,
        *,
        username: str = configuration.CASSANDRA_USERNAME,
        password: str = configuration.CASSANDRA_PASSWORD,
        connect_timeout: int = configuration.CONNECT_TIMEOUT,
    ) -> None:
        self.username = username
        self.password = password
        self.connect_timeout = connect_timeout

    def _get_ssl_context(self, cluster: fixture.ClusterHandle) -> ssl.SSLContext | None:
        if not cluster.ssl_dir:
            return None

        ssl_context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ssl_context.load_verify_locations(cluster.ssl_dir / SSL_CERT)
        # Certificates generated for ccm are not issued for the loopback addresses
        ssl_context.check_hostname = False
        return ssl_context

    def open_session(self, cluster: fixture.ClusterHandle) -> SessionHandle:
        """Connect to the cluster."""
        auth_provider = None
        if cluster.use_auth:
            auth_provider = PlainTextAuthProvider(username=self.username, password=self.password)

        driver_cluster = Cluster(
            contact_points=cluster.contact_points,
            auth_provider=auth_provider,
            ssl_context=self._get_ssl_context(cluster),
            connect_timeout=self.connect_timeout,
        )
        try:
            session = driver_cluster.connect()
        except (NoHostAvailable, OperationTimedOut, OSError) as err:
            driver_cluster.shutdown()
            msg = f"Failed to connect to cluster '{cluster.name}': {err}"
            raise errors.SessionConnectionError(msg) from err

        LOGGER.debug(f"Connected to cluster '{cluster.name}'.")
        return SessionHandle(cluster=driver_cluster, session=session)

    def server_version(self, session: SessionHandle) -> str:
        row = session.execute("SELECT release_version FROM system.local").one()
        return str(row.release_version)

    def close(self, session: SessionHandle) -> None:
        session.close()

    def create_keyspace(
        self, session: SessionHandle, name: str, replication: dict[str, tp.Any]
    ) -> None:
        # Unquoted identifier, Cassandra stores the keyspace name lowercased
        session.execute(
            f"CREATE KEYSPACE IF NOT EXISTS {name} "
            f"WITH replication = {format_replication(replication)}"
        )

    def drop_keyspace(self, session: SessionHandle, name: str) -> None:
        session.execute(f"DROP KEYSPACE IF EXISTS {name}")
