import collections
import ssl

import pytest
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import NoHostAvailable

from cassandra_integration_tests.cluster_management import cluster_management
from cassandra_integration_tests.cluster_management import driver

ReleaseRow = collections.namedtuple("ReleaseRow", ["release_version"])


class _Result:
    def __init__(self, row):
        self.row = row

    def one(self):
        return self.row


class _FakeSession:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.shut_down = False

    def execute(self, query, *args, **kwargs):
        self.queries.append(query)
        return _Result(ReleaseRow(release_version="4.1.5"))

    def shutdown(self) -> None:
        self.shut_down = True


class _FakeDriverCluster:
    fail_connect = False

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.shut_down = False
        self.session = _FakeSession()

    def connect(self) -> _FakeSession:
        if self.fail_connect:
            msg = "Unable to connect to any servers"
            raise NoHostAvailable(msg, {"127.0.1.1": ConnectionRefusedError()})
        return self.session

    def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture
def driver_cluster_cls(monkeypatch) -> type[_FakeDriverCluster]:
    class _Cluster(_FakeDriverCluster):
        pass

    monkeypatch.setattr(driver, "Cluster", _Cluster)
    return _Cluster


def _get_handle(**kwargs) -> cluster_management.ClusterHandle:
    return cluster_management.ClusterHandle(
        name="cit_master_abcdef",
        version="4.1.5",
        ip_prefix="127.0.1.",
        dc1_nodes=2,
        **kwargs,
    )


def test_format_replication():
    replication = {"class": "NetworkTopologyStrategy", "dc1": 2, "dc2": 1}
    assert (
        driver.format_replication(replication)
        == "{'class': 'NetworkTopologyStrategy', 'dc1': 2, 'dc2': 1}"
    )


def test_open_session(driver_cluster_cls):
    cass_driver = driver.CassandraDriver(connect_timeout=5)
    session = cass_driver.open_session(_get_handle())

    assert session.cluster.kwargs["contact_points"] == ["127.0.1.1", "127.0.1.2"]
    assert session.cluster.kwargs["auth_provider"] is None
    assert session.cluster.kwargs["ssl_context"] is None
    assert session.cluster.kwargs["connect_timeout"] == 5
    assert cass_driver.server_version(session) == "4.1.5"


def test_open_session_auth(driver_cluster_cls):
    cass_driver = driver.CassandraDriver(username="admin", password="secret")
    session = cass_driver.open_session(_get_handle(use_auth=True))

    auth_provider = session.cluster.kwargs["auth_provider"]
    assert isinstance(auth_provider, PlainTextAuthProvider)
    assert auth_provider.username == "admin"


def test_open_session_fails(driver_cluster_cls):
    driver_cluster_cls.fail_connect = True

    with pytest.raises(cluster_management.SessionConnectionError, match="cit_master_abcdef"):
        driver.CassandraDriver().open_session(_get_handle())


def test_keyspace_and_close(driver_cluster_cls):
    cass_driver = driver.CassandraDriver()
    session = cass_driver.open_session(_get_handle())

    cass_driver.create_keyspace(
        session, "ks_FooTest_abcdefgh", {"class": "SimpleStrategy", "replication_factor": 1}
    )
    cass_driver.drop_keyspace(session, "ks_FooTest_abcdefgh")
    cass_driver.close(session)

    assert session.session.queries == [
        "CREATE KEYSPACE IF NOT EXISTS ks_FooTest_abcdefgh "
        "WITH replication = {'class': 'SimpleStrategy', 'replication_factor': 1}",
        "DROP KEYSPACE IF EXISTS ks_FooTest_abcdefgh",
    ]
    assert session.session.shut_down
    assert session.cluster.shut_down


def test_open_session_ssl(driver_cluster_cls, tmp_path, monkeypatch):
    loaded = []
    monkeypatch.setattr(
        ssl.SSLContext, "load_verify_locations", lambda self, cafile: loaded.append(cafile)
    )

    session = driver.CassandraDriver().open_session(_get_handle(ssl_dir=tmp_path))

    ssl_context = session.cluster.kwargs["ssl_context"]
    assert isinstance(ssl_context, ssl.SSLContext)
    assert not ssl_context.check_hostname
    assert loaded == [tmp_path / "cassandra.crt"]
