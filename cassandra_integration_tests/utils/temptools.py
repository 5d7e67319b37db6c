import pathlib as pl

from _pytest.tmpdir import TempPathFactory

from cassandra_integration_tests.utils import configuration


class PytestTempDirs:
    """Pytest temporary directories used across the framework.

    The class is initialized in `conftest.py` where we have access to the `tmp_path_factory`
    fixture.
    """

    pytest_worker_tmp: pl.Path | None = None
    pytest_root_tmp: pl.Path | None = None

    _err_init_str = "PytestTempDirs are not initialized"

    @classmethod
    def init(cls, tmp_path_factory: TempPathFactory) -> None:
        worker_tmp = pl.Path(tmp_path_factory.getbasetemp())
        cls.pytest_worker_tmp = worker_tmp
        cls.pytest_root_tmp = worker_tmp.parent if configuration.IS_XDIST else worker_tmp


def get_pytest_worker_tmp() -> pl.Path:
    """Return Pytest temporary directory for the current worker.

    With multiple workers, each worker has its own base temporary directory inside the "root"
    temporary directory.
    """
    if PytestTempDirs.pytest_worker_tmp is None:
        raise RuntimeError(PytestTempDirs._err_init_str)
    return PytestTempDirs.pytest_worker_tmp


def get_pytest_root_tmp() -> pl.Path:
    """Return root of the Pytest temporary directory, shared by all workers of a single run.

    Lock files used for serializing ccm invocations live here.
    """
    if PytestTempDirs.pytest_root_tmp is None:
        raise RuntimeError(PytestTempDirs._err_init_str)
    return PytestTempDirs.pytest_root_tmp
