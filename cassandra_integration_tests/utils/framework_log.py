"""Per-worker `framework.log` with failures of the shared fixture machinery.

Provisioning and health check failures are recorded here, so they can be found after the run
even though pytest reports the affected tests only as errors in setup.
"""

import functools
import logging
import pathlib as pl
import time

from cassandra_integration_tests.utils import temptools

LOGGER = logging.getLogger(__name__)

FRAMEWORK_LOG_NAME = "framework.log"


class UTCFormatter(logging.Formatter):
    converter = time.gmtime  # type: ignore[assignment]


def get_framework_log_path() -> pl.Path | None:
    """Return path to `framework.log` of this worker.

    Return None when the pytest temp dirs were not initialized yet.
    """
    worker_tmp = temptools.PytestTempDirs.pytest_worker_tmp
    if worker_tmp is None:
        return None
    return worker_tmp / FRAMEWORK_LOG_NAME


@functools.cache
def framework_logger(logfile: pl.Path) -> logging.Logger:
    """Get logger writing to `logfile`, records are not propagated to the pytest output."""
    handler = logging.FileHandler(logfile, encoding="utf-8")
    handler.setFormatter(UTCFormatter("%(asctime)s %(levelname)s %(message)s"))

    logger = logging.getLogger(f"{__name__}.{logfile.parent.name}")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)

    return logger


def log_failure(msg: str, *args: object) -> None:
    """Log a failure of the framework, also to `framework.log` when it is available."""
    LOGGER.error(msg, *args)
    logfile = get_framework_log_path()
    if logfile is None:
        return
    framework_logger(logfile).error(msg, *args)
