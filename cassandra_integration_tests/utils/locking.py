"""Locks guarding state shared by pytest-xdist workers (lanes)."""

import contextlib
import logging
import typing as tp

from cassandra_integration_tests.utils import configuration
from cassandra_integration_tests.utils import types as ttypes

# CCM keeps its "current cluster" pointer and all cluster configs in a single config dir that is
# shared by every lane. When running with multiple workers, ccm invocations need to be serialized.
# Without xdist there is a single lane and dummy locking is enough.
if configuration.IS_XDIST:
    from filelock import FileLock

    # Suppress messages from filelock
    logging.getLogger("filelock").setLevel(logging.WARNING)

    FileLockIfXdist: tp.Any = FileLock
else:
    FileLockIfXdist = contextlib.nullcontext


def lane_lock(lock_file: ttypes.FileType) -> tp.ContextManager:
    """Return lock for `lock_file`, or a no-op lock when no lock file was given."""
    if not lock_file:
        return contextlib.nullcontext()
    return FileLockIfXdist(str(lock_file))
