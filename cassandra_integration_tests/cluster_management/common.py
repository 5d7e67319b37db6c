from cassandra_integration_tests.utils import temptools

CCM_LOCK = ".ccm.lock"
LOG_LOCK = ".registry_log.lock"

# Cassandra limits keyspace names to 48 characters
MAX_KEYSPACE_LEN = 48


def get_ccm_lock_file() -> str:
    pytest_tmp_dir = temptools.get_pytest_root_tmp()
    return f"{pytest_tmp_dir}/{CCM_LOCK}"


def get_log_lock_file() -> str:
    pytest_tmp_dir = temptools.get_pytest_root_tmp()
    return f"{pytest_tmp_dir}/{LOG_LOCK}"
