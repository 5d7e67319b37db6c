"""Cluster and test environment configuration."""

import os
import pathlib as pl

from packaging import version

LAUNCH_PATH = pl.Path.cwd()

IS_XDIST = bool(os.environ.get("PYTEST_XDIST_TESTRUNUID"))

# Cassandra version installed by `ccm create -v`
CASSANDRA_VERSION = os.environ.get("CASSANDRA_VERSION") or "3.11.16"
try:
    version.Version(CASSANDRA_VERSION)
except version.InvalidVersion as exc:
    msg = f"Invalid CASSANDRA_VERSION: {CASSANDRA_VERSION}"
    raise RuntimeError(msg) from exc

CCM_BIN = os.environ.get("CCM_BIN") or "ccm"

# Resolve CCM_CONFIG_DIR
CCM_CONFIG_DIR: str | pl.Path = os.environ.get("CCM_CONFIG_DIR") or ""
if CCM_CONFIG_DIR:
    CCM_CONFIG_DIR = pl.Path(CCM_CONFIG_DIR).expanduser().resolve()

# Prefix of names of CCM clusters created by the framework
CLUSTER_PREFIX = os.environ.get("CLUSTER_PREFIX") or "cit"
if not CLUSTER_PREFIX.replace("_", "").isalnum():
    msg = f"Invalid CLUSTER_PREFIX: {CLUSTER_PREFIX}"
    raise RuntimeError(msg)

# Resolve SSL_DIR. Expected to contain `.keystore`/`.truststore` for ccm and `cassandra.crt` for
# the driver.
SSL_DIR: str | pl.Path = os.environ.get("SSL_DIR") or ""
if SSL_DIR:
    SSL_DIR = pl.Path(SSL_DIR).expanduser().resolve()

CASSANDRA_USERNAME = os.environ.get("CASSANDRA_USERNAME") or "cassandra"
CASSANDRA_PASSWORD = os.environ.get("CASSANDRA_PASSWORD") or "cassandra"

CONNECT_TIMEOUT = int(os.environ.get("CONNECT_TIMEOUT") or 30)
if CONNECT_TIMEOUT < 1:
    msg = f"Invalid CONNECT_TIMEOUT '{CONNECT_TIMEOUT}': must be >= 1"
    raise RuntimeError(msg)

# Cluster instances are kept running after the fixture is closed
KEEP_CLUSTERS_RUNNING = bool(os.environ.get("KEEP_CLUSTERS_RUNNING"))

# Check health of the cluster every time the shared fixture is reused. Expensive.
CHECK_HEALTH_ON_REUSE = bool(os.environ.get("CHECK_HEALTH_ON_REUSE"))

# Run garbage collector after every test, makes driver extension errors surface sooner
COLLECT_GARBAGE_AFTER_TEST = bool(os.environ.get("COLLECT_GARBAGE_AFTER_TEST"))

# Resolve SCHEDULING_LOG
SCHEDULING_LOG: str | pl.Path = os.environ.get("SCHEDULING_LOG") or ""
if SCHEDULING_LOG:
    SCHEDULING_LOG = pl.Path(SCHEDULING_LOG).expanduser().resolve()
