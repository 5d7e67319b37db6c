"""Errors raised while managing the shared fixture.

Provisioning and connection errors are fatal for all tests depending on the fixture and are never
retried. Reclamation problems are only warnings.
"""


class FixtureError(Exception):
    """Base class for shared fixture errors."""


class ProvisioningError(FixtureError):
    """The cluster could not be provisioned, or a provisioned cluster is no longer usable."""


class SessionConnectionError(FixtureError, ConnectionError):
    """The driver could not open a session to the provisioned cluster."""


class ReclamationWarning(UserWarning):
    """Cleanup of a per-test resource or a retired fixture failed."""
