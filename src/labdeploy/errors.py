"""
Error taxonomy for deployment runs.

Fatal errors end the run of the service they occurred in. Non-fatal errors
are recorded as warnings in the run log and never change the exit status.
"""
from typing import Optional


class DeploymentError(Exception):
    """
    Base class for every error raised while deploying a service.

    :param message: Human readable description.
    :param remedy: Optional command or hint the operator can follow manually.
    """
    fatal = True

    def __init__(self, message: str, remedy: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.remedy = remedy


class UnknownServiceError(DeploymentError):
    """The service identifier is not part of the catalog."""

    def __init__(self, service: str):
        super().__init__(f"Invalid service: {service}")
        self.service = service


class MissingConfigError(DeploymentError):
    """The compose file of a service does not exist."""


class InvalidConfigError(DeploymentError):
    """The compose file exists but cannot be parsed or validated."""


class StartFailedError(DeploymentError):
    """Bringing the compose project up failed."""


class AbortedByOperator(DeploymentError):
    """The operator declined to continue after a failed init script."""


class PreconditionError(DeploymentError):
    """The host is not ready for deployments (runtime down, proxy network missing)."""


class ContainerNotReadyError(DeploymentError):
    """The primary container did not show up within the polling window."""
    fatal = False


class NetworkAttachError(DeploymentError):
    """
    Connecting the container to a network failed.

    :param role: ``primary`` for the proxy network, ``secondary`` for the database network.
    """
    fatal = False

    def __init__(self, role: str, message: str, remedy: Optional[str] = None):
        super().__init__(message, remedy)
        self.role = role


class HealthCheckFailed(DeploymentError):
    """The HTTP probe did not get a successful answer."""
    fatal = False
