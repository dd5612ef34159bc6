"""
Models describing the deployable services and their static metadata.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from enum import Enum


class NetworkRole(str, Enum):
    """
    Shared networks a service can require.
    """
    PROXY = "proxy"
    DATABASE = "database"


class ApiCheck(BaseModel):
    """
    Service specific endpoint probed in status-check mode.
    """
    model_config = ConfigDict(frozen=True)

    path: str
    marker: Optional[str] = None


class ServiceDescriptor(BaseModel):
    """
    Static record for one deployable service.

    Paths are relative: ``compose_file`` to the compose directory and
    ``init_script`` to the scripts directory.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    url: str
    container_name: str
    compose_file: str
    init_script: str
    networks: List[NetworkRole] = [NetworkRole.PROXY]
    purpose: str = ""
    database: Optional[str] = None

    # Lifecycle
    settle_delay: float = 0.0
    api_check: Optional[ApiCheck] = None

    def requires(self, role: NetworkRole) -> bool:
        """
        Checks whether the service must be attached to the given network.
        """
        return role in self.networks
