"""
Network management for deployed services: readiness polling and attachment
to the shared proxy and database networks.
"""
import time
from typing import Callable, Dict
from tenacity import Retrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed
from ..MODELS.service_descriptor import NetworkRole
from ..errors import ContainerNotReadyError, NetworkAttachError
from ..UTILS import console
from .container_runtime import DockerRuntime

ROLE_LABELS = {
    NetworkRole.PROXY: "Traefik",
    NetworkRole.DATABASE: "Database",
}


class NetworkManager:
    """
    Waits for containers to appear and connects them to the networks they need.
    """
    def __init__(self,
                 runtime: DockerRuntime,
                 networks: Dict[NetworkRole, str],
                 attempts: int = 15,
                 interval: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the network manager.

        :param runtime: Docker control plane.
        :param networks: Docker network name for each role.
        :param attempts: Maximum number of readiness checks.
        :param interval: Seconds between readiness checks.
        :param sleep: Sleep function, replaceable in tests.
        """
        self.runtime = runtime
        self.networks = networks
        self.attempts = attempts
        self.interval = interval
        self.sleep = sleep

    def network_for(self, role: NetworkRole) -> str:
        return self.networks[role]

    def wait_for_container(self, container: str) -> int:
        """
        Polls until the container is listed by the runtime.

        :param container: Container name.
        :return: Number of checks it took.
        :raises ContainerNotReadyError: If the container is still missing after the last attempt.
        """
        checks = 0

        def visible() -> bool:
            nonlocal checks
            checks += 1
            return self.runtime.is_running(container)

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(lambda ready: not ready),
            before_sleep=lambda _state: console.progress(),
            sleep=self.sleep,
        )
        try:
            retrying(visible)
        except RetryError:
            raise ContainerNotReadyError(
                f"Container {container} did not start within expected time",
                remedy=f"docker logs {container}",
            ) from None
        return checks

    def ensure_connected(self, role: NetworkRole, container: str) -> bool:
        """
        Connects the container to the network for ``role`` unless it is already a member.

        :return: True if a connection was made, False if it already existed.
        :raises NetworkAttachError: If ``docker network connect`` fails.
        """
        network = self.network_for(role)
        if self.runtime.is_connected(network, container):
            return False

        result = self.runtime.connect_network(network, container)
        if not result.ok:
            attach_role = "primary" if role == NetworkRole.PROXY else "secondary"
            message = f"Failed to connect to {ROLE_LABELS[role]} network"
            if result.stderr.strip():
                message = f"{message}: {result.stderr.strip()}"
            raise NetworkAttachError(
                attach_role,
                message,
                remedy=f"docker network connect {network} {container}",
            )
        return True

    def is_connected(self, role: NetworkRole, container: str) -> bool:
        return self.runtime.is_connected(self.network_for(role), container)

    def manual_connect_hint(self, role: NetworkRole, container: str) -> str:
        return f"docker network connect {self.network_for(role)} {container}"
