# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Control plane for the local Docker engine, driven through the docker CLI.
"""
import json
from typing import List, Optional, Set
from ..RUNNERS.command_runner import CommandRunner, CommandResult


class DockerRuntime:
    """
    Thin wrapper over ``docker`` and ``docker compose`` commands.

    Read operations return plain values; mutating operations return the
    CommandResult so callers decide how fatal a failure is.
    """

    def __init__(self, runner: Optional[CommandRunner] = None, docker_bin: str = "docker"):
        """
        Initializes the runtime.

        :param runner: Command runner, replaceable in tests.
        :param docker_bin: Name or path of the docker executable.
        """
        self.runner = runner or CommandRunner()
        self.docker_bin = docker_bin

    def _docker(self, *args: str, capture: bool = True) -> CommandResult:
        return self.runner.run([self.docker_bin, *args], capture=capture)

    # Engine and networks

    def is_reachable(self) -> bool:
        return self._docker("info").ok

    def network_exists(self, network: str) -> bool:
        return self._docker("network", "inspect", network).ok

    def network_members(self, network: str) -> Set[str]:
        """
        Names of the containers attached to a network. Empty if the network cannot be inspected.
        """
        result = self._docker("network", "inspect", network, "--format", "{{json .Containers}}")
        if not result.ok or not result.stdout.strip():
            return set()
        try:
            containers = json.loads(result.stdout.strip()) or {}
        except json.JSONDecodeError:
            return set()
        return {info.get("Name", "") for info in containers.values() if isinstance(info, dict)}

    def is_connected(self, network: str, container: str) -> bool:
        return container in self.network_members(network)

    def connect_network(self, network: str, container: str) -> CommandResult:
        return self._docker("network", "connect", network, container)

    # Containers

    def list_containers(self, name_filter: str) -> List[str]:
        """
        Names of running containers matching ``name_filter`` (docker substring match).
        """
        result = self._docker("ps", "--filter", f"name={name_filter}", "--format", "{{.Names}}")
        if not result.ok:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def is_running(self, container: str) -> bool:
        return any(container in name for name in self.list_containers(container))

    def container_status(self, container: str) -> Optional[str]:
        """
        Status text such as ``Up 3 minutes (healthy)``, or None when not running.
        """
        result = self._docker("ps", "--filter", f"name={container}", "--format", "{{.Status}}")
        if not result.ok:
            return None
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        return lines[0] if lines else None

    # Compose

    def compose_config(self, compose_file: str) -> CommandResult:
        return self._docker("compose", "-f", compose_file, "config")

    def compose_up(self, compose_file: str) -> CommandResult:
        return self._docker("compose", "-f", compose_file, "up", "-d", capture=False)

    def compose_down(self, compose_file: str) -> CommandResult:
        return self._docker("compose", "-f", compose_file, "down", capture=False)
