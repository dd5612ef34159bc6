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
Local syntax checks for Docker Compose files before they are handed to the runtime.
"""
import os
import yaml
from typing import Any, Dict, List
from pydantic import BaseModel
from ..errors import MissingConfigError, InvalidConfigError


class ComposeSummary(BaseModel):
    """
    The parts of a compose file the deployer looks at.
    """
    path: str
    services: List[str] = []
    container_names: List[str] = []
    networks: List[str] = []


class ComposeParser:
    """
    Parser for docker-compose style YAML files.
    """
    def parse(self, compose_path: str) -> ComposeSummary:
        """
        Parses a compose file from a path.

        :param compose_path: Path to the compose file.
        :return: Summary of the file.
        :raises MissingConfigError: If the file does not exist.
        :raises InvalidConfigError: If the file is not a valid compose document.
        """
        if not os.path.isfile(compose_path):
            raise MissingConfigError(f"Compose file not found: {compose_path}")
        try:
            with open(compose_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidConfigError(
                f"Cannot read compose file: {e}",
                remedy=f"Check the compose file: {compose_path}",
            ) from e
        return self.parse_from_string(content, path=compose_path)

    def parse_from_string(self, content: str, path: str = "<string>") -> ComposeSummary:
        """
        Parses compose content from a string.

        :param content: YAML content of the compose file.
        :param path: Where the content came from, used in messages.
        :return: Summary of the file.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise InvalidConfigError(
                f"Invalid compose file syntax: {e}",
                remedy=f"Check the compose file: {path}",
            ) from e

        if not isinstance(data, dict):
            raise InvalidConfigError(
                "Invalid compose file syntax: top level must be a mapping",
                remedy=f"Check the compose file: {path}",
            )

        services = data.get('services')
        if not isinstance(services, dict) or not services:
            raise InvalidConfigError(
                "Invalid compose file syntax: no services defined",
                remedy=f"Check the compose file: {path}",
            )

        networks = data.get('networks')
        return ComposeSummary(
            path=path,
            services=[str(name) for name in services],
            container_names=self._container_names(services),
            networks=[str(name) for name in networks] if isinstance(networks, dict) else [],
        )

    def _container_names(self, services: Dict[str, Any]) -> List[str]:
        """
        Collects explicit ``container_name`` entries.
        """
        names = []
        for spec in services.values():
            if isinstance(spec, dict) and spec.get('container_name'):
                names.append(str(spec['container_name']))
        return names
