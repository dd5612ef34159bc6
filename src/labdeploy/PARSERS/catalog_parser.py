"""
Parser for YAML files that add or replace service descriptors.

Example::

    services:
      gitea:
        display_name: Gitea
        url: http://git.home.lab
        networks: [proxy, database]
        settle_delay: 10
"""
import yaml
from typing import Any, Dict, List
from pydantic import ValidationError
from ..MODELS.service_catalog import ALL_SERVICES
from ..MODELS.service_descriptor import ServiceDescriptor
from ..errors import InvalidConfigError, MissingConfigError
import os


class CatalogParser:
    """
    Reads service descriptors from a catalog file.
    """
    def parse(self, catalog_path: str) -> List[ServiceDescriptor]:
        if not os.path.isfile(catalog_path):
            raise MissingConfigError(f"Catalog file not found: {catalog_path}")
        try:
            with open(catalog_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidConfigError(f"Cannot read catalog file {catalog_path}: {e}") from e
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> List[ServiceDescriptor]:
        """
        Parses descriptors from YAML content. Missing container name, compose
        file and init script default to the conventions used by the built-in services.
        """
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"Invalid catalog syntax: {e}") from e

        services = (data.get('services') or {}) if isinstance(data, dict) else None
        if not isinstance(services, dict):
            raise InvalidConfigError("Catalog must contain a 'services' mapping")

        descriptors = []
        for name, spec in services.items():
            if spec is not None and not isinstance(spec, dict):
                raise InvalidConfigError(f"Invalid catalog entry '{name}': expected a mapping")
            descriptors.append(self._parse_service(str(name), spec or {}))
        return descriptors

    def _parse_service(self, name: str, spec: Dict[str, Any]) -> ServiceDescriptor:
        if name == ALL_SERVICES:
            raise InvalidConfigError(f"'{ALL_SERVICES}' is reserved for deploying every service")
        fields = {str(k): v for k, v in spec.items()}
        fields['name'] = name
        fields.setdefault('display_name', name)
        fields.setdefault('container_name', name)
        fields.setdefault('compose_file', f"applications/{name}.yml")
        fields.setdefault('init_script', f"init/{name}-init.sh")
        try:
            return ServiceDescriptor(**fields)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid catalog entry '{name}': {e}") from e
