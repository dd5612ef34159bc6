"""
The catalog of deployable services, keyed by service name in deployment order.
"""
from typing import Dict, Iterable, Iterator, List
from pydantic import BaseModel
from .service_descriptor import ServiceDescriptor, NetworkRole, ApiCheck
from ..errors import UnknownServiceError

ALL_SERVICES = "all"

DEFAULT_SERVICES: List[ServiceDescriptor] = [
    ServiceDescriptor(
        name="filebrowser",
        display_name="File Browser",
        url="http://files.home.lab",
        container_name="filebrowser",
        compose_file="applications/filebrowser.yml",
        init_script="init/filebrowser-init.sh",
        purpose="Web-based file management with TrueNAS integration",
    ),
    ServiceDescriptor(
        name="syncthing",
        display_name="Syncthing",
        url="http://sync.home.lab",
        container_name="syncthing",
        compose_file="applications/syncthing.yml",
        init_script="init/syncthing-init.sh",
        purpose="Cross-device file synchronization",
    ),
    ServiceDescriptor(
        name="wikijs",
        display_name="Wiki.js",
        url="http://docs.home.lab",
        container_name="wikijs",
        compose_file="applications/wikijs.yml",
        init_script="init/wikijs-init.sh",
        networks=[NetworkRole.PROXY, NetworkRole.DATABASE],
        purpose="Documentation and knowledge management",
        database="PostgreSQL (wikijs database)",
        settle_delay=15.0,
        api_check=ApiCheck(path="/graphql", marker="GET query missing"),
    ),
    ServiceDescriptor(
        name="memos",
        display_name="Memos",
        url="http://notes.home.lab",
        container_name="memos",
        compose_file="applications/memos.yml",
        init_script="init/memos-init.sh",
        networks=[NetworkRole.PROXY, NetworkRole.DATABASE],
        purpose="Quick note capture and idea management",
        database="PostgreSQL (memos database)",
        settle_delay=8.0,
        api_check=ApiCheck(path="/api/v1/status"),
    ),
]


class ServiceCatalog(BaseModel):
    """
    Closed, ordered set of service descriptors.
    """
    services: Dict[str, ServiceDescriptor]

    @classmethod
    def from_descriptors(cls, descriptors: Iterable[ServiceDescriptor]) -> "ServiceCatalog":
        return cls(services={d.name: d for d in descriptors})

    @classmethod
    def default(cls) -> "ServiceCatalog":
        return cls.from_descriptors(DEFAULT_SERVICES)

    def names(self) -> List[str]:
        return list(self.services.keys())

    def get(self, name: str) -> ServiceDescriptor:
        """
        Resolves a service name to its descriptor.

        :param name: The service identifier.
        :return: The matching descriptor.
        :raises UnknownServiceError: If the name is not in the catalog.
        """
        try:
            return self.services[name]
        except KeyError:
            raise UnknownServiceError(name) from None

    def resolve(self, target: str) -> List[ServiceDescriptor]:
        """
        Expands a command-line target into descriptors; ``all`` yields every service in order.
        """
        if target == ALL_SERVICES:
            return list(self.services.values())
        return [self.get(target)]

    def merged(self, overrides: Iterable[ServiceDescriptor]) -> "ServiceCatalog":
        """
        Returns a new catalog where overrides replace same-named entries and
        new names are appended at the end.
        """
        services = dict(self.services)
        for descriptor in overrides:
            services[descriptor.name] = descriptor
        return ServiceCatalog(services=services)

    def __contains__(self, name: str) -> bool:
        return name in self.services

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self.services.values())

    def __len__(self) -> int:
        return len(self.services)
