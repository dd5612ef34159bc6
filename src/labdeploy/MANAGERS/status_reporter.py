"""
Read-only status and info reporting for catalog services.
"""
from typing import Dict, Optional
from pydantic import BaseModel
import click
from ..MODELS.service_catalog import ServiceCatalog
from ..MODELS.service_descriptor import NetworkRole, ServiceDescriptor
from ..MODELS.settings import Settings
from ..UTILS import console
from ..UTILS.rendering import render_service_info
from .container_runtime import DockerRuntime
from .health_monitor import HealthProbe
from .network_manager import ROLE_LABELS


class ServiceStatus(BaseModel):
    """
    Snapshot of a service as seen by the runtime and over HTTP.
    """
    service: str
    container_status: Optional[str] = None
    networks: Dict[NetworkRole, bool] = {}
    url_ok: bool = False
    api_ok: Optional[bool] = None

    @property
    def running(self) -> bool:
        return self.container_status is not None


class StatusReporter:
    """
    Prints descriptor cards and current state. Never starts, stops or connects anything.
    """
    def __init__(self,
                 settings: Settings,
                 catalog: Optional[ServiceCatalog] = None,
                 runtime: Optional[DockerRuntime] = None,
                 probe: Optional[HealthProbe] = None):
        self.settings = settings
        self.catalog = catalog or ServiceCatalog.default()
        self.runtime = runtime or DockerRuntime()
        self.probe = probe or HealthProbe()
        self.networks = {
            NetworkRole.PROXY: settings.proxy_network,
            NetworkRole.DATABASE: settings.database_network,
        }

    def info(self, service: str) -> ServiceDescriptor:
        """
        Prints the descriptor card for a service.
        """
        descriptor = self.catalog.get(service)
        console.blank()
        console.log(f"ℹ️ Service Information for {service}")
        console.blank()
        click.echo(render_service_info(descriptor))
        console.blank()
        return descriptor

    def check(self, service: str) -> ServiceStatus:
        """
        Reports container state, network membership and HTTP reachability.

        :param service: Service identifier.
        :return: The collected status.
        """
        descriptor = self.catalog.get(service)
        container = descriptor.container_name
        status = ServiceStatus(service=service)

        console.blank()
        console.log(f"🔍 Checking status for {service}")
        console.blank()
        click.echo(render_service_info(descriptor))
        console.blank()

        status.container_status = self.runtime.container_status(container)
        if status.running:
            console.log(f"✅ Container Status: {status.container_status}")
            for role in (NetworkRole.PROXY, NetworkRole.DATABASE):
                if not descriptor.requires(role):
                    continue
                connected = self.runtime.is_connected(self.networks[role], container)
                status.networks[role] = connected
                if connected:
                    console.log(f"✅ Connected to {ROLE_LABELS[role]} network")
                else:
                    console.log_warn(f"⚠️ NOT connected to {ROLE_LABELS[role]} network")
        else:
            console.log_error("❌ Container not running")

        console.log_info("Testing URL accessibility...")
        status.url_ok = self.probe.probe(descriptor.url, timeout=self.settings.check_timeout).ok
        if status.url_ok:
            console.log(f"✅ Service accessible at {descriptor.url}")
        else:
            console.log_error(f"❌ Service NOT accessible at {descriptor.url}")

        if descriptor.api_check:
            check = descriptor.api_check
            result = self.probe.probe(
                descriptor.url.rstrip("/") + check.path,
                timeout=self.settings.check_timeout,
                fail_on_http_error=False,
                marker=check.marker,
            )
            status.api_ok = result.ok
            label = "GraphQL API" if check.path.endswith("graphql") else "API"
            if result.ok:
                console.log(f"✅ {label} responding")
            else:
                console.log_warn(f"⚠️ {label} not responding properly")

        console.blank()
        return status
