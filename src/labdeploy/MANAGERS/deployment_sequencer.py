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
Step-by-step deployment of catalog services: init, compose validation,
start, network attachment, settle delay and health check.
"""
import time
from typing import Callable, List, Optional
import click
from ..MODELS.deployment_run import (
    DeployFlags,
    DeploymentRun,
    RunResult,
    RunState,
    StepStatus,
)
from ..MODELS.service_catalog import ServiceCatalog
from ..MODELS.service_descriptor import NetworkRole, ServiceDescriptor
from ..MODELS.settings import Settings
from ..PARSERS.compose_parser import ComposeParser
from ..RUNNERS.init_script_runner import InitScriptRunner
from ..UTILS import console
from ..UTILS.rendering import render_service_info, render_summary
from ..errors import (
    AbortedByOperator,
    ContainerNotReadyError,
    DeploymentError,
    HealthCheckFailed,
    InvalidConfigError,
    NetworkAttachError,
    PreconditionError,
    StartFailedError,
)
from .container_runtime import DockerRuntime
from .health_monitor import HealthProbe
from .network_manager import NetworkManager, ROLE_LABELS

STEP_INIT = "init"
STEP_VALIDATE = "validate"
STEP_RECREATE = "recreate"
STEP_START = "start"
STEP_READY = "ready"
STEP_NETWORK = "network"
STEP_SETTLE = "settle"
STEP_HEALTH = "health"


def network_step(role: NetworkRole) -> str:
    return f"{STEP_NETWORK}:{role.value}"


class DeploymentSequencer:
    """
    Deploys services one at a time.

    Fatal errors end the run of the service they occur in; every other
    problem is recorded as a warning and the run carries on.
    """
    def __init__(self,
                 settings: Settings,
                 catalog: Optional[ServiceCatalog] = None,
                 runtime: Optional[DockerRuntime] = None,
                 probe: Optional[HealthProbe] = None,
                 init_runner: Optional[InitScriptRunner] = None,
                 confirm: Callable[[str], bool] = console.confirm,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the sequencer.

        :param settings: Paths, network names and timings.
        :param catalog: Deployable services, defaults to the built-in catalog.
        :param runtime: Docker control plane.
        :param probe: HTTP health probe.
        :param init_runner: Runner for per-service init scripts.
        :param confirm: Asks the operator whether to continue after a failed init script.
        :param sleep: Sleep function, replaceable in tests.
        """
        self.settings = settings
        self.catalog = catalog or ServiceCatalog.default()
        self.runtime = runtime or DockerRuntime()
        self.probe = probe or HealthProbe()
        self.init_runner = init_runner or InitScriptRunner()
        self.compose_parser = ComposeParser()
        self.confirm = confirm
        self.sleep = sleep
        self.network_manager = NetworkManager(
            self.runtime,
            {
                NetworkRole.PROXY: settings.proxy_network,
                NetworkRole.DATABASE: settings.database_network,
            },
            attempts=settings.poll_attempts,
            interval=settings.poll_interval,
            sleep=sleep,
        )

    def check_preconditions(self) -> None:
        """
        Verifies the runtime answers and the proxy network exists.

        :raises PreconditionError: If either check fails.
        """
        if not self.runtime.is_reachable():
            raise PreconditionError("Docker is not running or not accessible")
        if not self.runtime.network_exists(self.settings.proxy_network):
            raise PreconditionError(
                "Traefik network not found. Deploy infrastructure first.",
                remedy=f"docker network inspect {self.settings.proxy_network}",
            )

    def deploy(self, service: str, flags: Optional[DeployFlags] = None) -> RunResult:
        """
        Runs the full sequence for one service.

        :param service: Service identifier from the catalog.
        :param flags: Invocation switches.
        :return: The finished run.
        :raises UnknownServiceError: Before any side effect, if the service is unknown.
        """
        descriptor = self.catalog.get(service)
        run = DeploymentRun(service=service, flags=flags or DeployFlags())

        console.blank()
        console.log(f"🚀 Deploying {service}")
        console.blank()
        click.echo(render_service_info(descriptor))
        console.blank()

        try:
            run.transition(RunState.INITIALIZING)
            self._initialize(descriptor, run)

            run.transition(RunState.VALIDATING)
            compose_file = self._validate(descriptor, run)

            run.transition(RunState.STARTING)
            self._start(descriptor, compose_file, run)
        except AbortedByOperator as e:
            run.record(STEP_INIT, StepStatus.FAILURE, e.message, e.remedy)
            run.transition(RunState.ABORTED)
            console.log_error(e.message)
            return run.result()
        except DeploymentError as e:
            step = STEP_VALIDATE if run.state == RunState.VALIDATING else STEP_START
            run.record(step, StepStatus.FAILURE, e.message, e.remedy)
            run.transition(RunState.FAILED)
            console.log_error(f"❌ {e.message}")
            if e.remedy:
                console.log_warn(e.remedy)
            return run.result()

        run.transition(RunState.ATTACHING)
        self._attach(descriptor, run)
        self._settle(descriptor, run)

        run.transition(RunState.HEALTH_CHECKING)
        self._health_check(descriptor, run)

        run.transition(RunState.DONE)
        console.blank()
        console.log(f"🎉 Deployment of {service} completed")
        console.log_info(f"Access at: {descriptor.url}")
        console.blank()
        return run.result()

    def deploy_all(self, flags: Optional[DeployFlags] = None) -> List[RunResult]:
        """
        Deploys every catalog service in order, pausing between services.
        A failed service does not stop the ones after it.
        """
        console.log("🚀 Deploying all application services")
        console.blank()

        descriptors = list(self.catalog)
        results = []
        for index, descriptor in enumerate(descriptors):
            results.append(self.deploy(descriptor.name, flags))
            if index < len(descriptors) - 1:
                console.blank()
                console.log_info(f"Pausing {self.settings.service_pause:g} seconds before next service...")
                self.sleep(self.settings.service_pause)

        console.blank()
        console.log("🎉 All services deployment completed")
        console.blank()
        click.echo(render_summary(descriptors, results))
        console.blank()
        return results

    def _initialize(self, descriptor: ServiceDescriptor, run: DeploymentRun) -> None:
        if run.flags.skip_init:
            console.log_info("Skipping initialization (--no-init flag)")
            run.record(STEP_INIT, StepStatus.SKIPPED, "--no-init")
            return

        script = self.settings.script_path(descriptor.init_script)
        if not self.init_runner.exists(script):
            console.log_info(f"No initialization script found ({script})")
            run.record(STEP_INIT, StepStatus.SKIPPED, "no init script")
            return

        console.log(f"🔧 Running initialization script for {descriptor.name}")
        console.blank()
        result = self.init_runner.run(script)
        console.blank()
        if result.ok:
            console.log("✅ Initialization completed")
            run.record(STEP_INIT, StepStatus.SUCCESS)
            return

        remedy = InitScriptRunner.manual_command(script)
        console.log_error("❌ Initialization failed")
        console.log_warn("You may need to run this manually:")
        console.log_warn(remedy)
        run.record(STEP_INIT, StepStatus.WARNING,
                   f"Initialization failed with exit code {result.returncode}", remedy)

        if not self._continue_after_init_failure(run.flags):
            raise AbortedByOperator(
                f"Deployment of {descriptor.name} aborted after failed initialization",
                remedy=remedy,
            )

    def _continue_after_init_failure(self, flags: DeployFlags) -> bool:
        if flags.continue_on_init_failure is not None:
            return flags.continue_on_init_failure
        return self.confirm("Continue with deployment anyway?")

    def _validate(self, descriptor: ServiceDescriptor, run: DeploymentRun) -> str:
        compose_file = self.settings.compose_path(descriptor.compose_file)
        console.log_info("Validating compose file syntax...")

        self.compose_parser.parse(compose_file)
        result = self.runtime.compose_config(compose_file)
        if not result.ok:
            raise InvalidConfigError(
                "Invalid compose file syntax",
                remedy=f"Check the compose file: {compose_file}",
            )

        console.log("✅ Compose file syntax is valid")
        run.record(STEP_VALIDATE, StepStatus.SUCCESS)
        console.blank()
        return compose_file

    def _start(self, descriptor: ServiceDescriptor, compose_file: str, run: DeploymentRun) -> None:
        if run.flags.force:
            console.log(f"🛑 Force stopping {descriptor.name} for recreation")
            down = self.runtime.compose_down(compose_file)
            if down.ok:
                run.record(STEP_RECREATE, StepStatus.SUCCESS)
            else:
                console.log_warn("⚠️ Stopping existing containers failed, starting anyway")
                run.record(STEP_RECREATE, StepStatus.WARNING,
                           f"compose down exited with {down.returncode}",
                           f"docker compose -f {compose_file} down")
            console.blank()

        console.log(f"📦 Starting {descriptor.name} containers...")
        result = self.runtime.compose_up(compose_file)
        if not result.ok:
            raise StartFailedError(
                "Failed to start containers",
                remedy=f"docker compose -f {compose_file} up -d",
            )
        console.log("✅ Containers started successfully")
        run.record(STEP_START, StepStatus.SUCCESS)
        console.blank()

    def _attach(self, descriptor: ServiceDescriptor, run: DeploymentRun) -> None:
        container = descriptor.container_name
        if run.flags.skip_network:
            hint = self.network_manager.manual_connect_hint(NetworkRole.PROXY, container)
            console.log_info("Skipping network connection (--no-network flag)")
            console.blank()
            console.log_warn("Remember to manually connect to Traefik network:")
            console.log_warn(hint)
            run.record(STEP_NETWORK, StepStatus.SKIPPED, "--no-network", hint)
            return

        console.log(f"🔗 Connecting {container} to required networks...")
        console.log_info("Waiting for container to be ready...")
        try:
            checks = self.network_manager.wait_for_container(container)
        except ContainerNotReadyError as e:
            console.blank()
            console.log_error(f"❌ {e.message}")
            console.log_warn("You may need to check the container logs:")
            console.log_warn(e.remedy)
            run.record(STEP_READY, StepStatus.WARNING, e.message, e.remedy)
            return
        console.blank()
        console.log(f"✅ Container {container} is ready")
        run.record(STEP_READY, StepStatus.SUCCESS, f"visible after {checks} check(s)")

        for role in (NetworkRole.PROXY, NetworkRole.DATABASE):
            if descriptor.requires(role):
                self._connect(role, container, run)
        console.blank()

    def _connect(self, role: NetworkRole, container: str, run: DeploymentRun) -> None:
        label = ROLE_LABELS[role]
        step = network_step(role)
        try:
            if self.network_manager.ensure_connected(role, container):
                console.log(f"✅ Successfully connected to {label} network")
                run.record(step, StepStatus.SUCCESS, "connected")
            else:
                console.log_info(f"Already connected to {label} network")
                run.record(step, StepStatus.SUCCESS, "already connected")
        except NetworkAttachError as e:
            if e.role == "primary":
                console.log_error(f"❌ {e.message}")
                console.log_warn(f"Try manually: {e.remedy}")
                run.record(step, StepStatus.FAILURE, e.message, e.remedy)
            else:
                console.log_warn(f"⚠️ {e.message} (may still work)")
                run.record(step, StepStatus.WARNING, e.message, e.remedy)

    def _settle(self, descriptor: ServiceDescriptor, run: DeploymentRun) -> None:
        if descriptor.settle_delay <= 0:
            return
        console.log_info(f"{descriptor.display_name} needs additional startup time...")
        self.sleep(descriptor.settle_delay)
        run.record(STEP_SETTLE, StepStatus.SUCCESS, f"waited {descriptor.settle_delay:g}s")

    def _health_check(self, descriptor: ServiceDescriptor, run: DeploymentRun) -> None:
        url = descriptor.url
        console.log_info(f"Quick health check at {url}...")
        self.sleep(self.settings.health_grace)

        result = self.probe.probe(url, timeout=self.settings.probe_timeout)
        if result.ok:
            console.log("✅ Service is accessible")
            run.record(STEP_HEALTH, StepStatus.SUCCESS, f"HTTP {result.status_code}")
            return

        error = HealthCheckFailed(
            f"Service not yet accessible: {result.error}",
            remedy=f"curl -f {url}",
        )
        console.log_warn("⚠️ Service not yet accessible (may need more time)")
        console.log_info(f"You can check manually: {error.remedy}")
        run.record(STEP_HEALTH, StepStatus.WARNING, error.message, error.remedy)
