"""
Shared fakes for the docker CLI, HTTP probes and sleeping.
"""
import json
import os
from collections import defaultdict

import pytest
import yaml

from labdeploy.MANAGERS.container_runtime import DockerRuntime
from labdeploy.MANAGERS.health_monitor import HealthStatus, ProbeResult
from labdeploy.MODELS.service_catalog import ServiceCatalog
from labdeploy.MODELS.settings import Settings
from labdeploy.RUNNERS.command_runner import CommandResult
from labdeploy.RUNNERS.init_script_runner import InitScriptRunner

PROXY = "infrastructure_traefik"
DATABASE = "infrastructure_database"


class FakeDocker:
    """
    Stands in for CommandRunner and answers docker/bash commands from in-memory state.
    """

    def __init__(self):
        self.calls = []
        self.reachable = True
        self.networks = {PROXY: set(), DATABASE: set()}
        self.running = set()
        self.start_on_up = True
        self.appear_after = {}
        self.ps_checks = defaultdict(int)
        self.failing = set()
        self.init_exit = 0

    def run(self, command, capture=True, timeout=None, cwd=None):
        self.calls.append(list(command))
        if command[0] == "bash":
            return CommandResult(command, self.init_exit)
        args = command[1:]
        if args[0] == "info":
            return CommandResult(command, 0 if self.reachable else 1)
        if args[0] == "network":
            return self._network(command, args[1:])
        if args[0] == "ps":
            return self._ps(command, args)
        if args[0] == "compose":
            return self._compose(command, args)
        return CommandResult(command, 1, stderr="unsupported")

    def _network(self, command, args):
        if args[0] == "inspect":
            network = args[1]
            if network not in self.networks:
                return CommandResult(command, 1, stderr="No such network")
            if "--format" in args:
                members = {f"id{i}": {"Name": name} for i, name in enumerate(sorted(self.networks[network]))}
                return CommandResult(command, 0, stdout=json.dumps(members))
            return CommandResult(command, 0, stdout="[]")
        if args[0] == "connect":
            network, container = args[1], args[2]
            if f"connect:{network}" in self.failing:
                return CommandResult(command, 1, stderr="connect refused")
            self.networks[network].add(container)
            return CommandResult(command, 0)
        return CommandResult(command, 1)

    def _ps(self, command, args):
        name = args[args.index("--filter") + 1].split("=", 1)[1]
        fmt = args[args.index("--format") + 1]
        if fmt == "{{.Names}}":
            self.ps_checks[name] += 1
            if self.ps_checks[name] < self.appear_after.get(name, 1):
                return CommandResult(command, 0, stdout="")
        visible = [c for c in sorted(self.running) if name in c]
        if fmt == "{{.Status}}":
            return CommandResult(command, 0, stdout="\n".join("Up 2 minutes" for _ in visible))
        return CommandResult(command, 0, stdout="\n".join(visible))

    def _compose(self, command, args):
        compose_file = args[args.index("-f") + 1]
        action = args[args.index("-f") + 2]
        if action in self.failing:
            return CommandResult(command, 1, stderr=f"{action} failed")
        container = os.path.splitext(os.path.basename(compose_file))[0]
        if action == "up" and self.start_on_up:
            self.running.add(container)
        if action == "down":
            self.running.discard(container)
        return CommandResult(command, 0)

    def mutations(self):
        """Commands that change runtime state."""
        found = []
        for call in self.calls:
            if call[:3] == ["docker", "network", "connect"]:
                found.append(call)
            elif call[:2] == ["docker", "compose"] and call[-1] != "config":
                found.append(call)
        return found

    def count(self, *prefix):
        return sum(1 for call in self.calls if call[:len(prefix)] == list(prefix))


class FakeProbe:
    """Answers HTTP probes from a url -> healthy map."""

    def __init__(self, default=True):
        self.default = default
        self.responses = {}
        self.calls = []

    def probe(self, url, timeout=10.0, fail_on_http_error=True, marker=None):
        self.calls.append({"url": url, "timeout": timeout, "marker": marker})
        healthy = self.responses.get(url, self.default)
        if healthy:
            return ProbeResult(url, HealthStatus.HEALTHY, 200)
        return ProbeResult(url, HealthStatus.UNHEALTHY, None, "connection refused")


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def fake_docker():
    return FakeDocker()


@pytest.fixture
def runtime(fake_docker):
    return DockerRuntime(runner=fake_docker)


@pytest.fixture
def init_runner(fake_docker):
    return InitScriptRunner(runner=fake_docker)


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def settings(tmp_path):
    compose_dir = tmp_path / "compose"
    scripts_dir = tmp_path / "scripts"
    (compose_dir / "applications").mkdir(parents=True)
    (scripts_dir / "init").mkdir(parents=True)
    return Settings(
        compose_dir=str(compose_dir),
        scripts_dir=str(scripts_dir),
        secrets_dir=str(tmp_path / "secrets"),
        backups_dir=str(tmp_path / "backups"),
    )


@pytest.fixture
def compose_files(settings):
    """Writes a minimal valid compose file for every built-in service."""
    paths = {}
    for descriptor in ServiceCatalog.default():
        path = os.path.join(settings.compose_dir, descriptor.compose_file)
        content = {
            "services": {
                descriptor.name: {
                    "image": f"example/{descriptor.name}:latest",
                    "container_name": descriptor.container_name,
                }
            }
        }
        with open(path, "w") as f:
            yaml.dump(content, f)
        paths[descriptor.name] = path
    return paths


@pytest.fixture
def init_script(settings):
    """Creates the init script for a service and returns its path."""
    def _create(service):
        path = os.path.join(settings.scripts_dir, "init", f"{service}-init.sh")
        with open(path, "w") as f:
            f.write("#!/bin/bash\nexit 0\n")
        return path
    return _create
