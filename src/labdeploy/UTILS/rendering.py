"""
Text templates for descriptor cards, run summaries and rotation notices.
"""
from typing import Iterable, List
from jinja2 import Environment
from ..MODELS.service_descriptor import ServiceDescriptor
from ..MODELS.deployment_run import RunResult

_env = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=False)

SERVICE_INFO_TEMPLATE = _env.from_string("""\
Service: {{ svc.display_name }}
URL: {{ svc.url }}
Container: {{ svc.container_name }}
{% if svc.purpose %}
Purpose: {{ svc.purpose }}
{% endif %}
Compose: {{ svc.compose_file }}
Init Script: {{ svc.init_script }}
{% if svc.database %}
Database: {{ svc.database }}
{% endif %}
""")

SUMMARY_TEMPLATE = _env.from_string("""\
Service URLs:
{% for svc in services %}
  • {{ svc.name }}: {{ svc.url }}
{% endfor %}
{% if failed %}

Failed deployments:
{% for result in failed %}
  • {{ result.service }} ({{ result.state.value }})
{% endfor %}
{% endif %}
""")

ROTATION_NOTICE_TEMPLATE = _env.from_string("""\
Secrets rotated successfully!
Backup stored in: {{ backup_dir }}

IMPORTANT: Restart services to apply new secrets:
  cd {{ compose_dir }}/infrastructure
  docker compose restart {{ restart_services | join(' ') }}

Update Redis password in docker-compose.yml manually after rotation.
""")


def render_service_info(descriptor: ServiceDescriptor) -> str:
    return SERVICE_INFO_TEMPLATE.render(svc=descriptor).rstrip("\n")


def render_summary(services: Iterable[ServiceDescriptor], results: List[RunResult]) -> str:
    failed = [r for r in results if not r.succeeded]
    return SUMMARY_TEMPLATE.render(services=list(services), failed=failed).rstrip("\n")


def render_rotation_notice(backup_dir: str, compose_dir: str,
                           restart_services: Iterable[str] = ("postgres", "redis")) -> str:
    return ROTATION_NOTICE_TEMPLATE.render(
        backup_dir=backup_dir,
        compose_dir=compose_dir,
        restart_services=list(restart_services),
    ).rstrip("\n")
