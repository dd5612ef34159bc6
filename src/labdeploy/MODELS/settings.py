"""
Runtime settings, loaded from a .env file and LABDEPLOY_* environment variables.
"""
import os
from typing import Dict, List, Mapping, Optional
from pydantic import BaseModel, ValidationError
from dotenv import dotenv_values
from ..errors import InvalidConfigError

ENV_PREFIX = "LABDEPLOY_"


class Settings(BaseModel):
    """
    Host paths, network names and timing constants used by every command.
    """
    compose_dir: str = "/opt/docker/compose"
    scripts_dir: str = "/opt/docker/scripts"

    # Networking
    proxy_network: str = "infrastructure_traefik"
    database_network: str = "infrastructure_database"

    # Timing (seconds)
    poll_attempts: int = 15
    poll_interval: float = 2.0
    health_grace: float = 5.0
    probe_timeout: float = 10.0
    check_timeout: float = 5.0
    service_pause: float = 5.0

    # Secrets
    secrets_dir: str = "/opt/docker/secrets"
    backups_dir: str = "/opt/docker/backups/secrets"
    secret_files: List[str] = [
        "postgres_password.txt",
        "redis_password.txt",
        "grafana_admin_password.txt",
    ]

    catalog_file: Optional[str] = None

    def compose_path(self, relative: str) -> str:
        return os.path.join(self.compose_dir, relative)

    def script_path(self, relative: str) -> str:
        return os.path.join(self.scripts_dir, relative)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 env_file: Optional[str] = None) -> "Settings":
        """
        Builds settings from a .env file overlaid by the process environment.

        :param environ: Environment to read, defaults to ``os.environ``.
        :param env_file: Path to the .env file, defaults to ``LABDEPLOY_ENV_FILE`` or ``./.env``.
        :return: Validated settings.
        :raises InvalidConfigError: If the .env file cannot be read or a value does not validate.
        """
        environ = os.environ if environ is None else environ
        env_file = env_file or environ.get(f"{ENV_PREFIX}ENV_FILE", ".env")

        values: Dict[str, str] = {}
        if os.path.isfile(env_file):
            try:
                loaded = dotenv_values(env_file)
            except (OSError, UnicodeDecodeError) as e:
                raise InvalidConfigError(f"Cannot read settings file {env_file}: {e}") from e
            values.update({k: v for k, v in loaded.items() if v is not None})
        values.update(environ)

        fields: Dict[str, object] = {}
        for name in cls.model_fields:
            raw = values.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or raw == "":
                continue
            if name == "secret_files":
                fields[name] = [part.strip() for part in raw.split(",") if part.strip()]
            else:
                fields[name] = raw
        try:
            return cls(**fields)
        except ValidationError as e:
            raise InvalidConfigError(
                f"Invalid settings: {e}",
                remedy=f"Check the {ENV_PREFIX}* variables and {env_file}",
            ) from e
