"""
Rotation of the secret files read by the backing services.
"""
import base64
import os
import secrets
import shutil
from datetime import datetime
from typing import Callable, List, Optional
from pydantic import BaseModel
from ..UTILS import console

SECRET_BYTES = 32


def generate_secret(num_bytes: int = SECRET_BYTES) -> str:
    """
    Random bytes encoded as base64, matching ``openssl rand -base64 32``.
    """
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


class RotationResult(BaseModel):
    backup_dir: str
    backed_up: List[str] = []
    rotated: List[str] = []


class SecretRotator:
    """
    Backs up the secrets directory, then writes fresh values for each secret file.
    """
    def __init__(self,
                 secrets_dir: str,
                 backups_dir: str,
                 secret_files: List[str],
                 generator: Callable[[], str] = generate_secret,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Initializes the rotator.

        :param secrets_dir: Directory holding the live secret files.
        :param backups_dir: Parent directory for timestamped backups.
        :param secret_files: File names to regenerate.
        :param generator: Produces a new secret value.
        :param clock: Source of the backup timestamp.
        """
        self.secrets_dir = secrets_dir
        self.backups_dir = backups_dir
        self.secret_files = secret_files
        self.generator = generator
        self.clock = clock

    def backup_path(self) -> str:
        return os.path.join(self.backups_dir, self.clock().strftime("%Y%m%d_%H%M%S"))

    def rotate(self, backup_dir: Optional[str] = None) -> RotationResult:
        """
        Performs the rotation.

        :param backup_dir: Explicit backup location, defaults to ``<backups_dir>/<YYYYmmdd_HHMMSS>``.
        :return: What was backed up and rotated.
        """
        backup_dir = backup_dir or self.backup_path()
        result = RotationResult(backup_dir=backup_dir)

        os.makedirs(backup_dir, exist_ok=True)
        result.backed_up = self._backup(backup_dir)

        console.log("Generating new secrets...")
        os.makedirs(self.secrets_dir, exist_ok=True)
        for name in self.secret_files:
            path = os.path.join(self.secrets_dir, name)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            # existing files keep their old mode on open
            os.fchmod(fd, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(self.generator() + "\n")
            result.rotated.append(name)

        self._restrict_permissions()
        return result

    def _backup(self, backup_dir: str) -> List[str]:
        console.log("Backing up current secrets...")
        if not os.path.isdir(self.secrets_dir) or not os.listdir(self.secrets_dir):
            console.log_info("No existing secrets to backup")
            return []

        copied = []
        for entry in sorted(os.listdir(self.secrets_dir)):
            source = os.path.join(self.secrets_dir, entry)
            target = os.path.join(backup_dir, entry)
            if os.path.isdir(source):
                shutil.copytree(source, target, dirs_exist_ok=True)
            else:
                shutil.copy2(source, target)
            copied.append(entry)
        return copied

    def _restrict_permissions(self) -> None:
        for entry in os.listdir(self.secrets_dir):
            if entry.endswith(".txt"):
                os.chmod(os.path.join(self.secrets_dir, entry), 0o600)
