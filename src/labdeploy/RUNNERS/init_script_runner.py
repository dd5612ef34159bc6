"""
Runs the optional per-service initialization scripts.
"""
import os
from typing import Optional
from .command_runner import CommandRunner, CommandResult


class InitScriptRunner:
    """
    Executes ``bash <script>`` with the script's output going straight to the terminal.
    """
    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def exists(self, script_path: str) -> bool:
        return os.path.isfile(script_path)

    def run(self, script_path: str) -> CommandResult:
        """
        Runs the script.

        :param script_path: Absolute path of the init script.
        :return: The command result; callers inspect ``ok``.
        """
        return self.runner.run(["bash", script_path], capture=False)

    @staticmethod
    def manual_command(script_path: str) -> str:
        return f"bash {script_path}"
