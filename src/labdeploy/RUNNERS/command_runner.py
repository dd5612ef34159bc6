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
Execution of external commands (docker CLI, init scripts) with captured or live output.
"""
import subprocess
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs a command to completion and reports its exit status.
    """

    def run(self,
            command: List[str],
            capture: bool = True,
            timeout: Optional[float] = None,
            cwd: Optional[str] = None) -> CommandResult:
        """
        Runs the command.

        Args:
            command (List[str]): Command and arguments to execute.
            capture (bool): Capture stdout/stderr instead of passing them through to the terminal.
            timeout (Optional[float]): Seconds before the command is killed.
            cwd (Optional[str]): Directory to run the command in.

        Returns:
            CommandResult: Exit code and captured output. A missing executable
            yields exit code 127, a timeout yields 124, as a shell would.
        """
        try:
            completed = subprocess.run(
                command,
                capture_output=capture,
                text=True,
                timeout=timeout,
                cwd=cwd,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
        except FileNotFoundError as e:
            return CommandResult(command=command, returncode=127, stderr=str(e))
        except subprocess.TimeoutExpired:
            return CommandResult(command=command, returncode=124,
                                 stderr=f"Timed out after {timeout}s")

        return CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
