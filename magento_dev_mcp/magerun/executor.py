"""
Runner for the n98-magerun2 command line tool.

Commands are passed as argument vectors and never through a shell, so tool
arguments coming from an MCP client need no quoting.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ..exceptions import (
    MagerunError, MagerunNotFoundError, NotMagentoInstallationError,
    MagerunCommandError, MagerunOutputError,
)
from .docker import DockerEnvironment, detect_docker_environment

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = ("command not found", "not recognized")
NOT_MAGENTO_MARKERS = ("not a Magento installation", "app/etc/env.php")


@dataclass
class CommandResult:
    """Output of a successful magerun2 run"""
    data: Any
    raw_output: str


class MagerunRunner:
    """Run magerun2 in a Magento project, inside its Docker stack when there is one"""

    def __init__(self, project_root, binary: str = "magerun2", timeout: float = 30, docker: bool = True):
        self.project_root = Path(project_root)
        self.binary = binary
        self.timeout = timeout
        self.docker_env: Optional[DockerEnvironment] = (
            detect_docker_environment(self.project_root) if docker else None
        )

    def run(self, args: Sequence[str], parse_json: bool = False) -> CommandResult:
        """Run ``magerun2 <args>`` and return its output.

        Raises:
            MagerunNotFoundError: the binary is missing
            NotMagentoInstallationError: magerun2 does not see a Magento root
            MagerunOutputError: ``parse_json`` is set and stdout is not JSON
            MagerunCommandError: any other failure
        """
        argv = [self.binary, *args]

        if self.docker_env is not None:
            stdout = self._run_in_docker(argv)
            if stdout is None:
                try:
                    stdout = self._execute(argv)
                except MagerunError as e:
                    raise MagerunCommandError(
                        f"Failed to execute {self.binary} via {self.docker_env.kind} Docker environment "
                        f"and locally.\n\nError: {e}"
                    ) from e
        else:
            stdout = self._execute(argv)

        if parse_json:
            try:
                return CommandResult(data=json.loads(stdout), raw_output=stdout)
            except ValueError as e:
                raise MagerunOutputError(str(e), stdout) from e
        return CommandResult(data=stdout.strip(), raw_output=stdout)

    def _run_in_docker(self, argv: List[str]) -> Optional[str]:
        """stdout of the first container command that succeeds, None when all fail"""
        for command in self.docker_env.wrap_command(argv):
            try:
                return self._execute(command)
            except MagerunError as e:
                logger.debug(f"{' '.join(command)} failed: {e}")

        logger.warning(
            f"Docker execution failed ({self.docker_env.kind}), falling back to local {self.binary}"
        )
        return None

    def _execute(self, command: List[str]) -> str:
        logger.debug(f"Running {' '.join(command)} in {self.project_root}")
        try:
            completed = subprocess.run(
                command,
                cwd=str(self.project_root),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            if command[0] == self.binary:
                raise MagerunNotFoundError(self.binary) from e
            raise MagerunCommandError(f"Error executing magerun2 command: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise MagerunCommandError(
                f"Error executing magerun2 command: timed out after {self.timeout} seconds"
            ) from e

        if completed.stderr and completed.stderr.strip():
            logger.warning(f"magerun2 stderr: {completed.stderr.strip()}")

        if completed.returncode != 0:
            message = (completed.stderr or "").strip() or (completed.stdout or "").strip()
            message = message or f"exit status {completed.returncode}"
            if completed.returncode == 127 or any(marker in message for marker in NOT_FOUND_MARKERS):
                raise MagerunNotFoundError(self.binary)
            if any(marker in message for marker in NOT_MAGENTO_MARKERS):
                raise NotMagentoInstallationError()
            raise MagerunCommandError(f"Error executing magerun2 command: {message}")

        return completed.stdout
