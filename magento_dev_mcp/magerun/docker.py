"""
Docker environment detection for Magento projects.

Recognizes the common local development stacks by their marker files and
knows how to run a command inside the PHP container of each.
"""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

CONTAINER_ROOT = "/var/www/html"
COMPOSE_FILES = ("docker-compose.yml", "compose.yaml")
COMPOSE_SERVICES = ("phpfpm", "php-fpm", "php")


@dataclass(frozen=True)
class DockerEnvironment:
    """A detected container setup.

    ``kind`` is one of warden, ddev, docker-magento or docker-compose.
    """
    kind: str
    container_root: str = CONTAINER_ROOT
    services: Tuple[str, ...] = ()

    def wrap_command(self, argv: Sequence[str]) -> List[List[str]]:
        """Argument vectors that run ``argv`` in the container, in the order to try them"""
        argv = list(argv)
        if self.kind == "warden":
            return [["warden", "shell", "-c", shlex.join(argv)]]
        if self.kind == "ddev":
            return [["ddev", "exec", *argv]]
        if self.kind == "docker-magento":
            return [["bin/clinotty", *argv]]
        if self.kind == "docker-compose":
            return [["docker", "compose", "exec", "-T", service, *argv] for service in self.services]
        raise ValueError(f"Unknown docker environment: {self.kind}")


def _is_warden(root: Path) -> bool:
    env_file = root / ".env"
    if not env_file.is_file():
        return False
    try:
        return "WARDEN_ENV_TYPE" in env_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Cannot read {env_file}: {e}")
        return False


def detect_docker_environment(project_root) -> Optional[DockerEnvironment]:
    """Detect the Docker stack used by the project, or None for a plain host install"""
    root = Path(project_root)

    if _is_warden(root):
        environment = DockerEnvironment("warden")
    elif (root / ".ddev").is_dir():
        environment = DockerEnvironment("ddev")
    elif (root / "bin" / "clinotty").exists():
        environment = DockerEnvironment("docker-magento")
    elif any((root / name).is_file() for name in COMPOSE_FILES):
        environment = DockerEnvironment("docker-compose", services=COMPOSE_SERVICES)
    else:
        return None

    logger.debug(f"Detected {environment.kind} environment in {root}")
    return environment
