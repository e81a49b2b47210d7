"""Bridge to the n98-magerun2 command line tool"""

from .docker import DockerEnvironment, detect_docker_environment
from .executor import MagerunRunner, CommandResult

__all__ = ['DockerEnvironment', 'detect_docker_environment', 'MagerunRunner', 'CommandResult']
