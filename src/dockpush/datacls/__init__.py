from .fragments import (
    ComposeFragment,
    DockerfileContainerFragment,
    DockerfileImageTagFragment,
    ProjectFragment,
)
from .contexts import ImageTag, BuildConfiguration, ChangeSet
from .events import CommandStart, CommandOutput, CommandOutputData, CommandExit

__all__ = [
    'ComposeFragment',
    'DockerfileContainerFragment',
    'DockerfileImageTagFragment',
    'ProjectFragment',
    'ImageTag',
    'BuildConfiguration',
    'ChangeSet',
    'CommandStart',
    'CommandOutput',
    'CommandOutputData',
    'CommandExit',
]
