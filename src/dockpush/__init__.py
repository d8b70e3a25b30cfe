"""
dockpush

Assembles a project of Dockerfile-backed services from compose files and
command-line declarations, builds their images, and live-pushes changed files
into their running containers through a pluggable live-patch engine.

Main modules:
- io: File system access, path utilities and `.dockerignore` filtering
- project: Services, project assembly and the compose interpreter
- workflows: Build and push orchestration
- config: Configuration loading and validation
- factories: Live-patch engine loading
- protocols: The live-patch engine contract
- datacls: Fragments, build configurations, change sets and events

Quick start example:
```python
import asyncio, os
import docker
from dockpush import Config, Project, PushOrchestrator, EngineFactory, ComposeFragment

settings = Config(os.getcwd(), os.environ).settings()
engine = EngineFactory.create(settings.engine)

async def main():
    project = await Project.assemble(
        [ComposeFragment(compose_path="docker-compose.yml")], settings=settings, engine=engine
    )
    await PushOrchestrator(project, docker.from_env()).run(["src/app.py"])

asyncio.run(main())
```
"""

__version__ = "0.3.0"

from .protocols import DockerfileModel, CommandHandlers, LivepushSession, LivepushEngine
from .config import Config, ConfigModel, Settings
from .datacls import (
    ComposeFragment,
    DockerfileContainerFragment,
    DockerfileImageTagFragment,
    ImageTag,
    BuildConfiguration,
    ChangeSet,
)
from .factories import EngineFactory, StaticEngine
from .project import Project, Service, ComposeInterpreter
from .workflows import BuildOrchestrator, PushOrchestrator
from .exceptions import (
    DockpushError,
    ConfigurationError,
    ExternalToolError,
    FilesystemError,
    ScopeError,
    BuildError,
    EngineError,
)

__all__ = [
    # Version
    '__version__',
    # Protocols
    'DockerfileModel',
    'CommandHandlers',
    'LivepushSession',
    'LivepushEngine',
    # Config
    'Config',
    'ConfigModel',
    'Settings',
    # Data classes
    'ComposeFragment',
    'DockerfileContainerFragment',
    'DockerfileImageTagFragment',
    'ImageTag',
    'BuildConfiguration',
    'ChangeSet',
    # Engines
    'EngineFactory',
    'StaticEngine',
    # Project
    'Project',
    'Service',
    'ComposeInterpreter',
    # Workflows
    'BuildOrchestrator',
    'PushOrchestrator',
    # Exceptions
    'DockpushError',
    'ConfigurationError',
    'ExternalToolError',
    'FilesystemError',
    'ScopeError',
    'BuildError',
    'EngineError',
]
