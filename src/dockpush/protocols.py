"""
Dockpush Protocol Definitions

This module contains the Protocol definitions for the live-patch engine that
dockpush drives but does not implement: the Dockerfile model, the engine, the
session it returns and the handler object receiving command events.

Protocols are the foundation layer with zero dependencies on other dockpush
modules except the event data classes.
"""

from typing import Any, List, Protocol, Sequence, runtime_checkable

from .datacls.events import CommandStart, CommandOutput, CommandExit


# ============================================================================
# Dockerfile Protocols
# ============================================================================

@runtime_checkable
class DockerfileModel(Protocol):
    """
    Parsed Dockerfile as understood by a live-patch engine.
    """

    def generate_live_dockerfile(self) -> str:
        """
        Produce the Dockerfile variant used for images that will be live-patched.

        Returns:
            Dockerfile body to inject into the build archive
        """
        ...


# ============================================================================
# Event Handler Protocols
# ============================================================================

@runtime_checkable
class CommandHandlers(Protocol):
    """
    Receives the commands a session re-executes inside a container.

    Passed to `LivepushEngine.init` so every session reports to its service.
    """

    def on_command_start(self, event: CommandStart) -> None:
        ...

    def on_command_output(self, event: CommandOutput) -> None:
        ...

    def on_command_exit(self, event: CommandExit) -> None:
        ...


# ============================================================================
# Engine Protocols
# ============================================================================

@runtime_checkable
class LivepushSession(Protocol):
    """
    A live-patch session bound to one running container.
    """

    async def apply(self, added_or_updated: Sequence[str], deleted: Sequence[str]) -> None:
        """
        Sync the given files into the container and re-run affected instructions.

        Args:
            added_or_updated: Paths that exist and must be copied in
            deleted: Paths that no longer exist and must be removed
        """
        ...


@runtime_checkable
class LivepushEngine(Protocol):
    """
    Factory for Dockerfile models and live-patch sessions.
    """

    def dockerfile(self, contents: bytes) -> DockerfileModel:
        """
        Parse Dockerfile contents.

        Args:
            contents: Raw Dockerfile bytes
        """
        ...

    async def init(
        self,
        *,
        dockerfile: DockerfileModel,
        context: str,
        container_id: str,
        stage_images: List[str],
        client: Any,
        handlers: CommandHandlers,
    ) -> LivepushSession:
        """
        Start a session for one container.

        Args:
            dockerfile: Parsed Dockerfile of the service
            context: Absolute build context directory
            container_id: Running container to patch
            stage_images: Images of earlier build stages, for multi-stage builds
            client: Container runtime client used by the engine
            handlers: Receiver of command start/output/exit events
        """
        ...
