import asyncio
import logging
import os
from typing import Any, List, Optional, Sequence

from .. import constants
from ..datacls import (
    BuildConfiguration,
    ChangeSet,
    CommandExit,
    CommandOutput,
    CommandStart,
    ImageTag,
)
from ..exceptions import (
    DockerfileReadError,
    MissingContainerError,
    MissingImageTagError,
    UninitializedError,
)
from ..io import FileSystem, IgnoreFilter, file_exists, list_files_recursive
from ..protocols import DockerfileModel, LivepushEngine, LivepushSession

logger = logging.getLogger(__name__)


def is_within(context: str, path: str) -> bool:
    """True if `path` is `context` itself or lies below it (both absolute)."""
    rel = os.path.relpath(path, context)
    return rel != os.pardir and not rel.startswith(os.pardir + os.sep)


class ServiceCommandLogger:
    """Logs the commands a live-patch session runs for one service."""

    def __init__(self, name: str):
        self.name = name

    def on_command_start(self, event: CommandStart) -> None:
        logger.info(f"{self.name}: running '{event.command}'")

    def on_command_output(self, event: CommandOutput) -> None:
        # stdout and stderr are reported alike
        text = event.output.data.decode("utf-8", errors="replace").rstrip("\n")
        logger.info(f"{self.name}: {text}")

    def on_command_exit(self, event: CommandExit) -> None:
        if not event.failed:
            return
        logger.warning(f"{self.name}: command '{event.command}' failed with code {event.return_code}")


class Service:
    """
    One buildable and/or pushable unit: a Dockerfile, its context and
    optionally an image tag (build) and a running container (push).
    """

    def __init__(
        self,
        name: str,
        image_tag: Optional[ImageTag],
        container_id: Optional[str],
        dockerfile: DockerfileModel,
        dockerfile_path: str,
        context: str,
        build_args: Sequence[str],
        *,
        engine: LivepushEngine,
        fs: FileSystem,
        cwd: str,
        dockerignore: str = constants.DOCKERIGNORE_FILENAME,
        stage_images: Sequence[str] = (),
    ):
        self.name = name
        self.image_tag = image_tag
        self.container_id = container_id
        self.dockerfile = dockerfile
        self.dockerfile_path = dockerfile_path
        self.context = context
        self.build_args = list(build_args)
        self.engine = engine
        self.fs = fs
        self.cwd = cwd
        self.dockerignore = dockerignore
        self.stage_images = list(stage_images)
        self._livepush: Optional[LivepushSession] = None

    @classmethod
    async def resolve(
        cls,
        image_tag: Optional[ImageTag],
        container_id: Optional[str],
        dockerfile_path: str,
        context: str,
        build_args: Sequence[str],
        *,
        engine: LivepushEngine,
        fs: FileSystem,
        cwd: str,
        dockerignore: str = constants.DOCKERIGNORE_FILENAME,
        stage_images: Sequence[str] = (),
    ) -> "Service":
        """Read and parse the Dockerfile and make the context absolute."""
        name = image_tag.image if image_tag is not None else dockerfile_path
        full_path = os.path.normpath(os.path.join(cwd, dockerfile_path))
        try:
            contents = await asyncio.to_thread(fs.read_bytes, full_path)
        except OSError as e:
            raise DockerfileReadError(
                f"cannot read Dockerfile '{dockerfile_path}': {e}", path=dockerfile_path
            ) from e

        service = cls(
            name,
            image_tag,
            container_id,
            engine.dockerfile(contents),
            dockerfile_path,
            os.path.normpath(os.path.join(cwd, context)),
            build_args,
            engine=engine,
            fs=fs,
            cwd=cwd,
            dockerignore=dockerignore,
            stage_images=stage_images,
        )
        logger.debug(
            f"Resolved service '{name}' (dockerfile '{dockerfile_path}', context '{service.context}', "
            f"container {container_id or '-'})"
        )
        return service

    @property
    def initialized(self) -> bool:
        return self._livepush is not None

    def adopt(self, other: "Service") -> None:
        """Take the container and image tag of a duplicate declaration when missing here."""
        if self.container_id is None and other.container_id is not None:
            self.container_id = other.container_id
        if self.image_tag is None and other.image_tag is not None:
            self.image_tag = other.image_tag

    async def init_livepush(self, client: Any) -> None:
        if self._livepush is not None:
            return
        if self.container_id is None:
            raise MissingContainerError(
                f"cannot initialize livepush for a service that has no container: {self.dockerfile_path}",
                service=self.name,
            )

        logger.debug(f"{self.name}: starting live-patch session on container {self.container_id}")
        self._livepush = await self.engine.init(
            dockerfile=self.dockerfile,
            context=self.context,
            container_id=self.container_id,
            stage_images=self.stage_images,
            client=client,
            handlers=ServiceCommandLogger(self.name),
        )

    async def classify_changes(self, paths: Sequence[str]) -> ChangeSet:
        """Split the paths inside this context into existing and deleted ones."""
        added_or_updated: List[str] = []
        deleted: List[str] = []
        for raw in paths:
            path = os.path.normpath(os.path.join(self.cwd, raw))
            if not is_within(self.context, path):
                continue
            if await asyncio.to_thread(file_exists, self.fs, path):
                added_or_updated.append(path)
            else:
                deleted.append(path)
        return ChangeSet(added_or_updated=added_or_updated, deleted=deleted)

    async def notify_changes(self, paths: Sequence[str]) -> None:
        if self._livepush is None:
            raise UninitializedError(f"`init_livepush` was not called for '{self.name}'", service=self.name)

        changes = await self.classify_changes(paths)
        if changes.empty:
            return

        logger.info(
            f"{self.name}: adding or updating {len(changes.added_or_updated)} files "
            f"and deleting {len(changes.deleted)} files"
        )
        await self._livepush.apply(changes.added_or_updated, changes.deleted)

    async def build_configuration(self) -> BuildConfiguration:
        if self.image_tag is None:
            raise MissingImageTagError(f"missing image and tag for '{self.name}'", service=self.name)

        ignore = await asyncio.to_thread(IgnoreFilter.load, self.fs, self.context, self.dockerignore)
        relative_context = os.path.relpath(self.context, self.cwd)
        listed = await asyncio.to_thread(list_files_recursive, self.fs, self.context)
        file_paths = ignore.filter_paths(os.path.relpath(p, self.context) for p in listed)
        logger.debug(
            f"{self.name}: {len(file_paths)} of {len(listed)} files in '{relative_context}' pass the ignore rules"
        )

        return BuildConfiguration(
            image_tag=self.image_tag,
            dockerfile=self.dockerfile.generate_live_dockerfile(),
            context=self.context,
            relative_context=relative_context,
            file_paths=file_paths,
            build_args=self.build_args,
        )

    def __repr__(self):
        return f"Service(name={self.name!r}, image_tag={self.image_tag}, container_id={self.container_id!r})"
