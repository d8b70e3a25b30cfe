import asyncio
import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .. import constants
from ..config import Settings
from ..datacls import (
    BuildConfiguration,
    ComposeFragment,
    DockerfileContainerFragment,
    DockerfileImageTagFragment,
    ImageTag,
    ProjectFragment,
)
from ..io import DiskFileSystem, FileSystem
from ..protocols import LivepushEngine
from .compose import ComposeInterpreter
from .service import Service

logger = logging.getLogger(__name__)


def normalize_build_args(args: Any) -> List[str]:
    """Turn compose `build.args` (mapping or list) into `key[=value]` strings."""
    if not args:
        return []
    if isinstance(args, dict):
        return [key if value is None else f"{key}={value}" for key, value in args.items()]
    return [str(arg) for arg in args]


class Project:
    """
    The name-unique, ordered set of services of one invocation.
    """

    def __init__(self, services: Sequence[Service]):
        self._services: List[Service] = list(services)

    @classmethod
    async def assemble(
        cls,
        fragments: Sequence[ProjectFragment],
        *,
        settings: Settings,
        engine: LivepushEngine,
        fs: Optional[FileSystem] = None,
        compose: Optional[ComposeInterpreter] = None,
    ) -> "Project":
        fs = fs or DiskFileSystem()
        compose = compose or ComposeInterpreter(settings.cwd)
        common = dict(
            engine=engine,
            fs=fs,
            cwd=settings.cwd,
            dockerignore=settings.dockerignore,
            stage_images=settings.stage_images,
        )

        # Compose paths are collected so `compose config` sees all of them at once
        compose_paths: List[str] = []
        services: List[Service] = []
        for fragment in fragments:
            if isinstance(fragment, ComposeFragment):
                compose_paths.append(fragment.compose_path)
            elif isinstance(fragment, DockerfileImageTagFragment):
                services.append(await Service.resolve(
                    ImageTag(image=fragment.image, tag=fragment.tag),
                    None,
                    fragment.dockerfile_path,
                    fragment.context,
                    [],
                    **common,
                ))
            elif isinstance(fragment, DockerfileContainerFragment):
                services.append(await Service.resolve(
                    None,
                    fragment.container_id,
                    fragment.dockerfile_path,
                    fragment.context,
                    [],
                    **common,
                ))
            else:
                raise TypeError(f"Unknown project fragment: {fragment!r}")

        if compose_paths:
            services.extend(await cls._compose_services(compose_paths, settings, compose, common))

        project = cls(cls._deduplicate(services))
        logger.info(f"Project has {len(project)} service(s): {', '.join(s.name for s in project)}")
        return project

    @staticmethod
    async def _compose_services(
        paths: List[str],
        settings: Settings,
        compose: ComposeInterpreter,
        common: Dict[str, Any],
    ) -> List[Service]:
        config = await compose.config(paths)
        dirname = os.path.basename(settings.cwd)
        services: List[Service] = []
        for name, definition in (config.get("services") or {}).items():
            build = (definition or {}).get("build")
            if not isinstance(build, dict) or "dockerfile" not in build:
                logger.debug(f"Compose service '{name}' has no build.dockerfile, skipping.")
                continue

            container_id = await compose.ps(paths, name)
            context = build.get("context") or constants.DEFAULT_CONTEXT
            # compose resolves the dockerfile against the build context
            dockerfile = os.path.join(context, build["dockerfile"])
            services.append(await Service.resolve(
                ImageTag(image=f"{dirname}_{name}", tag=constants.DEFAULT_COMPOSE_TAG),
                container_id,
                dockerfile,
                context,
                normalize_build_args(build.get("args")),
                **common,
            ))
        return services

    @staticmethod
    def _deduplicate(services: List[Service]) -> List[Service]:
        by_name: Dict[str, Service] = {}
        for service in services:
            first = by_name.get(service.name)
            if first is None:
                by_name[service.name] = service
                continue
            logger.warning(
                f"Service '{service.name}' is declared more than once; keeping the first declaration "
                f"('{first.dockerfile_path}') over '{service.dockerfile_path}'"
            )
            first.adopt(service)
        return list(by_name.values())

    @property
    def services(self) -> List[Service]:
        return list(self._services)

    def get(self, name: str) -> Optional[Service]:
        return next((s for s in self._services if s.name == name), None)

    def __iter__(self) -> Iterator[Service]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)

    async def init_livepush(self, client: Any) -> None:
        await asyncio.gather(*(service.init_livepush(client) for service in self._services))

    async def notify_changes(self, paths: Sequence[str]) -> None:
        await asyncio.gather(*(service.notify_changes(paths) for service in self._services))

    async def build_configurations(self) -> List[BuildConfiguration]:
        return list(await asyncio.gather(*(service.build_configuration() for service in self._services)))
