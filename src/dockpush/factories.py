"""
Dockpush Factories

This module resolves the live-patch engine used by a run. Engines are
external; they are named by a `package.module:attribute` path in the
configuration, on the command line or in DOCKPUSH_ENGINE.

Dependencies:
- protocols: For the engine contract checked at load time
"""

from importlib import import_module
from typing import Any, List, Optional
import inspect
import logging

from .protocols import CommandHandlers, DockerfileModel, LivepushEngine, LivepushSession
from .exceptions import EngineLoadError, EngineNotConfiguredError

logger = logging.getLogger(__name__)

# -------------------------
#
#   BUILT-IN STATIC ENGINE
#
# -------------------------

class StaticDockerfile:
    """Dockerfile model whose live variant is the file itself."""

    def __init__(self, contents: bytes):
        self.contents = contents

    def generate_live_dockerfile(self) -> str:
        return self.contents.decode("utf-8")


class StaticEngine:
    """
    Engine used when none is configured. Images still build from the
    unmodified Dockerfile; live-patch sessions are refused.
    """

    def dockerfile(self, contents: bytes) -> DockerfileModel:
        return StaticDockerfile(contents)

    async def init(self, *, dockerfile: DockerfileModel, context: str, container_id: str,
                   stage_images: List[str], client: Any, handlers: CommandHandlers) -> LivepushSession:
        raise EngineNotConfiguredError(
            "no live-patch engine is configured; set 'engine' in the config file, "
            "pass '--engine' or export DOCKPUSH_ENGINE"
        )


# -------------------------
#
#   ENGINE FACTORY
#
# -------------------------

class EngineFactory:
    """
    Factory that imports and instantiates a live-patch engine from a path.
    """

    @staticmethod
    def create(path: Optional[str]) -> LivepushEngine:
        if not path:
            logger.debug("No engine configured, using the static engine.")
            return StaticEngine()

        module_name, sep, attr = path.partition(":")
        if not sep or not module_name or not attr:
            raise EngineLoadError(f"Engine path '{path}' must look like 'package.module:attribute'.")

        try:
            module = import_module(module_name)
        except ImportError as e:
            raise EngineLoadError(f"Cannot import engine module '{module_name}': {e}") from e

        obj = module
        for part in attr.split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError as e:
                raise EngineLoadError(f"Module '{module_name}' has no attribute '{attr}'.") from e

        engine = obj() if inspect.isclass(obj) else obj
        if not isinstance(engine, LivepushEngine):
            raise EngineLoadError(
                f"'{path}' does not provide 'dockerfile' and 'init'; it is not a live-patch engine."
            )
        logger.info(f"Using live-patch engine '{path}'.")
        return engine
