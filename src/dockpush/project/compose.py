import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from python_on_whales import DockerClient
from python_on_whales.exceptions import DockerException

from ..exceptions import ComposeConfigError, ComposePsError

logger = logging.getLogger(__name__)


def _describe(paths: Sequence[str], *args: str) -> str:
    files = " ".join(f"-f {p}" for p in paths)
    return " ".join(part for part in ("docker compose", files, *args) if part)


class ComposeInterpreter:
    """
    Runs `docker compose config` and `docker compose ps` through python-on-whales.

    All compose files are always passed together so compose applies its own
    override and merge rules across them.
    """

    def __init__(self, cwd: str, client_factory: Optional[Callable[..., Any]] = None):
        self.cwd = cwd
        self.client_factory = client_factory or DockerClient

    def _client(self, paths: Sequence[str]):
        return self.client_factory(
            compose_files=list(paths),
            compose_project_directory=self.cwd,
        )

    async def config(self, paths: Sequence[str]) -> Dict[str, Any]:
        """Return the normalized compose model (`services`, `networks`, ...)."""
        command = _describe(paths, "config")
        logger.debug(f"Running '{command}'")
        try:
            config = await asyncio.to_thread(self._client(paths).compose.config, return_json=True)
        except DockerException as e:
            raise ComposeConfigError(
                f"failed to run '{command}' (exit code {e.return_code}): {e.stderr or e}",
                command=command,
            ) from e
        if not isinstance(config, dict):
            raise ComposeConfigError(f"'{command}' did not return a mapping", command=command)
        return config

    async def ps(self, paths: Sequence[str], service: str) -> Optional[str]:
        """Return the id of the running container of `service`, or None."""
        command = _describe(paths, "ps", "--quiet", "--", service)
        logger.debug(f"Running '{command}'")
        try:
            containers: List[Any] = await asyncio.to_thread(
                self._client(paths).compose.ps, services=[service]
            )
        except DockerException as e:
            raise ComposePsError(
                f"failed to run '{command}' (exit code {e.return_code}): {e.stderr or e}",
                command=command,
            ) from e
        if not containers:
            return None
        container_id = str(containers[0].id).strip()
        return container_id or None
