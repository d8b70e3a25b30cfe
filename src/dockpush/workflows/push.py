import logging
from typing import Any, Sequence

from ..project import Project

logger = logging.getLogger(__name__)


class PushOrchestrator:
    """Starts a live-patch session per service and hands it one batch of changes."""

    def __init__(self, project: Project, client: Any):
        self.project = project
        self.client = client

    async def run(self, paths: Sequence[str]) -> None:
        logger.debug(f"Pushing {len(paths)} changed path(s) to {len(self.project)} service(s)")
        await self.project.init_livepush(self.client)
        await self.project.notify_changes(paths)
