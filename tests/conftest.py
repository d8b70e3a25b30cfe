from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from dockpush.config import Settings


class FakeDockerfile:
    def __init__(self, contents: bytes):
        self.contents = contents

    def generate_live_dockerfile(self) -> str:
        return "# live\n" + self.contents.decode("utf-8")


class FakeSession:
    def __init__(self, handlers):
        self.handlers = handlers
        self.applied: List[tuple] = []
        self.error: Optional[Exception] = None

    async def apply(self, added_or_updated: Sequence[str], deleted: Sequence[str]) -> None:
        if self.error is not None:
            raise self.error
        self.applied.append((list(added_or_updated), list(deleted)))


class FakeEngine:
    """Records `init` calls and hands out one FakeSession per container."""

    def __init__(self):
        self.inits: List[Dict[str, Any]] = []
        self.sessions: Dict[str, FakeSession] = {}

    def dockerfile(self, contents: bytes) -> FakeDockerfile:
        return FakeDockerfile(contents)

    async def init(self, *, dockerfile, context, container_id, stage_images, client, handlers):
        self.inits.append(dict(
            dockerfile=dockerfile,
            context=context,
            container_id=container_id,
            stage_images=stage_images,
            client=client,
            handlers=handlers,
        ))
        session = FakeSession(handlers)
        self.sessions[container_id] = session
        return session


class FakeCompose:
    """Stands in for ComposeInterpreter with a fixed `config` result."""

    def __init__(self, config: Dict[str, Any], containers: Optional[Dict[str, str]] = None):
        self._config = config
        self.containers = containers or {}
        self.config_calls: List[List[str]] = []
        self.ps_calls: List[tuple] = []

    async def config(self, paths):
        self.config_calls.append(list(paths))
        return self._config

    async def ps(self, paths, service):
        self.ps_calls.append((list(paths), service))
        return self.containers.get(service)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(cwd=str(tmp_path), env={})


@pytest.fixture
def write_file(tmp_path: Path):
    """Create a file below tmp_path, making parent directories."""
    def _write(rel: str, content: str = "") -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
    return _write


@pytest.fixture
def fake_compose():
    """The FakeCompose class, so tests can build one with their own compose model."""
    return FakeCompose
