import pytest

from dockpush.exceptions import MissingContainerError
from dockpush.workflows import PushOrchestrator


class RecordingProject:
    def __init__(self, init_error=None):
        self.calls = []
        self.init_error = init_error

    def __len__(self):
        return 1

    async def init_livepush(self, client):
        self.calls.append(("init", client))
        if self.init_error is not None:
            raise self.init_error

    async def notify_changes(self, paths):
        self.calls.append(("notify", list(paths)))


@pytest.mark.asyncio
async def test_sessions_start_before_changes_are_sent():
    project = RecordingProject()
    client = object()
    await PushOrchestrator(project, client).run(["src/main.py"])
    assert project.calls == [("init", client), ("notify", ["src/main.py"])]


@pytest.mark.asyncio
async def test_init_failure_stops_the_push():
    project = RecordingProject(init_error=MissingContainerError("no container", service="web"))
    with pytest.raises(MissingContainerError):
        await PushOrchestrator(project, None).run(["src/main.py"])
    assert [name for name, _ in project.calls] == ["init"]
