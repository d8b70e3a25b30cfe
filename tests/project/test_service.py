import logging
import os
from pathlib import Path

import pytest
import pytest_asyncio

from dockpush.datacls import CommandExit, CommandOutput, CommandOutputData, CommandStart, ImageTag
from dockpush.exceptions import (
    DockerfileReadError,
    MissingContainerError,
    MissingImageTagError,
    UninitializedError,
)
from dockpush.io import DiskFileSystem
from dockpush.project import Service, ServiceCommandLogger, is_within


async def resolve(settings, engine, image_tag=None, container_id=None,
                  dockerfile="Dockerfile", context=".", build_args=()):
    return await Service.resolve(
        image_tag, container_id, dockerfile, context, build_args,
        engine=engine, fs=DiskFileSystem(), cwd=settings.cwd,
    )


@pytest.fixture
def dockerfile(write_file) -> Path:
    return write_file("Dockerfile", "FROM alpine\nCOPY . /app\n")


class TestResolve:

    @pytest.mark.asyncio
    async def test_omitted_context_resolves_to_cwd(self, settings, engine, dockerfile, tmp_path):
        service = await resolve(settings, engine, image_tag=ImageTag(image="web", tag="dev"))
        assert service.context == str(tmp_path)
        assert os.path.isabs(service.context)
        assert service.name == "web"

    @pytest.mark.asyncio
    async def test_relative_context_is_made_absolute(self, settings, engine, dockerfile, tmp_path):
        service = await resolve(settings, engine, container_id="abc", context="app/../app")
        assert service.context == str(tmp_path / "app")

    @pytest.mark.asyncio
    async def test_name_falls_back_to_dockerfile_path(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, container_id="abc")
        assert service.name == "Dockerfile"

    @pytest.mark.asyncio
    async def test_dockerfile_is_parsed_by_engine(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, container_id="abc")
        assert service.dockerfile.contents == b"FROM alpine\nCOPY . /app\n"

    @pytest.mark.asyncio
    async def test_missing_dockerfile(self, settings, engine):
        with pytest.raises(DockerfileReadError) as exc:
            await resolve(settings, engine, container_id="abc", dockerfile="nope/Dockerfile")
        assert exc.value.path == "nope/Dockerfile"


class TestLivepush:

    @pytest.mark.asyncio
    async def test_requires_container(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, image_tag=ImageTag(image="web", tag="dev"))
        with pytest.raises(MissingContainerError, match="Dockerfile"):
            await service.init_livepush(client=object())
        assert engine.inits == []

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, container_id="abc")
        client = object()
        await service.init_livepush(client)
        await service.init_livepush(client)
        assert len(engine.inits) == 1
        init = engine.inits[0]
        assert init["container_id"] == "abc"
        assert init["context"] == service.context
        assert init["client"] is client
        assert init["stage_images"] == []
        assert isinstance(init["handlers"], ServiceCommandLogger)

    @pytest.mark.asyncio
    async def test_notify_before_init(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, container_id="abc")
        with pytest.raises(UninitializedError):
            await service.notify_changes(["Dockerfile"])


class TestNotifyChanges:

    @pytest_asyncio.fixture
    async def service(self, settings, engine, write_file):
        write_file("app/Dockerfile", "FROM alpine\n")
        service = await resolve(settings, engine, container_id="abc",
                                dockerfile="app/Dockerfile", context="app")
        await service.init_livepush(client=None)
        return service

    @pytest.mark.asyncio
    async def test_classifies_existing_and_deleted(self, service, engine, write_file, tmp_path):
        write_file("app/main.py", "print()")
        await service.notify_changes([str(tmp_path / "app/main.py"), "app/removed.py"])
        assert engine.sessions["abc"].applied == [
            ([str(tmp_path / "app/main.py")], [str(tmp_path / "app/removed.py")]),
        ]

    @pytest.mark.asyncio
    async def test_paths_outside_context_are_skipped(self, service, engine, write_file):
        write_file("other/main.py")
        write_file("app-sibling/main.py")
        await service.notify_changes(["other/main.py", "app-sibling/main.py", "../escape.py"])
        assert engine.sessions["abc"].applied == []

    @pytest.mark.asyncio
    async def test_summary_is_logged(self, service, write_file, caplog):
        write_file("app/a.py")
        write_file("app/b.py")
        with caplog.at_level(logging.INFO, logger="dockpush.project.service"):
            await service.notify_changes(["app/a.py", "app/b.py", "app/c.py"])
        assert "adding or updating 2 files and deleting 1 files" in caplog.text
        assert "app/a.py" not in caplog.text

    @pytest.mark.asyncio
    async def test_apply_failure_propagates(self, service, engine, write_file):
        write_file("app/a.py")
        engine.sessions["abc"].error = RuntimeError("exec failed")
        with pytest.raises(RuntimeError, match="exec failed"):
            await service.notify_changes(["app/a.py"])


class TestBuildConfiguration:

    @pytest.mark.asyncio
    async def test_requires_image_tag(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, container_id="abc")
        with pytest.raises(MissingImageTagError, match="missing image and tag for 'Dockerfile'"):
            await service.build_configuration()

    @pytest.mark.asyncio
    async def test_ignore_rules_filter_context_relative_paths(self, settings, engine, write_file):
        write_file("svc/Dockerfile", "FROM alpine\n")
        write_file("svc/a.txt")
        write_file("svc/b/log.txt")
        write_file("svc/.dockerignore", "*.txt\n!a.txt\n")
        service = await resolve(settings, engine, image_tag=ImageTag(image="svc", tag="1"),
                                dockerfile="svc/Dockerfile", context="svc", build_args=["A=1"])
        configuration = await service.build_configuration()
        assert "a.txt" in configuration.file_paths
        assert "b/log.txt" not in configuration.file_paths
        assert "Dockerfile" in configuration.file_paths
        assert configuration.relative_context == "svc"
        assert configuration.dockerfile == "# live\nFROM alpine\n"
        assert configuration.build_args == ["A=1"]
        assert configuration.image_tag.reference == "svc:1"

    @pytest.mark.asyncio
    async def test_relative_context_of_cwd_is_dot(self, settings, engine, dockerfile):
        service = await resolve(settings, engine, image_tag=ImageTag(image="web", tag="dev"))
        configuration = await service.build_configuration()
        assert configuration.relative_context == "."
        assert configuration.file_paths == ["Dockerfile"]


class TestCommandLogger:

    def test_events_are_logged_with_service_name(self, caplog):
        handlers = ServiceCommandLogger("web")
        with caplog.at_level(logging.INFO, logger="dockpush.project.service"):
            handlers.on_command_start(CommandStart(stage_index=0, command="pip install -r req.txt"))
            handlers.on_command_output(CommandOutput(
                stage_index=0, output=CommandOutputData(data=b"Collecting\n", is_stderr=True)))
            handlers.on_command_exit(CommandExit(stage_index=0, command="pip install", return_code=0))
        assert "web: running 'pip install -r req.txt'" in caplog.text
        assert "web: Collecting" in caplog.text
        assert "failed" not in caplog.text

    def test_non_zero_exit_is_reported(self, caplog):
        handlers = ServiceCommandLogger("web")
        with caplog.at_level(logging.INFO, logger="dockpush.project.service"):
            handlers.on_command_exit(CommandExit(stage_index=1, command="make", return_code=2))
        assert "web: command 'make' failed with code 2" in caplog.text


@pytest.mark.parametrize("path, inside", [
    ("/work/app", True),
    ("/work/app/src/main.py", True),
    ("/work/app/../app/x", True),
    ("/work/application/x", False),
    ("/work/other/x", False),
    ("/elsewhere", False),
])
def test_is_within(path, inside):
    assert is_within("/work/app", os.path.normpath(path)) is inside
