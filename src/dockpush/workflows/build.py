import asyncio
import io
import logging
import os
import queue
import tarfile
import tempfile
import threading
from typing import IO, Any, Callable, Dict, Iterable, Iterator, Mapping, Optional, Sequence

import click
import requests
from docker.errors import DockerException

from .. import constants
from ..config import Settings
from ..datacls import BuildConfiguration
from ..exceptions import BuildFailedError, BuildTimeoutError
from ..io import DiskFileSystem, FileSystem
from ..project import Project

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

_END = object()


def parse_build_args(raw: Iterable[str], env: Mapping[str, str]) -> Dict[str, str]:
    """
    Turn `key=value` / `key` strings into a mapping. A bare key takes its
    value from `env`, or the empty string when it is not set there.
    """
    args: Dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        args[key] = value if sep else env.get(key, "")
    return args


def pack_context(fs: FileSystem, configuration: BuildConfiguration,
                 progress: Optional[ProgressCallback] = None) -> IO[bytes]:
    """
    Tar the filtered context files and add the live Dockerfile as a synthetic
    `Dockerfile` entry, replacing any context file of that name.

    The archive is kept in memory up to ARCHIVE_SPOOL_SIZE bytes and rolls
    over to a temporary file beyond that. The caller closes it.
    """
    archive = tempfile.SpooledTemporaryFile(max_size=constants.ARCHIVE_SPOOL_SIZE)
    paths = [p for p in configuration.file_paths if p != constants.ARCHIVE_DOCKERFILE_NAME]
    total = len(paths)
    with tarfile.open(fileobj=archive, mode="w") as tar:
        for sent, rel in enumerate(paths):
            if progress:
                progress(sent, total)
            full_path = os.path.join(configuration.context, rel)
            data = fs.read_bytes(full_path)
            meta = fs.info(full_path)
            info = tarfile.TarInfo(rel.replace(os.sep, "/"))
            info.size = len(data)
            info.mode = int(meta.get("mode") or 0o644) & 0o7777
            mtime = meta.get("mtime")
            # in-memory filesystems report no mtime, or a datetime
            info.mtime = int(mtime) if isinstance(mtime, (int, float)) else 0
            tar.addfile(info, io.BytesIO(data))
        if progress:
            progress(total, total)

        dockerfile = configuration.dockerfile.encode("utf-8")
        info = tarfile.TarInfo(constants.ARCHIVE_DOCKERFILE_NAME)
        info.size = len(dockerfile)
        info.mode = 0o644
        tar.addfile(info, io.BytesIO(dockerfile))
    archive.seek(0)
    return archive


def _echo_progress(sent: int, total: int) -> None:
    click.echo(f"\rSending files {sent}/{total}", nl=sent == total, err=True)


def _read_events(stream: Iterable[Dict[str, Any]], results: "queue.Queue[Any]") -> None:
    """Drain `stream` into `results`, ending with _END or the exception that stopped it."""
    try:
        for event in stream:
            results.put(event)
    except Exception as e:
        results.put(e)
    else:
        results.put(_END)


class BuildOrchestrator:
    """
    Builds every service image of a project, one after the other so build
    output stays readable.
    """

    def __init__(self, project: Project, client: Any, settings: Settings,
                 fs: Optional[FileSystem] = None, progress: Optional[ProgressCallback] = _echo_progress):
        self.project = project
        self.client = client
        self.settings = settings
        self.fs = fs or DiskFileSystem()
        self.progress = progress

    async def run(self, build_args: Sequence[str] = ()) -> None:
        cli_args = parse_build_args(build_args, self.settings.env)
        configurations = await self.project.build_configurations()
        for configuration in configurations:
            await self.build(configuration, cli_args)
        logger.info(f"Built {len(configurations)} image(s).")

    async def build(self, configuration: BuildConfiguration, cli_args: Mapping[str, str]) -> None:
        reference = configuration.image_tag.reference
        logger.info(f"Building {reference}")
        build_args = parse_build_args(configuration.build_args, self.settings.env)
        build_args.update(cli_args)

        archive = await asyncio.to_thread(pack_context, self.fs, configuration, self.progress)
        try:
            await self.follow_progress(self._start_build(archive, reference, build_args), reference)
        finally:
            archive.close()

    def _start_build(self, archive: IO[bytes], reference: str,
                     build_args: Dict[str, str]) -> Iterator[Dict[str, Any]]:
        # A generator, so the request is sent from the reader thread
        yield from self.client.api.build(
            fileobj=archive,
            custom_context=True,
            tag=reference,
            buildargs=build_args,
            rm=True,
            decode=True,
            timeout=self.settings.build_timeout,
        )

    async def follow_progress(self, stream: Iterable[Dict[str, Any]], reference: str) -> None:
        """
        Echo build output until the stream ends. Exactly one outcome is
        produced: return on a clean end, BuildFailedError on an error event,
        BuildTimeoutError if no event arrives within the build timeout.

        The stream is read on a daemon thread, so a daemon that never answers
        cannot keep the process alive after the timeout.
        """
        results: "queue.Queue[Any]" = queue.Queue()
        reader = threading.Thread(target=_read_events, args=(stream, results),
                                  name=f"build-events-{reference}", daemon=True)
        reader.start()

        timeout = self.settings.build_timeout
        while True:
            try:
                event = await asyncio.to_thread(results.get, True, timeout)
            except queue.Empty:
                raise BuildTimeoutError(
                    f"build of {reference} produced no progress for {timeout:g} seconds"
                ) from None
            if event is _END:
                return
            if isinstance(event, requests.exceptions.Timeout):
                raise BuildTimeoutError(f"build of {reference} timed out: {event}") from event
            if isinstance(event, (DockerException, requests.exceptions.RequestException, OSError)):
                raise BuildFailedError(f"build of {reference} failed: {event}") from event
            if isinstance(event, Exception):
                raise event
            if "error" in event or "errorDetail" in event:
                detail = event.get("errorDetail") or {}
                message = event.get("error") or detail.get("message") or "unknown error"
                raise BuildFailedError(f"build of {reference} failed: {message}")
            if "stream" in event:
                click.echo(event["stream"], nl=False)
            elif "status" in event:
                logger.debug(f"{reference}: {event['status']}")
            elif "aux" in event:
                logger.debug(f"{reference}: {event['aux']}")
