import asyncio
import logging
import os
import traceback
from typing import Callable, List, Sequence

import click
import docker
from docker.errors import DockerException

from .config import Config, Settings
from .datacls import (
    ComposeFragment,
    DockerfileContainerFragment,
    DockerfileImageTagFragment,
    ProjectFragment,
)
from .exceptions import (
    BuildError,
    ConfigurationError,
    DockpushError,
    EngineError,
    ExternalToolError,
    FilesystemError,
    FragmentParseError,
    NoProjectError,
    ScopeError,
)
from .factories import EngineFactory
from .io import DiskFileSystem, file_exists
from .project import Project
from .utils import parse_module_levels, setup_logger
from .workflows import BuildOrchestrator, PushOrchestrator
from . import __version__


def setup_logging(debug: bool, log_levels: str | None = None, log_file: str | None = None):
    """Setup logger with debug and module-level configuration"""
    setup_logger(debug=debug, module_levels=parse_module_levels(log_levels), log_file=log_file)


def _abort(prefix: str, e: Exception):
    logging.error(f"{prefix}: {e}")
    ctx = click.get_current_context()
    if ctx.obj.get('debug'):
        traceback.print_exc()
    raise click.Abort()


def handle_errors(func):
    """Decorator to handle common exceptions"""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            _abort("Configuration error", e)
        except ExternalToolError as e:
            _abort("Compose error", e)
        except FilesystemError as e:
            _abort("File error", e)
        except ScopeError as e:
            _abort("Service error", e)
        except BuildError as e:
            _abort("Build error", e)
        except EngineError as e:
            _abort("Live-patch engine error", e)
        except DockpushError as e:
            _abort("An unexpected application error occurred", e)
        except DockerException as e:
            _abort("Docker error", e)
    return wrapper


def _fragment_option(parse: Callable[[str], ProjectFragment]):
    def callback(ctx, param, values) -> List[ProjectFragment]:
        try:
            return [parse(value) for value in values]
        except FragmentParseError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param)
    return callback


def load_settings(config_file: str | None, engine: str | None = None,
                  build_timeout: float | None = None) -> Settings:
    """The only place that reads the process working directory and environment."""
    config = Config(os.getcwd(), os.environ, config_file)
    settings = config.settings(engine=engine, build_timeout=build_timeout)
    file_levels = parse_module_levels(settings.log_levels)
    if file_levels:
        obj = click.get_current_context().obj
        # -l/--log-levels was applied first and must still win
        cli_levels = parse_module_levels(obj.get('log_levels')) or {}
        setup_logger(debug=obj.get('debug', False), module_levels=file_levels)
        if cli_levels:
            setup_logger(debug=obj.get('debug', False), module_levels=cli_levels)
    return settings


def project_fragments(settings: Settings, compose_files: Sequence[str],
                      dockerfiles: Sequence[ProjectFragment]) -> List[ProjectFragment]:
    fragments: List[ProjectFragment] = [ComposeFragment(compose_path=p) for p in compose_files]
    fragments.extend(dockerfiles)
    if fragments:
        return fragments
    default = settings.resolve(settings.default_compose_file)
    if file_exists(DiskFileSystem(), default):
        logging.info(f"Using compose file '{settings.default_compose_file}'")
        return [ComposeFragment(compose_path=settings.default_compose_file)]
    raise NoProjectError(
        f"could not find a `{settings.default_compose_file}` and neither "
        "`--compose-file` nor `--dockerfile` were specified"
    )


@handle_errors
def do_build(settings: Settings, compose_files: Sequence[str],
             dockerfiles: Sequence[ProjectFragment], build_args: Sequence[str]):
    """Execute build command"""
    fragments = project_fragments(settings, compose_files, dockerfiles)
    engine = EngineFactory.create(settings.engine)

    async def run():
        project = await Project.assemble(fragments, settings=settings, engine=engine)
        client = docker.from_env()
        await BuildOrchestrator(project, client, settings).run(build_args)

    asyncio.run(run())


@handle_errors
def do_push(settings: Settings, compose_files: Sequence[str],
            dockerfiles: Sequence[ProjectFragment], paths: Sequence[str]):
    """Execute push command"""
    fragments = project_fragments(settings, compose_files, dockerfiles)
    engine = EngineFactory.create(settings.engine)

    async def run():
        project = await Project.assemble(fragments, settings=settings, engine=engine)
        client = docker.from_env()
        await PushOrchestrator(project, client).run(paths)

    asyncio.run(run())


compose_option = click.option(
    '-c', '--compose-file', 'compose_files', multiple=True, metavar='PATH',
    help='Use the given compose file. May be specified multiple times. If not specified, '
         'defaults to `docker-compose.yml` if it exists in the current directory.'
)
config_option = click.option(
    '--config', 'config_file', metavar='PATH',
    help='Configuration file (default: .dockpush.yml in the current directory, if present)'
)
engine_option = click.option(
    '-e', '--engine', metavar='MODULE:ATTR',
    help='Live-patch engine to use, e.g. `mypkg.livepush:Engine`'
)


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('-l', '--log-levels', help="Comma-separated per-module log levels (e.g., 'svc=DEBUG,bld=INFO')")
@click.option('-f', '--log-file', help='Path to log file')
@click.version_option(version=__version__, prog_name='dockpush')
@click.pass_context
def cli(ctx, debug, log_levels, log_file):
    """dockpush - build compose projects and live-push changes into running containers

    \b
    Examples:
      dockpush build                                  Build every service of docker-compose.yml
      dockpush build -d app:dev:Dockerfile:./app      Build one image from a Dockerfile
      dockpush push src/main.py src/util.py           Push changed files to running containers
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    ctx.obj['log_levels'] = log_levels
    setup_logging(debug, log_levels, log_file)


@cli.command()
@compose_option
@click.option(
    '-d', '--dockerfile', 'dockerfiles', multiple=True, metavar='IMAGE:TAG:DOCKERFILE[:CONTEXT]',
    callback=_fragment_option(DockerfileImageTagFragment.parse),
    help='Use the given image, tag, Dockerfile and context, where the context is optional '
         'and defaults to `.`. May be specified multiple times.'
)
@click.option(
    '--build-arg', 'build_args', multiple=True, metavar='KEY[=VALUE]',
    help='Set the given build argument during build. If `value` is omitted it is taken from '
         'the environment. May be specified multiple times.'
)
@click.option('--build-timeout', type=click.FloatRange(min=0, min_open=True),
              help='Seconds without build output before a build is declared hung')
@config_option
@engine_option
@click.pass_context
def build(ctx, compose_files, dockerfiles, build_args, build_timeout, config_file, engine):
    """Build the images of all services

    \b
    Examples:
      dockpush build -c docker-compose.yml -c docker-compose.dev.yml
      dockpush build -d web:latest:web/Dockerfile:web --build-arg VERSION=1.2
    """
    settings = handle_errors(load_settings)(config_file, engine, build_timeout)
    do_build(settings, compose_files, dockerfiles, build_args)


@cli.command()
@click.argument('paths', nargs=-1, required=True)
@compose_option
@click.option(
    '-d', '--dockerfile', 'dockerfiles', multiple=True, metavar='CONTAINER:DOCKERFILE[:CONTEXT]',
    callback=_fragment_option(DockerfileContainerFragment.parse),
    help='Use the given container ID, Dockerfile and context, where the context is optional '
         'and defaults to `.`. May be specified multiple times.'
)
@config_option
@engine_option
@click.pass_context
def push(ctx, paths, compose_files, dockerfiles, config_file, engine):
    """Push changed files to the running containers of all services

    \b
    Examples:
      dockpush push app/main.py
      dockpush push -d 3f2a1b:Dockerfile:. src/handler.py
    """
    settings = handle_errors(load_settings)(config_file, engine)
    do_push(settings, compose_files, dockerfiles, paths)
