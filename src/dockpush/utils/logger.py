import logging
import os
import sys
from typing import Mapping

import colorlog

from .. import constants

_LOG_COLORS = {
    'DEBUG': 'blue',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'bold_red',
}


def _console_handler(env: Mapping[str, str]) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    # https://no-color.org/
    if sys.stderr.isatty() and not env.get("NO_COLOR"):
        handler.setFormatter(colorlog.ColoredFormatter(
            '%(log_color)s%(levelname)-7s%(reset)s %(blue)s%(name)s%(reset)s %(message)s',
            log_colors=_LOG_COLORS,
        ))
    else:
        handler.setFormatter(logging.Formatter('%(levelname)-7s %(name)s %(message)s'))
    return handler


def _file_handler(log_file: str) -> logging.Handler | None:
    try:
        handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    except OSError as e:
        logging.error(f"Cannot write log file '{log_file}': {e}")
        return None
    handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)-7s %(name)s %(message)s', datefmt='%H:%M:%S'
    ))
    return handler


def setup_logger(debug: bool = False, module_levels: dict | None = None, log_file: str | None = None,
                 env: Mapping[str, str] | None = None):
    """
    Configure the root logger: colored console output, an optional log file
    and per-module levels.

    Args:
        debug: Log at DEBUG instead of INFO
        module_levels: Mapping of module name or alias to level name
        log_file: Also write the full log to this file
        env: Where NO_COLOR and DOCKPUSH_LOG_LEVELS are looked up (default: os.environ)
    """
    env = os.environ if env is None else env
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # Called again once the config file is read; only levels change then
    if not root.handlers:
        root.addHandler(_console_handler(env))
        file_handler = _file_handler(log_file) if log_file else None
        if file_handler is not None:
            root.addHandler(file_handler)
            logging.debug(f"Writing log to '{log_file}'")

    _apply_module_levels(module_levels, env)


def parse_module_levels(spec: str | None) -> dict | None:
    """Parse `name=LEVEL,name=LEVEL` into a mapping, skipping malformed pairs."""
    if not spec:
        return None
    levels = {}
    for item in spec.split(','):
        name, sep, level = item.partition('=')
        if sep and name.strip():
            levels[name.strip()] = level.strip().upper()
    return levels


def _apply_module_levels(module_levels: dict | None, env: Mapping[str, str]):
    """Set logger levels from `module_levels`, or from DOCKPUSH_LOG_LEVELS when none are given.

    e.g. DOCKPUSH_LOG_LEVELS="svc=DEBUG,dockpush.workflows.build=INFO"
    """
    if module_levels is None:
        module_levels = parse_module_levels(env.get(constants.LOG_LEVELS_ENV))

    for name, level_name in (module_levels or {}).items():
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            logging.warning(f"Ignoring unknown log level '{level_name}' for '{name}'")
            continue
        logging.getLogger(_normalize_module_name(name)).setLevel(level)


def _normalize_module_name(name: str) -> str:
    """Expand aliases (`svc`), drop a trailing `.*` and add the `dockpush.` prefix to known modules."""
    if name in constants.LOG_ALIAS_MAP:
        return constants.LOG_ALIAS_MAP[name]
    name = name.removesuffix('.*')
    top = name.split('.', 1)[0]
    if top != 'dockpush' and top in constants.KNOWN_TOP_MODULES:
        return f'dockpush.{name}'
    return name
