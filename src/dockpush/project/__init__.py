"""
Dockpush Project Module

- Service: one Dockerfile, its context and optional image tag / container
- Project: merges declaration fragments into services and fans out work
- ComposeInterpreter: `compose config` / `compose ps` via python-on-whales
"""

from .service import Service, ServiceCommandLogger, is_within
from .project import Project, normalize_build_args
from .compose import ComposeInterpreter

__all__ = [
    'Service',
    'ServiceCommandLogger',
    'is_within',
    'Project',
    'normalize_build_args',
    'ComposeInterpreter',
]
