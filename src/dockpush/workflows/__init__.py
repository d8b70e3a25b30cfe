from .build import BuildOrchestrator, pack_context, parse_build_args
from .push import PushOrchestrator

__all__ = [
    'BuildOrchestrator',
    'PushOrchestrator',
    'pack_context',
    'parse_build_args',
]
