# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "svc": "dockpush.project.service",
    "service": "dockpush.project.service",
    "prj": "dockpush.project.project",
    "project": "dockpush.project.project",
    "compose": "dockpush.project.compose",
    "cmp": "dockpush.project.compose",
    "bld": "dockpush.workflows.build",
    "build": "dockpush.workflows.build",
    "push": "dockpush.workflows.push",
    "io": "dockpush.io",
    "fs": "dockpush.io.fs",
    "ign": "dockpush.io.ignore",
    "conf": "dockpush.config",
    "eng": "dockpush.factories",
}

# Top-level modules within dockpush for auto-prefixing
KNOWN_TOP_MODULES = {
    "project",
    "workflows",
    "io",
    "datacls",
    "utils",
    "exceptions",
    "config",
    "factories",
    "cli",
}

LOG_LEVELS_ENV = "DOCKPUSH_LOG_LEVELS"
ENGINE_ENV = "DOCKPUSH_ENGINE"

# --- Filenames ---
DOCKERIGNORE_FILENAME = ".dockerignore"
DOCKER_COMPOSE_FILENAME = "docker-compose.yml"
CONFIG_FILENAME = ".dockpush.yml"
# Name of the synthetic archive entry holding the live Dockerfile
ARCHIVE_DOCKERFILE_NAME = "Dockerfile"

# --- Defaults ---
DEFAULT_CONTEXT = "."
DEFAULT_COMPOSE_TAG = "latest"
# Seconds without a build progress event before the build is declared hung
DEFAULT_BUILD_TIMEOUT = 600.0
# Build archives larger than this many bytes are spooled to a temporary file
ARCHIVE_SPOOL_SIZE = 64 * 1024 * 1024

# --- Fragment grammar ---
FRAGMENT_SEPARATOR = ":"
IMAGE_TAG_MIN_FIELDS = 3
CONTAINER_MIN_FIELDS = 2
