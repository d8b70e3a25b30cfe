class DockpushError(Exception):
    """Base exception for all application-specific errors."""

    pass


# --- 1. Errors related to declarations, config files and CLI fragments ---
class ConfigurationError(DockpushError):
    """Base class for errors raised before any Docker or compose I/O happens."""

    pass


class FragmentParseError(ConfigurationError):
    """Raised when a `--dockerfile` value does not have enough fields."""

    pass


class NoProjectError(ConfigurationError):
    """Raised when no compose file was found and no fragments were given."""

    pass


class ConfigFileMissingError(ConfigurationError):
    """Raised when an explicitly requested configuration file cannot be found."""

    pass


class ConfigParsingError(ConfigurationError):
    """Raised when a YAML configuration file is syntactically incorrect."""

    pass


class ConfigValidationError(ConfigurationError):
    """Raised when the configuration fails structural validation (e.g., Pydantic)."""

    pass


# --- 2. Errors reported by external tools ---
class ExternalToolError(DockpushError):
    """Base class for non-zero exits of the compose interpreter."""

    def __init__(self, message: str, command: str | None = None):
        super().__init__(message)
        self.command = command


class ComposeConfigError(ExternalToolError):
    """Raised when `compose config` fails."""

    pass


class ComposePsError(ExternalToolError):
    """Raised when `compose ps` fails for a service."""

    pass


# --- 3. Filesystem errors ---
class FilesystemError(DockpushError):
    """Base class for read failures on dockerfiles and ignore files."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class DockerfileReadError(FilesystemError):
    """Raised when a Dockerfile cannot be read."""

    pass


class IgnoreFileReadError(FilesystemError):
    """Raised when a `.dockerignore` exists but cannot be read."""

    pass


# --- 4. Operations attempted on a service that cannot perform them ---
class ScopeError(DockpushError):
    """Base class for operations on services lacking a required attribute."""

    def __init__(self, message: str, service: str | None = None):
        super().__init__(message)
        self.service = service


class MissingContainerError(ScopeError):
    """Raised when pushing to a service that has no container."""

    pass


class MissingImageTagError(ScopeError):
    """Raised when building a service that has no image and tag."""

    pass


class UninitializedError(ScopeError):
    """Raised when changes are notified before `init_livepush`."""

    pass


# --- 5. Errors that occur while building images ---
class BuildError(DockpushError):
    """Base class for errors reported by the image build."""

    pass


class BuildFailedError(BuildError):
    """Raised when the build progress stream reports an error."""

    pass


class BuildTimeoutError(BuildError):
    """Raised when the build progress stream stays silent for too long."""

    pass


# --- 6. Live-patch engine errors ---
class EngineError(DockpushError):
    """Base class for live-patch engine problems."""

    pass


class EngineLoadError(EngineError):
    """Raised when an engine path cannot be imported or is not an engine."""

    pass


class EngineNotConfiguredError(EngineError):
    """Raised when pushing without a live-patch engine."""

    pass
