"""Error types raised by gantry."""


class GantryError(RuntimeError):
    """Base class for every fatal gantry error."""


class ConfigError(GantryError):
    """gantry.yml is missing, unreadable or invalid."""


class SourceNotFound(GantryError):
    """The directory to archive does not exist or cannot be read."""


class ArchiveFailed(GantryError):
    """Walking or reading the build context failed part way through."""


class EngineUnavailable(GantryError):
    """No Docker client could be constructed."""


class InspectIndeterminate(GantryError):
    """Inspecting the session container failed.

    Never escalated: the lifecycle manager treats it as an absent container
    and rebuilds.
    """


class BuildFailed(GantryError):
    """The image build reported an error."""


class CreateFailed(GantryError):
    """The session container could not be created."""


class StartFailed(GantryError):
    """The session container could not be started."""


class ExecSetupFailed(GantryError):
    """Creating or attaching to the exec session failed."""


class LockUnavailable(GantryError):
    """The reconcile lock file could not be opened or locked."""
