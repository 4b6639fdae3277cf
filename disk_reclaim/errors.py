"""Exception hierarchy for disk-reclaim."""


class ReclaimError(Exception):
    """Base class for every error raised by disk-reclaim."""


class CommandError(ReclaimError, RuntimeError):
    """A PowerShell or external command exited unsuccessfully."""


class PreconditionError(ReclaimError):
    """A check that must pass before any destructive stage runs has failed."""


class ConfigError(PreconditionError):
    pass


class RemotingUnavailableError(PreconditionError):
    """The remote target cannot be reached over PowerShell remoting."""


class FreeSpaceError(PreconditionError):
    """Free space on the target volume could not be determined."""
