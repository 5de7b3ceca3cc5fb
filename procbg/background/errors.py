"""Exception types raised by the background process package."""


class ProcBackgroundError(Exception):
    """Base class for all procbg errors."""


class ConfigurationError(ProcBackgroundError, ValueError):
    """Invalid or mutually exclusive options. Raised before any OS call is made."""


class ResolutionError(ProcBackgroundError):
    """The executable could not be located or is not executable."""


class CreationError(ProcBackgroundError):
    """The OS refused to create the process or one of its streams could not be bound."""


class ReapContractError(ProcBackgroundError, RuntimeError):
    """The OS wait primitive reported an outcome the lifecycle does not know how to handle."""
