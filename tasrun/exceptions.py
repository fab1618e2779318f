"""Custom exception hierarchy for tasrun."""


class TasError(Exception):
    """Base for all tasrun errors."""


class UnknownBuiltinError(TasError):
    """A program names a builtin that is not in the registry."""


class InvalidComparatorError(TasError):
    """A comparison builtin was given a comparator outside the closed set."""


class InvalidInstructionError(TasError):
    """A condition cell cannot be turned into an instruction."""


class InvalidKeyCodeError(TasError):
    """An input string contains a character that maps to no channel."""


class MissingOptimizerArgumentError(TasError):
    """`optimize` was invoked without all five required arguments."""


class ProgramFileError(TasError):
    """A program or recording file exists but is malformed."""


class OverlayUnavailableError(TasError):
    """The host has no overlay simulation to query."""
