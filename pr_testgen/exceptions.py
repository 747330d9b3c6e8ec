"""Exception types raised by pr-testgen."""


class PrTestgenError(Exception):
    """Base class for all pr-testgen errors."""


class AnalysisError(PrTestgenError):
    """The pull request cannot be analyzed at all.

    Raised when the pull request or its list of changed files cannot be
    read.
    """
