"""
Failure taxonomy for tar archive requests.

Every failure the engine reports is an ArchiveError. The subclasses also
inherit from the matching built-in exception so callers can catch either.
"""


class ArchiveError(Exception):
    """Base class for terminal archive request failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationFailure(ArchiveError):
    """Raised when the request itself is malformed (e.g. empty destination)."""

    pass


class NotFound(ArchiveError, FileNotFoundError):
    """Raised when the base directory does not exist."""

    pass


class InvalidArgument(ArchiveError, ValueError):
    """Raised when a path exists but is of the wrong kind."""

    pass


class AlreadyExists(ArchiveError, FileExistsError):
    """Raised when the destination exists and overwrite was not requested."""

    pass


class IOFailure(ArchiveError, OSError):
    """Raised on deletion, write or permission failures."""

    pass
