class EbookError(Exception):
    """Base class for errors raised by the ebook engine."""

    status_code = 500


class ValidationError(EbookError):
    status_code = 400


class NotFound(EbookError):
    status_code = 404


class DependencyUnavailable(EbookError):
    """Object storage is not configured or could not be reached."""

    status_code = 424


class ConflictOrRace(EbookError):
    """
    A media key was referenced again while its deletion was pending.
    Raised and handled inside the reaper; never reaches a caller.
    """

    status_code = 409


class InvariantViolation(EbookError):
    status_code = 500
