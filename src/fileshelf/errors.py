"""Error taxonomy for fileshelf.

Every error carries the HTTP status it maps to. The server middleware turns
them into plain-text responses; 5xx errors are logged as server faults.
"""


class FileshelfError(Exception):
    """Base class for all fileshelf errors."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidPath(FileshelfError):
    """Path is malformed or escapes the storage root."""

    status = 400


class InvalidCustomPath(FileshelfError):
    """Custom path has a disallowed format or collides with a reserved route."""

    status = 400


class AlreadyExists(FileshelfError):
    """Custom path is already bound."""

    status = 409


class SourceNotFound(FileshelfError):
    """Alias target does not exist."""

    status = 404


class NotFound(FileshelfError):
    """Requested file or directory does not exist."""

    status = 404


class NotAFile(FileshelfError):
    """Operation requires a regular file but got a directory."""

    status = 400


class InvalidSearchTerm(FileshelfError):
    status = 400


class TermTooLong(InvalidSearchTerm):
    status = 400


class InvalidUpload(FileshelfError):
    """Upload request is not a usable multipart form."""

    status = 400


class UploadIncomplete(FileshelfError):
    """Upload stream ended before the announced length."""

    status = 400


class UploadTooLarge(FileshelfError):
    status = 413


class ReadOnlyMode(FileshelfError):
    status = 403


class RateLimited(FileshelfError):
    status = 429


class WriteFailure(FileshelfError):
    """Disk fault while writing an upload."""

    status = 500


class StorageFailure(FileshelfError):
    """Disk fault while reading or writing internal state."""

    status = 500


class SearchCancelled(Exception):
    """Search was abandoned by the caller.

    Not a FileshelfError: cancellation is a clean early stop, not a failure.
    """
