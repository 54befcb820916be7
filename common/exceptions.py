"""Exception classes shared by the gallery core and the CLI."""


class GalleryError(Exception):
    """
    Base exception class for all gallery uploader errors.
    """
    pass


class ConfigurationError(GalleryError):
    """
    Raised when the upload API endpoint or key is not configured.
    Always raised before any network attempt.
    """
    pass


class ConnectivityError(GalleryError):
    """
    Raised when the upload API cannot be reached (connection refused, timeout).
    """
    pass


class ValidationError(GalleryError):
    """
    Raised when a request is rejected locally (blank title, bad index, unknown id).
    """
    pass


class RemoteError(GalleryError):
    """
    Raised when the upload API answers with a non-2xx status.
    The message is the server-supplied error text, verbatim when available.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteError):
    """
    Raised when a file or category does not exist.
    """
    pass


class DuplicateError(RemoteError):
    """
    Raised when creating a category whose title is already taken.
    """
    pass


class ForbiddenError(RemoteError):
    """
    Raised when the upload key is rejected or a default category is deleted.
    """
    pass
