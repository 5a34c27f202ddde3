"""Error kinds raised below the route layer.

Routes translate these into ``{"error": message}`` responses with the
status code that fits the endpoint.
"""


class StorageError(Exception):
    """A database operation failed or the database is not connected."""


class AuthError(Exception):
    """Seller credentials are missing, unknown or do not match."""


class UploadRejected(Exception):
    """An uploaded file is not an allowed image or video, or was sent under the wrong field."""
