"""
Exception classes for the offline inventory core.

Everything that can reach the UI is an HTTPException so routers can let it
propagate; SchemaVersionConflict stays inside the local store.
"""

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message
        )


class NotFoundError(HTTPException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type} not found: {resource_id}",
        )


class DatabaseError(HTTPException):
    """Raised when a local store operation fails."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message
        )


class StorageUnavailable(HTTPException):
    """
    The local database cannot be opened at all.
    Offline features are unusable until the store is reset.
    """

    def __init__(self, message: str = "Local storage is unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message
        )


class QueueWriteFailure(DatabaseError):
    """Enqueuing an offline save failed; the save must be reported as failed."""

    def __init__(self, message: str = "Failed to queue records for sync"):
        super().__init__(message)


class NetworkError(HTTPException):
    """The remote data service could not be reached."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Network error: {message}",
        )


class ServiceError(HTTPException):
    """The remote data service answered with an error."""

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Remote service error: {message}",
        )
        self.upstream_status = upstream_status


class SchemaVersionConflict(Exception):
    """The on-disk schema is newer than any version this code knows."""

    def __init__(self, found: int, supported: int):
        super().__init__(
            f"Local schema version {found} is newer than supported version {supported}"
        )
        self.found = found
        self.supported = supported
