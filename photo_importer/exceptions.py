"""
Custom exception hierarchy for the photo importer.

Per-file problems derive from PhotoImporterError so the orchestrator can turn
them into a failed result and carry on with the next file. Only
IndexUnavailableError is meant to stop a run.
"""


class PhotoImporterError(Exception):
    """Base exception for all photo importer errors."""
    pass


class FileHashError(PhotoImporterError):
    """Raised when file hashing fails."""
    pass


class IdentityExtractionError(PhotoImporterError):
    """Raised when a file cannot be read to derive its capture identity."""
    pass


class DatabaseError(PhotoImporterError):
    """Raised when database operations fail."""
    pass


class IndexUnavailableError(DatabaseError):
    """Raised when the dedup index cannot be opened or initialized."""
    pass


class FileOperationError(PhotoImporterError):
    """Raised when file copy operations fail."""
    pass


class NonRegularSourceError(FileOperationError):
    """Raised when the source is not a regular file."""
    pass


class DestinationConflictError(FileOperationError):
    """Raised when the destination exists with different content."""
    pass


class IntegrityError(FileOperationError):
    """
    Raised when the destination hash does not match after placement.
    The destination may be corrupt and needs manual attention.
    """
    pass
