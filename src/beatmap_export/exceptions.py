"""
Custom exceptions for the beatmap_export package.

Errors raised for a single export unit (one archive, one audio track, one
background, one replay) are fatal for that unit only; the export worker records
them and moves on to the next unit.
"""

from pathlib import Path


class ExporterError(Exception):
    """Base exception for all beatmap_export errors."""
    pass


class NotFoundError(ExporterError):
    """Raised when a file expected in the file store is missing."""

    def __init__(self, message: str, filename: str | None = None):
        self.filename = filename
        super().__init__(message)


class DestinationExistsError(ExporterError):
    """Raised when an export target already exists; exports never overwrite."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Export destination already exists: {self.path}")


class TranscodeError(ExporterError):
    """Raised when converting an audio file to mp3 fails for any reason."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Transcoding {source} failed: {reason}")


class TaggingError(ExporterError):
    """Non-fatal: writing tags to an exported audio file failed."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not write tags to {self.path.name}: {reason}")


class CollectionResolutionError(ExporterError):
    """Non-fatal: a collection reference in a filter matched no collection."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Collection '{reference}' not found")


class ConfigurationError(ExporterError):
    """Raised when the exporter configuration file is invalid or cannot be loaded."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        full_message = message
        if self.errors:
            full_message += f": {', '.join(self.errors)}"
        super().__init__(full_message)
