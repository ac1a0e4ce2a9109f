class ThumbnailServiceError(Exception):
    """Base class for errors raised by the thumbnail domain layer."""


class FetchError(ThumbnailServiceError):
    """The source url could not be retrieved or answered with a non-2xx status."""


class RenderError(ThumbnailServiceError):
    """The retrieved bytes could not be rendered into a thumbnail."""


class EmptyThumbnailError(RenderError):
    def __init__(self, message: str = "failed to extract thumbnail") -> None:
        super().__init__(message)


class StoreError(ThumbnailServiceError):
    """Storage failure unrelated to url uniqueness (schema, disk, I/O)."""


class ConfigError(ThumbnailServiceError):
    """Missing or malformed process configuration."""
