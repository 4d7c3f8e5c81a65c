"""Domain exceptions for the capture pipeline.

Adapters catch library errors (google-genai, httpx, json, OSError) at their
boundary and re-raise one of these with the original as ``__cause__``.
Only ``InvalidInput`` and ``Unauthorized`` are expected to reach callers of
the repository during normal operation.
"""


class CaptureInboxError(Exception):
    """Base class for all capture inbox errors."""


class ClassificationUnavailable(CaptureInboxError):
    """The remote classifier failed, timed out, or returned unusable data."""


class PersistenceUnavailable(CaptureInboxError):
    """The remote store could not be reached or rejected the request."""


class PersistenceCorrupt(CaptureInboxError):
    """The local cache could not be read or decoded."""


class InvalidInput(CaptureInboxError):
    """The caller supplied empty or otherwise unusable input."""


class CaptureNotFound(InvalidInput):
    """No capture exists with the requested id."""

    def __init__(self, capture_id: str) -> None:
        super().__init__(f"No capture with id {capture_id!r}")
        self.capture_id = capture_id


class Unauthorized(CaptureInboxError):
    """A credential was missing, expired, or rejected by the remote store."""
