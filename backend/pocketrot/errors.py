"""Error taxonomy for generation and publishing.

Every failure that reaches an API caller is one of these kinds; the app's
exception handler renders them as ``{"success": false, "error": ..., "kind": ...}``.
"""

from __future__ import annotations


class PocketRotError(Exception):
    """Base class for structured, caller-visible errors."""

    kind = "error"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "kind": self.kind}


class ConfigurationError(PocketRotError):
    """A required credential or setting is missing."""

    kind = "configuration"
    http_status = 500


class ProviderError(PocketRotError):
    """The generative provider answered with a non-2xx status or failed the job."""

    kind = "provider"
    http_status = 502

    def __init__(self, message: str, status_code: int = 0, provider: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider


class MalformedResponse(ProviderError):
    """The provider reported success but the expected payload is missing."""

    kind = "malformed_response"


class ReferenceFetchError(PocketRotError):
    """A reference asset could not be loaded. Never fatal."""

    kind = "reference_fetch"
    http_status = 502


class GenerationTimeout(PocketRotError):
    """An async provider job exceeded its polling budget."""

    kind = "timeout"
    http_status = 504


class NotFoundError(PocketRotError):
    kind = "not_found"
    http_status = 404


class Unauthorized(PocketRotError):
    kind = "unauthorized"
    http_status = 401


class GenerationInProgress(PocketRotError):
    """Another video job for the same subject holds the lock."""

    kind = "in_progress"
    http_status = 409


class ArtifactStoreError(PocketRotError):
    """Upload or download against the artifact store failed."""

    kind = "storage"
    http_status = 502
