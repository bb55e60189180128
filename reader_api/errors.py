"""
Typed failures of the reader pipeline. Each carries the `reason` code and
HTTP status the API maps it to.
"""
from typing import Optional


class ReaderError(Exception):
    reason = "extraction_failed"
    status_code = 502

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.reason)
        self.message = message

    def to_dict(self) -> dict:
        out = {"ok": False, "reason": self.reason}
        if self.message:
            out["message"] = self.message
        return out


class InvalidUrl(ReaderError):
    reason = "invalid_url"
    status_code = 400


class UpstreamUnavailable(ReaderError):
    reason = "timeout_or_network"
    status_code = 504


class ExtractionFailed(ReaderError):
    reason = "extraction_failed"
    status_code = 502


class RenderProxyError(Exception):
    """ rendering service returned nothing usable """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code == 429 or self.status_code >= 500
