# agent_router/errors.py
"""Error taxonomy for the proxy.

Every failure a caller can see is a ``ProxyError`` subclass. Each one knows
its HTTP status and the JSON body it renders to, so endpoints only raise and
the handler registered in ``app.py`` does the rendering.

Mid-stream transport failures are not represented here: once the event-stream
headers are sent the response cannot change shape, so the relay only logs them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

DETAILS_LIMIT = 500

PDF_SUGGESTION = (
    "Make sure the PDF contains selectable text (not a scan). For scanned PDFs, "
    "try uploading as an image with a vision model instead."
)


class ProxyError(Exception):
    status_code: int = 500

    def __init__(self, error: str, status_code: Optional[int] = None):
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error}


class ClientInputError(ProxyError):
    """Missing or malformed request fields."""

    status_code = 400


class UpstreamError(ProxyError):
    """Non-2xx answer from the upstream API; status is mirrored."""

    def __init__(self, error: str, status_code: int, details: str):
        super().__init__(error, status_code)
        self.details = details

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.details}


class UpstreamUnavailableError(ProxyError):
    """The upstream could not be reached or did not answer in time."""

    status_code = 502

    def __init__(self, error: str, message: str, status_code: Optional[int] = None):
        super().__init__(error, status_code)
        self.message = message

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class GenerationParseError(ProxyError):
    """Model output could not be turned into a JSON object."""

    def __init__(self, error: str, raw: str):
        super().__init__(error)
        self.details = (raw or "")[:DETAILS_LIMIT]

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.details}


class DocumentParseError(ProxyError):
    """PDF bytes could not be decoded or parsed."""

    def __init__(self, message: str, suggestion: str = PDF_SUGGESTION):
        super().__init__("Failed to extract PDF")
        self.message = message
        self.suggestion = suggestion

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, "suggestion": self.suggestion}


class InternalProxyError(ProxyError):
    def __init__(self, message: str, error: str = "Internal server error"):
        super().__init__(error)
        self.message = message

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


__all__ = [
    "ProxyError",
    "ClientInputError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "GenerationParseError",
    "DocumentParseError",
    "InternalProxyError",
    "proxy_error_handler",
    "DETAILS_LIMIT",
    "PDF_SUGGESTION",
]
