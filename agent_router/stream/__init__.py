# Stream package

# Relay loop and the ASGI response that feeds it.

from .relay import CancelToken, RelayResult, relay, PROCESSING_MARKER
from .response import RelayResponse

__all__ = ["CancelToken", "RelayResult", "relay", "PROCESSING_MARKER", "RelayResponse"]
