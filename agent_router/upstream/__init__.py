# Upstream package

# Client and request/response types for the OpenRouter API.

from .client import UpstreamClient, describe_upstream_error
from .types import ChatMessage, ChatRequest, GenerateRequest, ModelParams, PdfRequest, UpstreamConfig

__all__ = [
    "UpstreamClient",
    "describe_upstream_error",
    "ChatMessage",
    "ChatRequest",
    "GenerateRequest",
    "ModelParams",
    "PdfRequest",
    "UpstreamConfig",
]
