# Typed structures shared by the upstream client and the endpoints.

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class UpstreamConfig:
    """Process-wide upstream settings, fixed at startup."""
    url: str
    api_key: Optional[str]
    referer: str
    generation_timeout: float

    @classmethod
    def from_settings(cls, settings) -> "UpstreamConfig":
        return cls(
            url=settings.UPSTREAM_URL,
            api_key=settings.OPENROUTER_API_KEY,
            referer=settings.HTTP_REFERER,
            generation_timeout=settings.GENERATION_TIMEOUT,
        )


@dataclass
class ModelParams:
    """Sampling parameters for non-streaming generation calls."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class ChatMessage(BaseModel):
    # extra keys (name, tool_call_id, ...) are forwarded as sent
    model_config = ConfigDict(extra="allow")

    role: str
    content: Any = None


class ChatRequest(BaseModel):
    model: str = Field(min_length=1)
    messages: List[ChatMessage] = Field(min_length=1)

    def upstream_messages(self) -> List[Dict[str, Any]]:
        return [m.model_dump() for m in self.messages]


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1)
    model: str = Field(min_length=1)


class PdfRequest(BaseModel):
    pdfBase64: str = Field(min_length=1)
