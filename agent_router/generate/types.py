# Typed dataclasses shared across generator modules.

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class Message:
    """Single chat turn: system, user, or assistant."""
    role: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GenerationProfile:
    """Prompt and sampling settings for one generation endpoint."""
    title: str
    system_prompt: str
    temperature: float = 0.7
    max_tokens: int = 2000
    error_message: str = "Failed to generate code"
