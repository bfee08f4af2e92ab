# agent_router/generate/generator.py
"""Code generation on top of the upstream client.

A ``CodeGenerator``:
- loads per-endpoint profiles (system prompt, title, sampling) from prompts.yaml
- builds [system, user] messages
- calls the upstream without streaming
- extracts the JSON payload from the completion text
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from agent_router.errors import GenerationParseError
from agent_router.logging_utils import preview
from agent_router.upstream import ModelParams, UpstreamClient
from .extract import extract_app_payload, extract_html_payload
from .types import GenerationProfile, Message

logger = logging.getLogger(__name__)

PROMPTS_PATH = Path(__file__).with_name("prompts.yaml")


def load_profiles(path: Path = PROMPTS_PATH) -> Dict[str, GenerationProfile]:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return {name: GenerationProfile(**cfg) for name, cfg in raw.items()}


def completion_text(data: Dict[str, Any]) -> str:
    """Return ``choices[0].message.content`` of a chat completion."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GenerationParseError("Upstream completion has no message content", str(data)) from exc
    if not isinstance(content, str):
        raise GenerationParseError("Upstream completion has no message content", str(data))
    return content


class CodeGenerator:
    def __init__(self, client: UpstreamClient, profiles: Optional[Dict[str, GenerationProfile]] = None):
        self.client = client
        self.profiles = profiles if profiles is not None else load_profiles()

    def _compose_messages(self, profile: GenerationProfile, prompt: str) -> List[Message]:
        return [
            Message(role="system", content=profile.system_prompt.strip()),
            Message(role="user", content=prompt),
        ]

    async def _generate(
        self,
        kind: str,
        prompt: str,
        model: str,
        extract: Callable[[str], Dict[str, Any]],
    ) -> Dict[str, Any]:
        profile = self.profiles[kind]
        messages = self._compose_messages(profile, prompt)
        params = ModelParams(temperature=profile.temperature, max_tokens=profile.max_tokens)

        data = await self.client.complete(
            model,
            [m.to_dict() for m in messages],
            title=profile.title,
            params=params,
            error_message=profile.error_message,
        )
        content = completion_text(data)
        logger.info("Generated %s content: %s", kind, preview(content))

        try:
            return extract(content)
        except GenerationParseError:
            logger.error("JSON parse error for %s generation", kind)
            raise

    async def generate_html(self, prompt: str, model: str) -> Dict[str, Any]:
        """Single-page snippet as ``{html, css, js}``."""
        return await self._generate("html", prompt, model, extract_html_payload)

    async def generate_app(self, prompt: str, model: str) -> Dict[str, Any]:
        """React project as ``{files: {path: source}}``."""
        return await self._generate("app", prompt, model, extract_app_payload)
