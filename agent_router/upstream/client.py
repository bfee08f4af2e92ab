# agent_router/upstream/client.py
"""HTTP client for the OpenRouter chat-completion endpoint.

The client never retries. It surfaces the upstream status as-is: a non-2xx
answer becomes an ``UpstreamError`` carrying the raw body text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from agent_router.errors import GenerationParseError, UpstreamError, UpstreamUnavailableError
from .types import ModelParams, UpstreamConfig

logger = logging.getLogger(__name__)

CREDITS_EXHAUSTED = (
    "OpenRouter credits exhausted. Top up at https://openrouter.ai/settings/credits "
    "or use another model."
)
RATE_LIMITED = "The model is rate limited. Try again in a few minutes or use another model."


def describe_upstream_error(body: str, default: str) -> str:
    """Pick a human-readable message out of an upstream error body."""
    try:
        data = json.loads(body)
    except ValueError:
        return default
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return default
    code = error.get("code")
    if code == 402:
        return CREDITS_EXHAUSTED
    if code == 429:
        return RATE_LIMITED
    return error.get("message") or default


class UpstreamClient:
    def __init__(self, config: UpstreamConfig, http: Optional[httpx.AsyncClient] = None):
        self.config = config
        # chat streams run until upstream ends or the client leaves: no read timeout
        self.http = http or httpx.AsyncClient(timeout=None)

    def _headers(self, title: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
            "HTTP-Referer": self.config.referer,
            "X-Title": title,
        }

    async def open_stream(self, model: str, messages: List[Dict[str, Any]], title: str) -> httpx.Response:
        """POST a streaming completion and return the open response.

        The caller owns the returned response and must close it.
        """
        payload = {"model": model, "messages": messages, "stream": True}
        request = self.http.build_request(
            "POST", self.config.url, headers=self._headers(title), json=payload
        )
        try:
            response = await self.http.send(request, stream=True)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError("Upstream request timed out", str(exc), 504) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError("Internal proxy error", str(exc)) from exc

        logger.info("OpenRouter response status: %s", response.status_code)
        if not response.is_success:
            try:
                await response.aread()
            finally:
                await response.aclose()
            logger.error("OpenRouter error: %s", response.text)
            raise UpstreamError(
                f"OpenRouter API error: {response.status_code}", response.status_code, response.text
            )
        return response

    async def complete(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        title: str,
        params: ModelParams,
        error_message: str = "Failed to generate code",
    ) -> Dict[str, Any]:
        """Non-streaming completion, bounded by the generation timeout."""
        payload: Dict[str, Any] = {"model": model, "messages": messages}
        if params.temperature is not None:
            payload["temperature"] = params.temperature
        if params.max_tokens is not None:
            payload["max_tokens"] = params.max_tokens

        try:
            response = await self.http.post(
                self.config.url,
                headers=self._headers(title),
                json=payload,
                timeout=self.config.generation_timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError("Upstream request timed out", str(exc), 504) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError("Internal proxy error", str(exc)) from exc

        logger.info("OpenRouter response status: %s", response.status_code)
        if not response.is_success:
            logger.error("OpenRouter error: %s", response.text)
            raise UpstreamError(
                describe_upstream_error(response.text, error_message),
                response.status_code,
                response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise GenerationParseError("Upstream returned a non-JSON completion", response.text) from exc

    async def aclose(self) -> None:
        await self.http.aclose()
