"""Async client that asks an OpenAI-compatible chat endpoint to summarize READMEs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import httpx
from jinja2 import Environment, FileSystemLoader

from ..config import LLMSettings
from ..errors import SummarizationFailure
from ..logging import get_logger


@dataclass
class SummaryRequest:
    """Represents one summarization call."""

    library: str
    prompt: str
    system: str
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]


class Summarizer:
    """Produces short natural-language summaries of library READMEs."""

    DEFAULT_MODEL = "gpt-4"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_TIMEOUT = 60.0
    DEFAULT_MAX_README_CHARS = 12000
    ENV_MODEL_KEYS = ("AIDOCS_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("AIDOCS_LLM_BASE_URL", "OPENAI_BASE_URL")
    SYSTEM_PROMPT = (
        "You write concise reference notes about JavaScript libraries for coding assistants. "
        "Stay grounded in the README you are given and never invent APIs."
    )

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str | None = None,
        base_url: str | None = None,
        request_timeout: Optional[float] = None,
        max_readme_chars: Optional[int] = None,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = 300,
        transport: httpx.AsyncBaseTransport | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model or _first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        self.base_url = (
            base_url or _first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        ).rstrip("/")
        self.request_timeout = request_timeout or self.DEFAULT_TIMEOUT
        self.max_readme_chars = max_readme_chars or self.DEFAULT_MAX_README_CHARS
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir or Path(__file__).with_name("templates"))),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.logger = get_logger("summarizer")

    @classmethod
    def from_settings(cls, settings: LLMSettings, **kwargs: Any) -> "Summarizer":
        return cls(
            settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            request_timeout=settings.request_timeout,
            max_readme_chars=settings.max_readme_chars,
            **kwargs,
        )

    async def __aenter__(self) -> "Summarizer":
        self._client = self._new_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def render_prompt(self, library: str, description: str, *, version: str | None = None) -> str:
        text = description.strip()
        truncated = len(text) > self.max_readme_chars
        if truncated:
            text = text[: self.max_readme_chars]
        template = self._env.get_template("summary.j2")
        return template.render(library=library, version=version, readme=text, truncated=truncated).strip()

    def build_request(self, library: str, description: str, *, version: str | None = None) -> SummaryRequest:
        return SummaryRequest(
            library=library,
            prompt=self.render_prompt(library, description, version=version),
            system=self.SYSTEM_PROMPT,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    async def summarize(self, library: str, description: str, *, version: str | None = None) -> str:
        """Return a summary of ``description``; raises SummarizationFailure on any remote problem."""
        if not self.api_key:
            raise SummarizationFailure(library, "no API key configured (set apiKey in ai-docs_config.json)")
        request = self.build_request(library, description, version=version)

        if self._client is not None:
            return await self._post(self._client, request)
        async with self._new_client() as client:
            return await self._post(client, request)

    async def _post(self, client: httpx.AsyncClient, request: SummaryRequest) -> str:
        payload: dict[str, object] = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system},
                {"role": "user", "content": request.prompt},
            ],
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        self.logger.debug("Requesting summary for %s from %s", request.library, self.base_url)
        try:
            response = await client.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SummarizationFailure(
                request.library, f"summarization timed out after {self.request_timeout:g}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text.strip()[:200]
            raise SummarizationFailure(
                request.library,
                f"summarization endpoint returned status {exc.response.status_code}: {detail}",
            ) from exc
        except httpx.HTTPError as exc:
            raise SummarizationFailure(request.library, f"summarization request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise SummarizationFailure(request.library, "summarization endpoint returned invalid JSON") from exc

        content = _extract_content(body)
        if not content.strip():
            raise SummarizationFailure(request.library, "summarization endpoint returned an empty response")
        return content.strip()

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.request_timeout),
            transport=self._transport,
            follow_redirects=True,
        )


def _extract_content(payload: object) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if isinstance(message, dict):
        content = message.get("content")
        if isinstance(content, str):
            return content
    text = first.get("text")
    if isinstance(text, str):
        return text
    return ""


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = ["Summarizer", "SummaryRequest"]
