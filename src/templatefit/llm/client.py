"""OpenAI-compatible chat client used by the LLM reasoning service.

Plans and verdicts are JSON documents, so completions can be requested in JSON mode.
Providers behind ``openai_base_url`` that reject ``response_format`` are retried once
without it; the reasoning service still extracts JSON from free text.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Literal, Sequence

from openai import BadRequestError, OpenAI

from templatefit.config import Settings
from templatefit.logging import get_logger

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


class LLMClient:
    """Blocking chat-completions client; callers offload it to a thread."""

    def __init__(self, settings: Settings) -> None:
        if not settings.openai_api_key:
            raise ValueError(
                "Missing TEMPLATEFIT_OPENAI_API_KEY. "
                "Set it in environment variables or a .env file."
            )
        self._model = settings.openai_model
        self._timeout_s = settings.openai_timeout_s
        self._client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)

    @property
    def model(self) -> str:
        return self._model

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float = 0.2,
        json_mode: bool = False,
    ) -> str:
        """Return the assistant's reply, or ``""`` when the model sent no content.

        Args:
            messages: Conversation, system prompt first.
            temperature: Sampling temperature.
            json_mode: Ask the provider for a JSON object response.
        """

        request: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "timeout": self._timeout_s,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        started = time.monotonic()
        try:
            resp = self._client.chat.completions.create(**request)
        except BadRequestError:
            if not json_mode:
                raise
            logger.info("Provider rejected JSON mode; retrying without it", extra={"model": self._model})
            request.pop("response_format")
            resp = self._client.chat.completions.create(**request)

        usage = getattr(resp, "usage", None)
        logger.debug(
            "Completion done",
            extra={
                "model": self._model,
                "latency_ms": int((time.monotonic() - started) * 1000),
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
            },
        )

        choice = resp.choices[0]
        if not choice.message or choice.message.content is None:
            logger.warning("Empty completion", extra={"model": self._model})
            return ""
        return choice.message.content
