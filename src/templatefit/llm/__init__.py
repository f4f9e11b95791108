"""LLM client."""

from __future__ import annotations

from templatefit.llm.client import ChatMessage, LLMClient

__all__ = ["ChatMessage", "LLMClient"]
