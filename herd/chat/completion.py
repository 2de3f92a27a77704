"""Completion-service collaborator and its OpenAI adapter."""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import openai

from ..config import ConfigurationError

LOGGER = logging.getLogger(__name__)


class CompletionServiceError(RuntimeError):
    """Raised when the completion service fails; ``status`` is the HTTP status when known."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CompletionClient(Protocol):
    """Protocol defining the text-completion interface used by the chat orchestrator."""

    def complete(self, prompt: str, *, model: str, max_tokens: int) -> str:  # pragma: no cover - runtime protocol
        """Return the generated text for ``prompt``."""


class OpenAICompletionClient:
    """Single-prompt completions through the OpenAI chat completions API."""

    def __init__(self, api_key: str, *, client: Optional[openai.OpenAI] = None, temperature: float = 0.2) -> None:
        if client is None:
            if not api_key:
                raise ConfigurationError("API key not configured")
            client = openai.OpenAI(api_key=api_key)
        self._client = client
        self._temperature = temperature

    def complete(self, prompt: str, *, model: str, max_tokens: int) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                max_tokens=max_tokens,
                temperature=self._temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.APIStatusError as exc:
            raise CompletionServiceError(str(exc), status=exc.status_code) from exc
        except openai.APIError as exc:
            raise CompletionServiceError(str(exc)) from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            LOGGER.warning("Completion response for model %s had no choices", model)
            return ""
        text: Optional[str] = getattr(choices[0].message, "content", None)
        return (text or "").strip()


__all__ = ["CompletionClient", "CompletionServiceError", "OpenAICompletionClient"]
