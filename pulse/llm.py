"""
Client for the OpenAI-compatible chat-completions endpoint.

Every report ends with one call here: a fixed system instruction describing
the JSON to return, the assembled corpus as the user turn, and
``response_format={"type": "json_object"}``. The completion text is handed
back unparsed; ``pulse.reports`` owns parsing.

The SDK client is lazy-initialised so the class can be built without a live
key, and ``max_retries=0`` because a failed call is surfaced, not retried.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import openai

from pulse.errors import RequestTimedOut, SynthesisError

logger = logging.getLogger(__name__)

#: Completion model used when neither a source nor the config table names one.
DEFAULT_MODEL = "llama-3.3-70b-versatile"


def _error_detail(exc: openai.APIStatusError) -> str:
    """Best-effort rendering of the error body returned with a non-2xx status."""
    if exc.body:
        try:
            return json.dumps(exc.body)
        except (TypeError, ValueError):
            return str(exc.body)
    return exc.message


class CompletionClient:
    """Sends prompt-contract requests to one OpenAI-compatible base URL."""

    def __init__(self, api_key: str, base_url: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._client: Optional[openai.OpenAI] = None

    @property
    def client(self) -> openai.OpenAI:
        """Lazy-initialise and return the OpenAI SDK client."""
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def complete(
        self,
        system: Optional[str],
        user: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4500,
        json_mode: bool = True,
    ) -> str:
        """Run one chat completion and return the message content.

        Args:
            system: System instruction (the prompt contract); omitted when ``None``.
            user: User turn, usually the corpus.
            model: Model identifier.
            temperature: Sampling temperature.
            max_tokens: Completion token ceiling.
            json_mode: Request ``json_object`` output.

        Raises:
            RequestTimedOut: The endpoint did not answer within the timeout.
            SynthesisError: Non-2xx status, unreachable endpoint, or empty content.
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})

        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("Completion model=%s prompt_chars=%d", model, len(user))
        try:
            response = self.client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            raise RequestTimedOut() from exc
        except openai.APIStatusError as exc:
            raise SynthesisError(
                f"LLM API error ({exc.status_code}): {_error_detail(exc)}"
            ) from exc
        except openai.APIConnectionError as exc:
            raise SynthesisError(f"LLM API unreachable: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise SynthesisError("No analysis generated")
        return content

    def list_models(self) -> list[str]:
        """Return the model identifiers the endpoint currently serves."""
        return [model.id for model in self.client.models.list()]
