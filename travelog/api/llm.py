"""Chat-completion clients for travelog.

Two providers sit behind the same ``invoke`` call: OpenRouter (through the
OpenAI SDK, which speaks the same chat-completions protocol) and Google
Gemini. A call is made exactly once; there is no retry. Provider failures
are raised as :class:`UpstreamError`, and a successful answer without any
text as :class:`UpstreamEmptyResponse`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import google.generativeai as genai
import httpx
from google.api_core import exceptions as google_exceptions
from openai import APIConnectionError, APIStatusError, OpenAI

from travelog.api.config import OPENROUTER_BASE_URL
from travelog.api.errors import ConfigurationError, UpstreamEmptyResponse, UpstreamError

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class ModelClient:
    """Interface shared by the chat-completion providers."""

    provider = "base"

    def invoke(
        self,
        messages: List[Message],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> str:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# OpenRouter
# ---------------------------------------------------------------------------

class OpenRouterClient(ModelClient):
    """OpenRouter chat completions via the OpenAI SDK."""

    provider = "openrouter"

    def __init__(
        self,
        api_key: str,
        default_model: str,
        base_url: str = OPENROUTER_BASE_URL,
        timeout: float = 30.0,
        site_url: str = "",
        site_name: str = "",
        http_client: Optional[httpx.Client] = None,
    ):
        headers = {}
        if site_url:
            headers["HTTP-Referer"] = site_url
        if site_name:
            headers["X-Title"] = site_name
        self.default_model = default_model
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            default_headers=headers or None,
            http_client=http_client,
        )

    def invoke(self, messages, model=None, temperature=0.7, max_tokens=2000, json_mode=False):
        model = model or self.default_model
        kwargs: Dict[str, Any] = dict(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.debug("Calling OpenRouter: model=%s messages=%d", model, len(messages))
        try:
            response = self._client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            body = exc.response.text if exc.response is not None else ""
            logger.error(f"OpenRouter API error {exc.status_code}: {body[:200]}")
            raise UpstreamError(exc.status_code, body) from exc
        except APIConnectionError as exc:
            logger.error(f"OpenRouter connection error: {exc}")
            raise UpstreamError(None, str(exc), message="Could not reach AI service") from exc

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            logger.error("OpenRouter returned no message content")
            raise UpstreamEmptyResponse()
        return content


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------

class GeminiClient(ModelClient):
    """Google Gemini via google-generativeai.

    ``genai.configure`` sets the key for the whole process, so only one
    Gemini API key may be used per process. Constructing a second client
    with the same key is fine; a different key raises ConfigurationError.
    """

    provider = "gemini"
    _configured_key: Optional[str] = None

    def __init__(self, api_key: str, default_model: str, timeout: float = 30.0):
        configured = GeminiClient._configured_key
        if configured is not None and configured != api_key:
            raise ConfigurationError("Only one Gemini API key may be configured per process")
        genai.configure(api_key=api_key)
        GeminiClient._configured_key = api_key
        self.default_model = default_model
        self.timeout = timeout

    @staticmethod
    def _split_messages(messages: List[Message]):
        """Return ``(system_instruction, contents)`` in Gemini's format."""
        system_parts = []
        contents = []
        for message in messages:
            role = message.get("role")
            text = message.get("content", "")
            if role == "system":
                system_parts.append(text)
            else:
                contents.append({
                    "role": "model" if role == "assistant" else "user",
                    "parts": [text],
                })
        return ("\n\n".join(system_parts) or None), contents

    def invoke(self, messages, model=None, temperature=0.7, max_tokens=2000, json_mode=False):
        system_instruction, contents = self._split_messages(messages)
        config = genai.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_mode else None,
        )
        generative_model = genai.GenerativeModel(
            model or self.default_model,
            system_instruction=system_instruction,
        )

        try:
            response = generative_model.generate_content(
                contents,
                generation_config=config,
                request_options={"timeout": self.timeout},
            )
        except google_exceptions.GoogleAPICallError as exc:
            logger.error(f"Gemini API error {exc.code}: {exc.message}")
            raise UpstreamError(exc.code, str(exc.message)) from exc
        except google_exceptions.GoogleAPIError as exc:
            logger.error(f"Gemini API error: {exc}")
            raise UpstreamError(None, str(exc)) from exc

        try:
            text = response.text
        except ValueError:
            # raised when the candidate was blocked or carries no parts
            text = None
        if not text or not text.strip():
            logger.error("Gemini returned no text")
            raise UpstreamEmptyResponse()
        return text


__all__ = ["ModelClient", "OpenRouterClient", "GeminiClient"]
