# travelog/api/pipeline.py
"""One parameterized pipeline behind every AI endpoint.

    prompt builder -> model client -> extractor -> decoder
        -> optional geo-enrichment -> optional persistence

Each endpoint declares a :class:`PipelineConfig`; no endpoint carries its
own copy of the control flow.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from travelog.api.errors import ConfigurationError
from travelog.api.extraction import extract
from travelog.api.geocoding import Geocoder
from travelog.api.llm import Message, ModelClient

logger = logging.getLogger(__name__)

CHAT_MODEL = "chat"
ITINERARY_MODEL = "itinerary"


@dataclass(frozen=True)
class PipelineConfig:
    """Everything that differs between two AI endpoints."""

    name: str
    build_prompt: Callable[[Any], str]
    decode: Callable[[Any, Any], Any]
    failure_message: str
    system_prompt: Optional[Callable[[Any], str]] = None
    model_role: str = CHAT_MODEL
    temperature: float = 0.7
    max_tokens: int = 2000
    json_mode: bool = False
    enrich: Optional[Callable[[Any, Geocoder], Any]] = None
    persist: Optional[Callable[[Any, Any, Any], Any]] = None


class ItineraryPipeline:
    """Runs a :class:`PipelineConfig` against injected collaborators."""

    def __init__(
        self,
        model_client: Optional[ModelClient],
        geocoder: Optional[Geocoder] = None,
        models: Optional[Dict[str, str]] = None,
    ):
        self.model_client = model_client
        self.geocoder = geocoder
        self.models = models or {}

    def build_messages(self, config: PipelineConfig, request: Any) -> List[Message]:
        messages: List[Message] = []
        if config.system_prompt is not None:
            messages.append({"role": "system", "content": config.system_prompt(request)})
        messages.append({"role": "user", "content": config.build_prompt(request)})
        return messages

    def run(self, config: PipelineConfig, request: Any, context: Any = None) -> Any:
        """Execute every step for one request, strictly in order.

        Args:
            config: Endpoint configuration
            request: Typed request object handed to the prompt builder and decoder
            context: Passed to the persistence hook (e.g. database, trip and user)

        Returns:
            Whatever the config's decoder (and hooks) produce

        Raises:
            ConfigurationError: no model client is configured
            UpstreamError / MalformedModelOutput / PersistenceError: from the steps
        """
        if self.model_client is None:
            logger.error(f"[{config.name}] no model client configured")
            raise ConfigurationError()

        started = time.time()
        messages = self.build_messages(config, request)
        completion = self.model_client.invoke(
            messages,
            model=self.models.get(config.model_role),
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            json_mode=config.json_mode,
        )
        result = config.decode(extract(completion), request)

        if config.enrich is not None and self.geocoder is not None:
            result = config.enrich(result, self.geocoder)

        if config.persist is not None and context is not None:
            result = config.persist(result, request, context)

        logger.info(f"[{config.name}] completed in {time.time() - started:.2f}s")
        return result


__all__ = ["PipelineConfig", "ItineraryPipeline", "CHAT_MODEL", "ITINERARY_MODEL"]
