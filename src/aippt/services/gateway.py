# src/aippt/services/gateway.py
from __future__ import annotations

import asyncio
import importlib
import inspect
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from aippt.core.config import settings
from aippt.core.ctx import set_ctx
from aippt.core.logging import get_logger
from aippt.kernel.errors import ConfigurationError
from aippt.schemas import ChatMessage, ImageResult, ModelEndpointConfig
from aippt.services.providers.detect import (
    ImageProviderKind,
    TextProviderKind,
    classify_image_provider,
    classify_text_provider,
)
from aippt.services.providers.base import ImageProvider, TextProvider
from aippt.services.providers.polling import Sleep

log = get_logger(__name__)

TEXT_PROVIDERS: Dict[TextProviderKind, str] = {
    TextProviderKind.ANTHROPIC:         "aippt.services.providers.text.anthropic_messages:AnthropicMessages",
    TextProviderKind.OPENAI_COMPATIBLE: "aippt.services.providers.text.openai_chat:OpenAIChat",
}

IMAGE_PROVIDERS: Dict[ImageProviderKind, str] = {
    ImageProviderKind.DASHSCOPE:         "aippt.services.providers.image.dashscope:DashScopeImage",
    ImageProviderKind.MODELSCOPE:        "aippt.services.providers.image.modelscope:ModelScopeImage",
    ImageProviderKind.OPENAI_COMPATIBLE: "aippt.services.providers.image.openai_images:OpenAIImages",
}


def _as_messages(messages: Sequence[Any]) -> List[ChatMessage]:
    return [m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m) for m in messages]


def _require(config: Optional[ModelEndpointConfig], what: str) -> ModelEndpointConfig:
    if config is None or not config.is_configured():
        raise ConfigurationError(detail=f"{what} model requires both baseUrl and apiKey")
    return config


def _log_retry(state: RetryCallState) -> None:
    err = state.outcome.exception() if state.outcome else None
    log.warning(
        "text request failed (attempt %d/%d): %s",
        state.attempt_number, settings.TEXT_RETRY_ATTEMPTS, err,
    )


class ModelGateway:
    """
    Dispatches text and image calls to the wire format the endpoint speaks.
    - text: classified by (baseUrl, model), retried with a linearly growing delay
    - image: classified by baseUrl, not retried (async backends poll on their own)
    `transport` and `sleep` exist for tests (httpx.MockTransport / no-op sleep).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, sleep: Sleep = asyncio.sleep):
        self.transport = transport
        self.sleep = sleep

    def _load_provider(self, key: str):
        mod, cls = key.split(":")
        Prov = getattr(importlib.import_module(mod), cls)
        kw: Dict[str, Any] = {"transport": self.transport}
        if "sleep" in inspect.signature(Prov).parameters:
            kw["sleep"] = self.sleep
        return Prov(**kw)

    def text_provider(self, config: ModelEndpointConfig) -> TextProvider:
        kind = classify_text_provider(config.base_url, config.model)
        return self._load_provider(TEXT_PROVIDERS[kind])

    def image_provider(self, config: ModelEndpointConfig) -> ImageProvider:
        kind = classify_image_provider(config.base_url)
        return self._load_provider(IMAGE_PROVIDERS[kind])

    # ---------- Public APIs ----------
    async def call_text_model(
        self,
        config: Optional[ModelEndpointConfig],
        messages: Sequence[Any],
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> str:
        config = _require(config, "Text")
        msgs = _as_messages(messages)
        prov = self.text_provider(config)
        set_ctx(provider=prov.name)

        delay = settings.TEXT_RETRY_DELAY_SEC
        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.TEXT_RETRY_ATTEMPTS),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_not_exception_type(ConfigurationError),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await prov.complete(config, msgs, temperature=temperature, max_tokens=max_tokens)
        raise AssertionError("unreachable")  # pragma: no cover

    async def call_image_model(
        self,
        config: Optional[ModelEndpointConfig],
        prompt: str,
        size: str = "1024x768",
        n: int = 1,
    ) -> List[ImageResult]:
        config = _require(config, "Image")
        prov = self.image_provider(config)
        set_ctx(provider=prov.name)
        return await prov.generate(config, prompt, size=size, n=n)
