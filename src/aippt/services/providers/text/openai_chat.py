# src/aippt/services/providers/text/openai_chat.py
from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx

from aippt.core.logging import get_logger
from aippt.schemas import ChatMessage, ModelEndpointConfig
from aippt.services.providers.http import bearer, make_client, post_json, strip_base

log = get_logger(__name__)


def first_choice_text(data: Any) -> str:
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        return ""


class OpenAIChat:
    """OpenAI-compatible /chat/completions (OpenAI, vLLM, Ollama, most proxies)."""
    name = "openai:chat"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def complete(self, config: ModelEndpointConfig, messages: Sequence[ChatMessage],
                       temperature: float = 0.7, max_tokens: int = 4096) -> str:
        url = f"{strip_base(config.base_url)}/chat/completions"
        log.info("openai text request -> %s (model: %s)", url, config.model)
        body = {
            "model": config.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        async with make_client(self.transport) as c:
            data = await post_json(c, url, json=body, headers=bearer(config.api_key))
        return first_choice_text(data)
