# src/aippt/services/providers/text/anthropic_messages.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.schemas import ChatMessage, ModelEndpointConfig
from aippt.services.providers.http import make_client, post_json, strip_base

log = get_logger(__name__)


def split_system(messages: Sequence[ChatMessage]) -> Tuple[str, List[Dict[str, str]]]:
    """Hoist system messages into one newline-joined string; keep the rest in order."""
    system: List[str] = []
    rest: List[Dict[str, str]] = []
    for m in messages:
        if m.role == "system":
            system.append(m.content)
        else:
            rest.append({"role": m.role, "content": m.content})
    return "\n".join(system), rest


def extract_text(data: Any) -> str:
    content = data.get("content") if isinstance(data, dict) else None
    if isinstance(content, list):
        return "".join(
            c.get("text", "") for c in content
            if isinstance(c, dict) and c.get("type") == "text"
        )
    return content or ""


class AnthropicMessages:
    name = "anthropic:messages"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def complete(self, config: ModelEndpointConfig, messages: Sequence[ChatMessage],
                       temperature: float = 0.7, max_tokens: int = 4096) -> str:
        url = f"{strip_base(config.base_url)}/v1/messages"
        log.info("anthropic text request -> %s (model: %s)", url, config.model)

        system, msgs = split_system(messages)
        body: Dict[str, Any] = {
            "model": config.model,
            "max_tokens": max_tokens,
            "messages": msgs,
            "temperature": temperature,
        }
        if system:
            body["system"] = system

        headers = {
            "Content-Type": "application/json",
            "x-api-key": config.api_key,
            "anthropic-version": settings.ANTHROPIC_VERSION,
        }
        async with make_client(self.transport) as c:
            data = await post_json(c, url, json=body, headers=headers)
        return extract_text(data)
