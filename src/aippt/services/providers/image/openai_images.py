# src/aippt/services/providers/image/openai_images.py
from __future__ import annotations

from typing import List, Optional

import httpx

from aippt.core.logging import get_logger
from aippt.schemas import ImageResult, ModelEndpointConfig
from aippt.services.providers.base import results_from
from aippt.services.providers.http import bearer, make_client, post_json, strip_base

log = get_logger(__name__)


class OpenAIImages:
    name = "openai:images"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def generate(self, config: ModelEndpointConfig, prompt: str,
                       size: str = "1024x768", n: int = 1) -> List[ImageResult]:
        url = f"{strip_base(config.base_url)}/images/generations"
        log.info("openai image request -> %s (model: %s)", url, config.model)
        body = {
            "model": config.model,
            "prompt": prompt,
            "size": size,
            "n": n,
            "response_format": "b64_json",
        }
        async with make_client(self.transport) as c:
            data = await post_json(c, url, json=body, headers=bearer(config.api_key))
        entries = data.get("data") if isinstance(data, dict) else None
        return results_from(entries if isinstance(entries, list) else [])
