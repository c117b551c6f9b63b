# src/aippt/services/providers/image/modelscope.py
from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import ProviderFormatError
from aippt.schemas import ImageResult, ModelEndpointConfig
from aippt.services.providers.http import bearer, get_json, make_client, post_json, strip_base
from aippt.services.providers.polling import Sleep, TaskState, poll_task

log = get_logger(__name__)

# ratio -> "W*H" accepted by Z-Image style models
RESOLUTIONS: Dict[str, str] = {
    "16:9": "1664*928",
    "4:3":  "1472*1104",
    "1:1":  "1328*1328",
    "3:4":  "1104*1472",
    "9:16": "928*1664",
}
DEFAULT_RESOLUTION = RESOLUTIONS["16:9"]


def resolve_size(size: Optional[str]) -> str:
    """Ratio keys map through RESOLUTIONS, explicit "W*H" passes through, anything else is 16:9."""
    size = size or ""
    if size in RESOLUTIONS:
        return RESOLUTIONS[size]
    if "*" in size:
        return size
    return DEFAULT_RESOLUTION


class ModelScopeImage:
    name = "modelscope:image"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, sleep: Sleep = asyncio.sleep):
        self.transport = transport
        self.sleep = sleep

    async def generate(self, config: ModelEndpointConfig, prompt: str,
                       size: str = "1024x768", n: int = 1) -> List[ImageResult]:
        base = strip_base(config.base_url)
        url = f"{base}/v1/images/generations"
        log.info("modelscope image request -> %s (model: %s)", url, config.model)
        body = {
            "model": config.model,
            "prompt": prompt,
            "parameters": {"size": resolve_size(size)},
        }
        headers = {**bearer(config.api_key), "X-ModelScope-Async-Mode": "true"}

        async with make_client(self.transport) as c:
            data = await post_json(c, url, json=body, headers=headers)
            task_id = data.get("task_id") if isinstance(data, dict) else None
            if not task_id:
                raise ProviderFormatError(
                    detail="ModelScope response did not include task_id",
                    raw=json.dumps(data, ensure_ascii=False),
                )
            log.info("modelscope async task started: %s", task_id)
            return await self._poll(c, base, config.api_key, task_id)

    async def _poll(self, client: httpx.AsyncClient, base: str, api_key: str, task_id: str) -> List[ImageResult]:
        task_url = f"{base}/v1/tasks/{task_id}"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "X-ModelScope-Task-Type": "image_generation",
        }

        async def check() -> Tuple[TaskState, Any]:
            data = await get_json(client, task_url, headers=headers)
            if not isinstance(data, dict):
                return TaskState.PENDING, None
            status = data.get("task_status")
            if status == "SUCCEED":
                images = data.get("output_images") or []
                if not images:
                    raise ProviderFormatError(
                        detail="ModelScope task succeeded without output_images",
                        raw=json.dumps(data, ensure_ascii=False),
                    )
                return TaskState.SUCCEEDED, [ImageResult(url=images[0])]
            if status == "FAILED":
                return TaskState.FAILED, data.get("message")
            return TaskState.PENDING, status

        return await poll_task(
            check,
            interval=settings.POLL_INTERVAL_SEC,
            max_attempts=settings.MODELSCOPE_POLL_ATTEMPTS,
            sleep=self.sleep,
            label=f"ModelScope task {task_id}",
        )
