# src/aippt/services/providers/image/dashscope.py
from __future__ import annotations

import asyncio
import json
from typing import Any, List, Optional, Tuple

import httpx

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import ProviderFormatError
from aippt.schemas import ImageResult, ModelEndpointConfig
from aippt.services.providers.base import results_from
from aippt.services.providers.http import bearer, get_json, make_client, post_json, strip_base
from aippt.services.providers.polling import Sleep, TaskState, poll_task

log = get_logger(__name__)


def _inline_image(output: dict) -> Optional[List[ImageResult]]:
    choices = output.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, list):
        for item in content:
            if isinstance(item, dict) and item.get("image"):
                return [ImageResult(url=item["image"])]
    return None


class DashScopeImage:
    """
    Alibaba DashScope native multimodal format (Qwen Image).
    The configured base URL is the full invocation endpoint.
    """
    name = "dashscope:image"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, sleep: Sleep = asyncio.sleep):
        self.transport = transport
        self.sleep = sleep

    async def generate(self, config: ModelEndpointConfig, prompt: str,
                       size: str = "1024x768", n: int = 1) -> List[ImageResult]:
        url = strip_base(config.base_url)
        log.info("dashscope image request -> %s (model: %s)", url, config.model)
        body = {
            "model": config.model,
            "input": {"messages": [{"role": "user", "content": [{"text": prompt}]}]},
            "parameters": {"size": size.replace("x", "*", 1)},
        }
        async with make_client(self.transport) as c:
            data = await post_json(c, url, json=body, headers=bearer(config.api_key))
            output = data.get("output") if isinstance(data, dict) else None
            output = output if isinstance(output, dict) else {}
            log.info("dashscope response keys: %s", list(data.keys()) if isinstance(data, dict) else type(data).__name__)

            inline = _inline_image(output)
            if inline:
                return inline
            if "results" in output and output["results"] is not None:
                return results_from(output["results"])
            if output.get("task_id"):
                log.info("dashscope async task: %s", output["task_id"])
                return await self._poll(c, config.api_key, output["task_id"])

        raise ProviderFormatError(
            detail="Could not interpret DashScope response",
            raw=json.dumps(data, ensure_ascii=False),
        )

    async def _poll(self, client: httpx.AsyncClient, api_key: str, task_id: str) -> List[ImageResult]:
        task_url = f"{strip_base(settings.DASHSCOPE_TASK_URL)}/{task_id}"

        async def check() -> Tuple[TaskState, Any]:
            data = await get_json(client, task_url, headers={"Authorization": f"Bearer {api_key}"})
            out = data.get("output") if isinstance(data, dict) else None
            out = out if isinstance(out, dict) else {}
            status = out.get("task_status")
            if status == "SUCCEEDED" and out.get("results"):
                return TaskState.SUCCEEDED, results_from(out["results"])
            if status == "FAILED":
                return TaskState.FAILED, out.get("message")
            return TaskState.PENDING, status

        return await poll_task(
            check,
            interval=settings.POLL_INTERVAL_SEC,
            max_attempts=settings.DASHSCOPE_POLL_ATTEMPTS,
            sleep=self.sleep,
            label=f"DashScope task {task_id}",
        )
