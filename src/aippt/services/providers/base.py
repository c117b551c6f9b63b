# src/aippt/services/providers/base.py
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from aippt.schemas import ChatMessage, ImageResult, ModelEndpointConfig

@runtime_checkable
class TextProvider(Protocol):
    name: str
    async def complete(self, config: ModelEndpointConfig, messages: Sequence[ChatMessage],
                       temperature: float = 0.7, max_tokens: int = 4096) -> str: ...

@runtime_checkable
class ImageProvider(Protocol):
    name: str
    async def generate(self, config: ModelEndpointConfig, prompt: str,
                       size: str = "1024x768", n: int = 1) -> List[ImageResult]: ...

def results_from(entries: Optional[list]) -> List[ImageResult]:
    """Map provider result dicts ({url, b64_json|b64_image}) to ImageResult."""
    out: List[ImageResult] = []
    for e in entries or []:
        if not isinstance(e, dict):
            continue
        out.append(ImageResult(
            url=e.get("url") or None,
            b64_json=e.get("b64_json") or e.get("b64_image") or None,
        ))
    return out
