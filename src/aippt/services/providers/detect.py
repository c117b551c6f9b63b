# src/aippt/services/providers/detect.py
from __future__ import annotations

from enum import Enum
from typing import Optional


class TextProviderKind(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI_COMPATIBLE = "openai"


class ImageProviderKind(str, Enum):
    DASHSCOPE = "dashscope"
    MODELSCOPE = "modelscope"
    OPENAI_COMPATIBLE = "openai"


def classify_text_provider(base_url: str, model: Optional[str] = None) -> TextProviderKind:
    """
    Best-effort guess from plain strings, first match wins:
    - model name contains "claude" (any case)
    - base URL contains "anthropic.com" or "claude"
    Anything else speaks OpenAI-compatible /chat/completions.

    Known limitation: an OpenAI-compatible proxy whose URL contains "claude"
    is routed to the Anthropic format.
    """
    if model and "claude" in model.lower():
        return TextProviderKind.ANTHROPIC
    base = base_url or ""
    if "anthropic.com" in base:
        return TextProviderKind.ANTHROPIC
    if "claude" in base:
        return TextProviderKind.ANTHROPIC
    return TextProviderKind.OPENAI_COMPATIBLE


def classify_image_provider(base_url: str) -> ImageProviderKind:
    base = base_url or ""
    if "dashscope.aliyuncs.com" in base:
        return ImageProviderKind.DASHSCOPE
    if "modelscope.cn" in base:
        return ImageProviderKind.MODELSCOPE
    return ImageProviderKind.OPENAI_COMPATIBLE
