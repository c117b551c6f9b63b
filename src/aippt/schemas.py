"""
Pydantic v2 models shared by the gateways, the pipeline and the HTTP routes.

Wire names are camelCase (``baseUrl``, ``keyPoints``...); Python attributes are
snake_case. Always dump with ``by_alias=True`` when talking to the UI.

Usage:
- cfg = ModelEndpointConfig.model_validate({"baseUrl": "...", "apiKey": "...", "model": "..."})
"""

from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModelEndpointConfig(_Wire):
    base_url: str = ""
    api_key: str = ""
    model: str = ""

    def is_configured(self) -> bool:
        """baseUrl and apiKey are both present (model may be provider-defaulted)."""
        return bool(self.base_url.strip() and self.api_key.strip())


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class Page(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    title: str = ""
    key_points: List[str] = Field(default_factory=list)
    content: str = ""
    emphasis: str = ""
    layout_suggestion: str = ""

    @field_validator("key_points", mode="before")
    @classmethod
    def _coerce_points(cls, v):
        if v is None:
            return []
        if isinstance(v, dict):
            v = list(v.values())
        if not isinstance(v, (list, tuple)):
            return [str(v)]
        return [p if isinstance(p, str) else str(p) for p in v]

    @field_validator("title", "content", "emphasis", "layout_suggestion", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return "" if v is None else (v if isinstance(v, str) else str(v))


class ImageResult(BaseModel):
    url: Optional[str] = None
    b64_json: Optional[str] = None


class Artifact(_Wire):
    image_url: str
    html_content: Optional[str] = None
    method: Literal["image_model", "html_generation"]


class Template(_Wire):
    id: str
    name: str
    description: str = ""
    colors: List[str] = Field(default_factory=list)
    font_family: str = ""
    layout_style: str = ""
    cover_style: str = ""
    content_style: str = ""
    thumbnail: str = ""


DetailLevel = Optional[str]  # "brief" | "detailed" | None (balanced)


class SplitRequest(_Wire):
    text: Optional[str] = None
    page_count: Optional[int] = None
    text_model_config: Optional[ModelEndpointConfig] = None
    template_id: Optional[str] = None
    detail_level: DetailLevel = None


class GeneratePageRequest(_Wire):
    page_data: Optional[Page] = None
    page_index: int = 0
    total_pages: int = 1
    template_id: Optional[str] = None
    image_model_config: Optional[ModelEndpointConfig] = None
    text_model_config: Optional[ModelEndpointConfig] = None
    design_style: Optional[str] = None
    session_id: Optional[str] = None
    detail_level: DetailLevel = None
    ratio: Optional[str] = None


class RegeneratePageRequest(GeneratePageRequest):
    custom_prompt: Optional[str] = None
