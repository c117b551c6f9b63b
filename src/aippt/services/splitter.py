# src/aippt/services/splitter.py
from __future__ import annotations

from typing import List, Optional

from pydantic import ValidationError

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import ParseError
from aippt.schemas import ModelEndpointConfig, Page, Template
from aippt.services.gateway import ModelGateway
from aippt.services.json_repair import parse_json_array

log = get_logger(__name__)

_CONTENT_RULE = {
    "brief": "content: brief body text shown on the page; keep it concise, distil the core idea, avoid long passages",
    "detailed": "content: detailed body text shown on the page; be as thorough as possible, explain in depth and give supporting arguments or description",
}
_DEFAULT_CONTENT_RULE = "content: body text shown on the page; make it substantial rather than sketchy"


def build_split_prompt(page_count: int, template: Optional[Template] = None,
                       detail_level: Optional[str] = None) -> str:
    content_rule = _CONTENT_RULE.get(detail_level or "", _DEFAULT_CONTENT_RULE)
    template_hint = ""
    if template is not None:
        template_hint = (
            f"\nTemplate style reference: {template.name}, palette: {', '.join(template.colors)}, "
            f"layout style: {template.layout_style}"
        )
    return (
        "You are a professional presentation content planner. Split the material the user "
        f"provides into exactly {page_count} slide pages.\n"
        "Every page must contain:\n"
        "1. title: the page title (short and strong)\n"
        "2. keyPoints: a list of 3-5 key points\n"
        f"3. {content_rule}\n"
        "4. emphasis: the single most important sentence or keyword of the page\n"
        "5. layoutSuggestion: a layout suggestion (e.g. \"image left, text right\", "
        "\"full-bleed image with text overlay\", \"data chart\")\n"
        f"{template_hint}\n\n"
        "Make sure that:\n"
        "- Page 1 is the cover page with a main title and subtitle\n"
        "- The last page is a summary page\n"
        "- Content is evenly distributed and flows logically\n"
        "- All text is written in the same language as the material\n\n"
        "Respond with a JSON array only, with no other text."
    )


async def split_content(
    gateway: ModelGateway,
    text: str,
    page_count: int,
    text_model_config: ModelEndpointConfig,
    template: Optional[Template] = None,
    detail_level: Optional[str] = None,
) -> List[Page]:
    messages = [
        {"role": "system", "content": build_split_prompt(page_count, template, detail_level)},
        {"role": "user", "content": f"Here is the material to split into {page_count} slide pages:\n\n{text}"},
    ]
    raw = await gateway.call_text_model(
        text_model_config,
        messages,
        temperature=0.7,
        max_tokens=settings.SPLIT_MAX_TOKENS,
    )
    items = parse_json_array(raw)
    try:
        pages = [Page.model_validate(it) for it in items if isinstance(it, dict)]
    except ValidationError as e:
        raise ParseError(detail=f"AI response pages have an unexpected shape: {e}", text=raw) from e
    if len(pages) != page_count:
        log.warning("model returned %d pages, %d requested", len(pages), page_count)
    return pages
