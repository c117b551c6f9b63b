# src/aippt/services/page_generator.py
from __future__ import annotations

import base64
import re
from typing import Dict, List, Optional, Tuple

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import DownloadError, ProviderFormatError
from aippt.schemas import Artifact, ImageResult, ModelEndpointConfig, Page, Template
from aippt.services.artifacts import artifact_filename, download_image, write_bytes, write_text
from aippt.services.gateway import ModelGateway
from aippt.services.templates import template_prompt_context

log = get_logger(__name__)

DEFAULT_RATIO = "16:9"

RATIO_DIMENSIONS: Dict[str, Tuple[int, int]] = {
    "16:9": (1280, 720),
    "4:3":  (1024, 768),
    "1:1":  (1024, 1024),
    "3:4":  (768, 1024),
    "9:16": (720, 1280),
}

DEFAULT_COLORS = ["#1a1a2e", "#16213e", "#0f3460", "#e94560"]
DEFAULT_FONT = "'Noto Sans SC', 'Microsoft YaHei', sans-serif"
DEFAULT_STYLE = "modern business style, clean and professional"

_HTML_FENCE = re.compile(r"```(?:html)?\s*([\s\S]*?)```")


def get_dimensions(ratio: Optional[str]) -> Tuple[int, int]:
    return RATIO_DIMENSIONS.get(ratio or "", RATIO_DIMENSIONS[DEFAULT_RATIO])


def _position_hints(page_index: int, total_pages: int) -> List[str]:
    hints = []
    if page_index == 0:
        hints.append("This is the cover page: use a large, eye-catching headline.")
    if page_index == total_pages - 1:
        hints.append("This is the closing page: summary / thank-you.")
    return hints


# ---------- image model prompt ----------

def build_image_prompt(page: Page, page_index: int, total_pages: int,
                       template: Optional[Template] = None, design_style: Optional[str] = None,
                       detail_level: Optional[str] = None, ratio: Optional[str] = None) -> str:
    lines = [
        f"Generate a presentation slide image. This is page {page_index + 1} of {total_pages}.",
        "",
        f"Title: {page.title}",
    ]
    if page.key_points:
        lines += ["", "Key points:"] + [f"{i}. {p}" for i, p in enumerate(page.key_points, 1)]
    if page.content:
        lines += ["", f"Content: {page.content}"]
    if page.emphasis:
        lines += ["", f"Emphasis: {page.emphasis}"]

    lines += ["", "Design requirements:", f"- Style: {design_style or DEFAULT_STYLE}"]
    if template is not None:
        lines.append(f"- Design theme: {template.name}, main colours: {'/'.join(template.colors)}")
        lines.append(f"- {'Cover' if page_index == 0 else 'Content page'} style: "
                     f"{template.cover_style if page_index == 0 else template.content_style}")
    lines += [
        f"- Layout suggestion: {page.layout_suggestion or 'automatic'}",
        "- Write all slide text in the same language as the content above",
        f"- Slide aspect ratio {ratio or DEFAULT_RATIO}",
        "- A professional slide design combining text and visuals",
    ]
    if detail_level == "brief":
        lines += ["- Keep the points short", "- Avoid long passages, prefer keywords"]
    elif detail_level == "detailed":
        lines += ["- Expand each point in detail", "- Keep the information complete and well argued"]
    lines += [f"- {h}" for h in _position_hints(page_index, total_pages)]
    return "\n".join(lines)


# ---------- HTML fallback ----------

def build_html_system_prompt(page_index: int, total_pages: int, template: Optional[Template] = None,
                             detail_level: Optional[str] = None, ratio: Optional[str] = None) -> str:
    width, height = get_dimensions(ratio)
    colors = template.colors if template is not None and template.colors else DEFAULT_COLORS
    font = template.font_family if template is not None and template.font_family else DEFAULT_FONT
    if detail_level == "brief":
        detail = "Keep the text lean: short bullet phrasing, no long paragraphs."
    elif detail_level == "detailed":
        detail = "Make the text rich: develop each point fully so the page carries enough information."
    else:
        detail = "Present the content clearly."

    rules = [
        f"The page is exactly {width}x{height} pixels (aspect ratio {ratio or DEFAULT_RATIO}).",
        "Use inline CSS only.",
        "The design must be modern, professional and attractive.",
        f"Main colours: {', '.join(colors)}.",
        f"Font: {font}.",
        "Use tasteful gradient backgrounds and shadows.",
        "Write all text in the same language as the page content.",
        "Do not load any external resources (draw imagery with CSS gradients or inline SVG).",
        "Return only the complete HTML document, with no other text.",
        detail,
    ]
    out = (
        "You are a professional slide designer. Produce one complete, self-contained HTML page "
        "that looks like a presentation slide.\nRequirements:\n"
        + "\n".join(f"{i}. {r}" for i, r in enumerate(rules, 1))
        + f"\n\nThis is page {page_index + 1} of {total_pages}."
    )
    hints = _position_hints(page_index, total_pages)
    if hints:
        out += "\n" + "\n".join(hints)
    return out + template_prompt_context(template)


def build_html_user_message(page: Page) -> str:
    lines = [f"Title: {page.title}"]
    if page.key_points:
        lines.append("Key points:\n" + "\n".join(page.key_points))
    if page.content:
        lines.append(f"Content: {page.content}")
    if page.emphasis:
        lines.append(f"Emphasis: {page.emphasis}")
    lines.append(f"Layout suggestion: {page.layout_suggestion or 'automatic'}")
    return "\n".join(lines)


def strip_html_fence(text: str) -> str:
    html = (text or "").strip()
    m = _HTML_FENCE.search(html)
    return m.group(1).strip() if m else html


async def generate_html_slide(gateway: ModelGateway, page: Page, page_index: int, total_pages: int,
                              text_model_config: Optional[ModelEndpointConfig],
                              template: Optional[Template] = None, detail_level: Optional[str] = None,
                              ratio: Optional[str] = None) -> str:
    messages = [
        {"role": "system", "content": build_html_system_prompt(page_index, total_pages, template, detail_level, ratio)},
        {"role": "user", "content": build_html_user_message(page)},
    ]
    raw = await gateway.call_text_model(
        text_model_config, messages, temperature=0.8, max_tokens=settings.HTML_MAX_TOKENS,
    )
    return strip_html_fence(raw)


# ---------- pipeline ----------

async def _persist_image(gateway: ModelGateway, image: ImageResult, session_id: str, page_index: int) -> Artifact:
    name = artifact_filename(session_id, page_index, "png")
    if image.b64_json:
        path = await write_bytes(name, base64.b64decode(image.b64_json))
        return Artifact(image_url=path, method="image_model")
    if image.url:
        try:
            data = await download_image(image.url, transport=gateway.transport)
        except DownloadError as e:
            log.warning("image download failed, passing remote URL through: %s", e.detail)
            return Artifact(image_url=image.url, method="image_model")
        path = await write_bytes(name, data)
        return Artifact(image_url=path, method="image_model")
    raise ProviderFormatError(detail="Image result carries neither url nor b64_json")


async def generate_page_image(
    gateway: ModelGateway,
    page: Page,
    page_index: int,
    total_pages: int,
    *,
    session_id: str,
    image_model_config: Optional[ModelEndpointConfig] = None,
    text_model_config: Optional[ModelEndpointConfig] = None,
    template: Optional[Template] = None,
    design_style: Optional[str] = None,
    detail_level: Optional[str] = None,
    ratio: Optional[str] = None,
) -> Artifact:
    """
    Try the image model first, then fall back to an HTML slide.
    Image-provider failures are logged and never raised; the text model then
    renders the page as a standalone HTML document.
    """
    if image_model_config is not None and image_model_config.is_configured():
        prompt = build_image_prompt(page, page_index, total_pages, template, design_style, detail_level, ratio)
        try:
            images = await gateway.call_image_model(image_model_config, prompt, size=ratio or DEFAULT_RATIO)
            if not images:
                raise ProviderFormatError(detail="Image model returned no images")
            return await _persist_image(gateway, images[0], session_id, page_index)
        except Exception as e:
            log.warning("image model failed, falling back to HTML generation: %s", e)

    html = await generate_html_slide(
        gateway, page, page_index, total_pages, text_model_config, template, detail_level, ratio,
    )
    path = await write_text(artifact_filename(session_id, page_index, "html"), html)
    return Artifact(image_url=path, html_content=html, method="html_generation")
