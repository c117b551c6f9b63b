# src/aippt/services/templates.py
from __future__ import annotations

from typing import Dict, List, Optional

from aippt.schemas import Template

_CJK_FONT = "'Noto Sans SC', 'Microsoft YaHei', sans-serif"

# ---------- built-in templates ----------

BUILTIN_TEMPLATES: Dict[str, Template] = {
    t.id: t for t in (
        Template(
            id="business",
            name="Business Professional",
            description="Deep blue palette, clean and professional",
            colors=["#0a1628", "#1a365d", "#2b6cb0", "#63b3ed", "#ffffff"],
            font_family=_CJK_FONT,
            layout_style="Symmetric and balanced, generous whitespace, data visualisation",
            cover_style="Centered large title, subtitle below, gradient background",
            content_style="Title bar on the left, content area on the right",
            thumbnail="📊",
        ),
        Template(
            id="education",
            name="Education & Training",
            description="Bright colours, lively teaching style",
            colors=["#1a1a2e", "#f39c12", "#e74c3c", "#2ecc71", "#ffffff"],
            font_family=_CJK_FONT,
            layout_style="Mixed text and graphics, coloured blocks, interactive feel",
            cover_style="Playful title treatment with icons or illustrations",
            content_style="Card layout with prominent key points",
            thumbnail="📚",
        ),
        Template(
            id="creative",
            name="Creative Design",
            description="Bold colours and irregular composition",
            colors=["#0f0f23", "#ff6b6b", "#ffd93d", "#6bcb77", "#4d96ff"],
            font_family=_CJK_FONT,
            layout_style="Irregular layout, large colour fields, artistic",
            cover_style="High-impact visual, oversized type",
            content_style="Free-form layout with creative graphic elements",
            thumbnail="🎨",
        ),
        Template(
            id="minimal",
            name="Minimal",
            description="Black, white and grey; minimal and elegant",
            colors=["#ffffff", "#f5f5f5", "#333333", "#666666", "#000000"],
            font_family=_CJK_FONT,
            layout_style="Lots of whitespace, minimal composition",
            cover_style="Text only, minimal design",
            content_style="Single column, text first",
            thumbnail="⬜",
        ),
        Template(
            id="tech",
            name="Future Tech",
            description="Dark background with neon accents",
            colors=["#0a0e27", "#1a1a3e", "#00d4ff", "#7c3aed", "#10b981"],
            font_family=_CJK_FONT,
            layout_style="Grid with glow effects, dashboard style",
            cover_style="Dark background with glowing headline",
            content_style="Cards on a grid, gradient highlights",
            thumbnail="🔮",
        ),
    )
}


def get_templates() -> List[Template]:
    return list(BUILTIN_TEMPLATES.values())


def get_template_by_id(template_id: Optional[str]) -> Optional[Template]:
    if not template_id:
        return None
    return BUILTIN_TEMPLATES.get(template_id)


def template_prompt_context(template: Optional[Template]) -> str:
    if template is None:
        return ""
    return (
        "\nSlide template guidelines:\n"
        f"- Template: {template.name}\n"
        f"- Description: {template.description}\n"
        f"- Palette: {', '.join(template.colors)}\n"
        f"- Font: {template.font_family}\n"
        f"- Layout style: {template.layout_style}\n"
        f"- Cover style: {template.cover_style}\n"
        f"- Content page style: {template.content_style}\n"
        "Follow these guidelines on every page so the deck keeps one consistent look."
    )
