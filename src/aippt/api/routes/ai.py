# src/aippt/api/routes/ai.py
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from aippt.core.ctx import set_ctx
from aippt.core.logging import get_logger
from aippt.schemas import GeneratePageRequest, Page, RegeneratePageRequest, SplitRequest
from aippt.services.artifacts import SessionArtifacts
from aippt.services.gateway import ModelGateway
from aippt.services.page_generator import generate_page_image
from aippt.services.splitter import split_content
from aippt.services.templates import get_template_by_id, get_templates

log = get_logger(__name__)

router = APIRouter(prefix="/ai")


def _gateway(request: Request) -> ModelGateway:
    return request.app.state.gateway

def _artifacts(request: Request) -> SessionArtifacts:
    return request.app.state.artifacts

def _bad_request(msg: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": msg})


@router.post("/split")
async def split(body: SplitRequest, request: Request):
    if not body.text or not body.page_count:
        return _bad_request("Provide both text and pageCount")
    cfg = body.text_model_config
    if cfg is None or not (cfg.api_key and cfg.base_url and cfg.model):
        return _bad_request("Configure the text model API key, base URL and model name")

    pages = await split_content(
        _gateway(request),
        body.text,
        body.page_count,
        cfg,
        template=get_template_by_id(body.template_id),
        detail_level=body.detail_level,
    )
    log.info("split into %d pages", len(pages))
    return {"pages": [p.model_dump(by_alias=True) for p in pages]}


async def _generate(request: Request, body: GeneratePageRequest, page: Optional[Page]):
    if page is None:
        return _bad_request("Provide pageData")
    img, txt = body.image_model_config, body.text_model_config
    if not (img and img.is_configured()) and not (txt and txt.is_configured()):
        return _bad_request("Configure at least one model (image model or text model)")

    session_id = body.session_id or str(int(time.time() * 1000))
    set_ctx(session_id=session_id, page_index=body.page_index)

    artifact = await generate_page_image(
        _gateway(request),
        page,
        body.page_index,
        body.total_pages,
        session_id=session_id,
        image_model_config=img,
        text_model_config=txt,
        template=get_template_by_id(body.template_id),
        design_style=body.design_style,
        detail_level=body.detail_level,
        ratio=body.ratio,
    )
    _artifacts(request).record(session_id, body.page_index, artifact)
    out: Dict[str, Any] = artifact.model_dump(by_alias=True, exclude_none=True)
    out["sessionId"] = session_id
    return out


@router.post("/generate-page")
async def generate_page(body: GeneratePageRequest, request: Request):
    return await _generate(request, body, body.page_data)


@router.post("/regenerate-page")
async def regenerate_page(body: RegeneratePageRequest, request: Request):
    page = body.page_data
    if page is not None and body.custom_prompt:
        page = page.model_copy(update={
            "content": f"{page.content}\n\nAdditional user request: {body.custom_prompt}",
        })
    return await _generate(request, body, page)


@router.get("/templates")
def templates():
    return {"templates": [t.model_dump(by_alias=True) for t in get_templates()]}


@router.get("/sessions/{session_id}/artifacts")
def session_artifacts(session_id: str, request: Request):
    items = _artifacts(request).list(session_id)
    return {
        "sessionId": session_id,
        "artifacts": {str(i): a.model_dump(by_alias=True, exclude_none=True) for i, a in items.items()},
    }


@router.delete("/sessions/{session_id}/artifacts")
def reset_session(session_id: str, request: Request):
    return {"sessionId": session_id, "removed": _artifacts(request).reset(session_id)}
