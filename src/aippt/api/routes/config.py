# src/aippt/api/routes/config.py
from fastapi import APIRouter

from aippt.core.config import settings

router = APIRouter(prefix="/config", tags=["config"])

@router.get("")
def default_models():
    # Prefill values for the UI only; requests always carry their own config.
    return {
        "textModel": {
            "baseUrl": settings.TEXT_MODEL_BASE_URL,
            "apiKey": settings.TEXT_MODEL_API_KEY,
            "model": settings.TEXT_MODEL_NAME,
        },
        "imageModel": {
            "baseUrl": settings.IMAGE_MODEL_BASE_URL,
            "apiKey": settings.IMAGE_MODEL_API_KEY,
            "model": settings.IMAGE_MODEL_NAME,
        },
    }
