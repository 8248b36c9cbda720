"""
System router - health check and suggestion model settings.
"""

from fastapi import APIRouter

from api.schemas import ApiKeyUpdate, ModelConfigUpdate
from core.model_state import model_config

router = APIRouter()


@router.get("/health")
def health_check():
    """Publicly accessible."""
    return {"status": "ok", "service": "IP Filing Assistant Backend"}


@router.get("/config/models")
def get_model_config():
    return model_config.as_dict()


@router.post("/config/models")
def update_model_config(update: ModelConfigUpdate):
    settings = model_config.update(model=update.suggestion, temperature=update.temperature)
    return {"status": "updated", "config": settings}


@router.get("/config/api-key")
def get_api_key_status():
    return {
        "api_key_configured": model_config.is_configured(),
        "key_preview": model_config.key_preview,
    }


@router.post("/config/api-key")
def update_api_key(update: ApiKeyUpdate):
    """Set the Gemini API key used for suggestions; an empty string clears it."""
    model_config.set_api_key(update.api_key)
    model_config.ensure_configured()
    return {"status": "updated", "api_key_configured": model_config.is_configured()}
