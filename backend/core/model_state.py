"""
Runtime settings for the Gemini suggestion model.

The model name and temperature start from configuration and can be changed
through the /config endpoints. The API key only ever arrives at runtime.
"""

import logging
from typing import Any, Dict, Optional

import google.generativeai as genai

from .config import LLM_SUGGESTION_MODEL, LLM_TEMPERATURE

logger = logging.getLogger(__name__)


class SuggestionModelSettings:
    def __init__(self, model: str = LLM_SUGGESTION_MODEL, temperature: float = LLM_TEMPERATURE):
        self.model = model
        self.temperature = temperature
        self._api_key: Optional[str] = None
        self._applied_key: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"suggestion": self.model, "temperature": self.temperature}

    def update(self, model: Optional[str] = None, temperature: Optional[float] = None) -> Dict[str, Any]:
        if model:
            self.model = model
        if temperature is not None:
            self.temperature = temperature
        logger.info(f"Suggestion model set to {self.model} (temperature {self.temperature})")
        return self.as_dict()

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    @property
    def key_preview(self) -> Optional[str]:
        return f"{self._api_key[:8]}..." if self._api_key else None

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def set_api_key(self, key: Optional[str]) -> None:
        """Store the key; blank clears it."""
        self._api_key = key.strip() if key and key.strip() else None
        logger.info(f"Gemini API key {'configured' if self._api_key else 'cleared'}")

    def ensure_configured(self) -> bool:
        """Hand the current key to google-generativeai. False when there is no key."""
        if not self._api_key:
            return False
        if self._api_key != self._applied_key:
            genai.configure(api_key=self._api_key)
            self._applied_key = self._api_key
        return True


model_config = SuggestionModelSettings()
