"""
Gemini-backed suggestion provider.

Builds a prompt per suggestion field, calls the model in a worker thread and
parses the answer into a short list of suggestions.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import google.generativeai as genai

from core.constants import MAX_SUGGESTIONS
from core.errors import LLMError
from core.logging import log_timing
from core.model_state import model_config
from filing.collaborators import SuggestionContext, SuggestionProvider
from utils.json_utils import parse_suggestion_lines

logger = logging.getLogger(__name__)


def _value(record: Dict[str, Any], key: str, default: str = "Not provided") -> str:
    value = record.get(key)
    if isinstance(value, list):
        value = ", ".join(str(item) for item in value)
    return str(value) if value not in (None, "", []) else default


def patent_improvement_prompt(context: SuggestionContext) -> str:
    record = context.record
    kind = _value(record, "inventionType", "utility")
    return f"""As a patent expert, review the following patent application details and provide specific suggestions for improvement:

Title: {_value(record, "title")}
Type: {kind}
Inventors: {_value(record, "inventorNames")}
Summary: {_value(record, "briefSummary")}

Please provide 3-5 specific suggestions for improving the patent application, focusing on:
1. Clarity and precision of the title
2. Completeness of the inventor information
3. Strength and comprehensiveness of the summary
4. Alignment with {kind} patent requirements
5. Potential areas for expansion or clarification

Format each suggestion as a clear, actionable item on its own numbered line."""


def claim_drafting_prompt(context: SuggestionContext) -> str:
    record = context.record
    existing = "\n".join(
        f"{claim.get('id')}. {claim.get('text')}" for claim in record.get("claims") or []
    ) or "None yet"
    return f"""As a patent attorney, draft patent claims for the invention below.

Title: {_value(record, "title")}
Technical Field: {_value(record, "technicalField")}
Detailed Description: {_value(record, "detailedDescription")}
Advantageous Effects: {_value(record, "advantageousEffects")}

Existing claims:
{existing}

Return 3-5 new claims as a JSON array of strings. Start with the broadest independent claim."""


def trademark_class_prompt(context: SuggestionContext) -> str:
    record = context.record
    return f"""As a trademark expert, suggest Nice classification classes for this mark.

Mark: {_value(record, "markName")}
Business Description: {_value(record, "businessDescription")}
Goods and services already listed: {json.dumps(record.get("goodsServices") or [])}

Return a JSON array of objects with "class" (the Nice class number) and "suggestion" (a goods/services description for that class)."""


def trademark_improvement_prompt(context: SuggestionContext) -> str:
    record = context.record
    return f"""As a trademark expert, review the following trademark application and provide specific suggestions for improvement:

Applicant: {_value(record, "applicantName")}
Mark: {_value(record, "markName")}
Mark Type: {_value(record, "markType")}
Filing Basis: {_value(record, "filingBasis")}
Goods and Services: {json.dumps(record.get("goodsServices") or [])}

Please provide 3-5 specific, actionable suggestions, each on its own numbered line."""


PROMPTS: Dict[str, Dict[str, Callable[[SuggestionContext], str]]] = {
    "patent": {
        "improvementSuggestions": patent_improvement_prompt,
        "claimSuggestions": claim_drafting_prompt,
    },
    "trademark": {
        "improvementSuggestions": trademark_improvement_prompt,
        "classSuggestions": trademark_class_prompt,
    },
}


def build_prompt(context: SuggestionContext) -> str:
    builder = PROMPTS.get(context.filing_type, {}).get(context.target_field)
    if builder is None:
        raise LLMError(
            f"No suggestion prompt for {context.filing_type} field {context.target_field}",
            details={"target_field": context.target_field},
        )
    prompt = builder(context)
    if context.extra.get("instructions"):
        prompt += f"\n\nAdditional instructions: {context.extra['instructions']}"
    return prompt


class GeminiSuggestionProvider(SuggestionProvider):
    """Suggestion provider calling Gemini through google-generativeai."""

    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None):
        self.model_name = model
        self.temperature = temperature

    def _generate_sync(self, prompt: str) -> str:
        if not model_config.ensure_configured():
            raise LLMError("API key not configured. Please set your Gemini API key in settings.")

        model = genai.GenerativeModel(self.model_name or model_config.model)
        generation_config = genai.types.GenerationConfig(
            temperature=self.temperature if self.temperature is not None else model_config.temperature
        )
        try:
            response = model.generate_content(prompt, generation_config=generation_config)
            return response.text
        except Exception as e:
            logger.error(f"LLM Error: {type(e).__name__}")
            raise LLMError(f"Suggestion request failed: {type(e).__name__}") from e

    async def suggest(self, context: SuggestionContext) -> List[str]:
        prompt = build_prompt(context)
        with log_timing(f"suggest {context.target_field}", logger):
            # Wrap sync call in thread for true async
            text = await asyncio.to_thread(self._generate_sync, prompt)
        suggestions = parse_suggestion_lines(text, limit=MAX_SUGGESTIONS)
        logger.info(
            f"Received {len(suggestions)} suggestions for {context.filing_type} {context.target_field}"
        )
        return suggestions
