"""
API Request/Response schemas with input validation.

Record fields themselves are validated by the filing record models; these
schemas only cover the envelopes around them:
- Length constraints on free text
- Pattern validation for ids
- Range validation for numeric fields
- Enum validation for categorical fields
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from core.constants import MIN_NICE_CLASS, MAX_NICE_CLASS

# =============================================================================
# Constants for validation
# =============================================================================

MAX_TEXT_LENGTH = 50000
MAX_SHORT_TEXT_LENGTH = 500
ID_PATTERN = r"^[a-zA-Z0-9_-]+$"


# =============================================================================
# Model Configuration
# =============================================================================

class ModelConfigUpdate(BaseModel):
    """Update the suggestion model configuration."""
    suggestion: Optional[str] = Field(None, max_length=100)
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)


class ApiKeyUpdate(BaseModel):
    """Update the Gemini API key (empty string to clear)."""
    api_key: str = Field("", max_length=200)


# =============================================================================
# Session Schemas
# =============================================================================

class FilingTypeRequest(BaseModel):
    filing_type: Literal["patent", "trademark"]


class FieldPatchRequest(BaseModel):
    """Shallow patch of record fields, keyed by field name (camelCase or snake_case)."""
    fields: Dict[str, Any] = Field(..., description="Field name to value")


class ClaimCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    kind: Literal["independent", "dependent"] = "independent"
    parent_id: Optional[str] = Field(None, max_length=50)
    claim_id: Optional[str] = Field(None, max_length=50)


class PriorArtCreate(BaseModel):
    reference: str = Field(..., min_length=1, max_length=MAX_SHORT_TEXT_LENGTH)
    type: Optional[str] = Field(None, max_length=50)
    relevance: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)


class GoodsServiceCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    nice_class: int = Field(..., ge=MIN_NICE_CLASS, le=MAX_NICE_CLASS)
    industry: Optional[str] = Field(None, max_length=MAX_SHORT_TEXT_LENGTH)
    target_market: Optional[str] = Field(None, max_length=MAX_SHORT_TEXT_LENGTH)


class SuggestionRequest(BaseModel):
    target_field: Literal["improvementSuggestions", "claimSuggestions", "classSuggestions"]
    instructions: Optional[str] = Field(None, max_length=2000)


class SaveRequest(BaseModel):
    owner_id: str = Field(..., min_length=1, max_length=255, pattern=ID_PATTERN)


class TransitionResponse(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    missingFields: List[str] = Field(default_factory=list)
    errors: Dict[str, str] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    result: TransitionResponse
    session: Dict[str, Any]
