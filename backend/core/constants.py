"""
Centralized constants for the filing backend.

Fixed vocabularies, thresholds and limits shared by the session core and the API.
"""

from typing import Dict, FrozenSet, Tuple

# =============================================================================
# Server Configuration
# =============================================================================

DEFAULT_PORT = 8000
DEFAULT_HOST = "0.0.0.0"

# =============================================================================
# Wizard Steps
# =============================================================================

PATENT_STEPS: Tuple[str, ...] = (
    "Basic Info",
    "Detailed Description",
    "Prior Art",
    "Claims",
)

TRADEMARK_STEPS: Tuple[str, ...] = (
    "Basic Info",
    "Goods & Services",
    "Usage Evidence",
)

# =============================================================================
# Jurisdictions
# =============================================================================

JURISDICTIONS: Tuple[str, ...] = ("uspto", "euipo", "india")

# Detailed description must exceed this many characters to count as complete
SPECIFICATION_MIN_LENGTH = 200

# =============================================================================
# Scoring
# =============================================================================

CHECK_WEIGHTS: Dict[str, float] = {
    "pass": 1.0,
    "warn": 0.5,
    "fail": 0.0,
}

MIN_SCORE = 0
MAX_SCORE = 100

# Score nudges applied when uploads change
UPLOAD_ADDED_SCORE_DELTA = 10
UPLOAD_REMOVED_SCORE_DELTA = 5

# =============================================================================
# Uploads
# =============================================================================

PATENT_UPLOAD_CATEGORIES: Dict[str, str] = {
    "drawings": "Technical Drawings",
    "priorArt": "Prior Art References",
    "assignmentDocs": "Assignment Documents",
    "inventor": "Inventor Declarations",
}

TRADEMARK_UPLOAD_CATEGORIES: Dict[str, str] = {
    "logo": "Logo/Mark Image",
    "specimens": "Specimens of Use",
    "consent": "Consent Documents",
    "foreignReg": "Foreign Registration",
}

ALLOWED_UPLOAD_TYPES: FrozenSet[str] = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/tiff",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

FILE_CHUNK_SIZE_BYTES = 1024 * 1024  # 1MB chunks for file reading
MAX_FILENAME_LENGTH = 255

# =============================================================================
# Trademark vocabulary
# =============================================================================

MIN_NICE_CLASS = 1
MAX_NICE_CLASS = 45

FILING_BASIS_ALIASES: Dict[str, str] = {
    "use": "use_in_commerce",
    "intent": "intent_to_use",
    "foreign": "foreign_registration",
}

# =============================================================================
# Suggestions
# =============================================================================

MAX_SUGGESTIONS = 5

# =============================================================================
# Rate Limits
# =============================================================================

RATE_LIMIT_UPLOAD = "10/minute"
RATE_LIMIT_GENERATE = "20/minute"
RATE_LIMIT_SESSION = "120/minute"
