import os
from pathlib import Path
from dotenv import load_dotenv

# Load Environment
script_dir = Path(__file__).resolve().parent.parent
project_root = Path(__file__).resolve().parent.parent.parent
env_path_local = project_root / ".env.local"
env_path_main = project_root / ".env"

if env_path_local.exists():
    load_dotenv(dotenv_path=env_path_local)
elif env_path_main.exists():
    load_dotenv(dotenv_path=env_path_main)
else:
    load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


# API access
FILING_API_KEY = os.getenv("FILING_API_KEY")
DISABLE_AUTH = _env_flag("DISABLE_AUTH")
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173,http://localhost:8080"
)

# File Upload Limits
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(script_dir / "uploads")))
PUBLIC_BLOB_BASE_URL = os.getenv("PUBLIC_BLOB_BASE_URL", "/blobs")

# Application store
DATABASE_URL = os.getenv(
    "DATABASE_URL", f"sqlite:///{script_dir / 'filing_applications.db'}"
)
SQL_ECHO = _env_flag("SQL_ECHO")

# Suggestion provider (Gemini)
# The API key is supplied at runtime through core.model_state, never from .env
LLM_SUGGESTION_MODEL = os.getenv("LLM_SUGGESTION_MODEL", "gemini-2.5-flash")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))

# Session behaviour
# Development: contract violations raise. Production: they are logged and rejected.
STRICT_INVARIANTS = _env_flag("STRICT_INVARIANTS")
# Intent-to-use trademark filings swap proof of use for a description of intended use
INTENT_TO_USE_RELAXES_USAGE_EVIDENCE = _env_flag(
    "INTENT_TO_USE_RELAXES_USAGE_EVIDENCE", "true"
)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = _env_flag("LOG_JSON")
