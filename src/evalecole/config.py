"""Configuration module for Éval'École.

This module provides centralized configuration management, including storage
backend selection, API server settings, session settings and the business
constants used by the scoring rules. All configuration values can be
overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.parent.resolve()

# Data directory (local store file, session slot, sqlite database)
DATA_DIR = Path(os.getenv("EVAL_ECOLE_DATA_DIR", str(ROOT_DIR / "data")))

# --- Storage Configuration ---

# "sql" uses the relational tables through SQLAlchemy, "local" uses a JSON
# key-value file shaped like the browser local storage of the web client.
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "sql").lower()

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/eval_ecole.db"
)
# SQLAlchemy loads dialect "postgresql", not "postgres"
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = "postgresql://" + DATABASE_URL[len("postgres://"):]

LOCAL_STORE_PATH = Path(
    os.getenv("LOCAL_STORE_PATH", str(DATA_DIR / "local_store.json"))
)

# Storage keys of the local store
USERS_KEY = "eval_ecole_users"
CLASSES_KEY = "eval_ecole_classes"
EVENTS_KEY = "eval_ecole_events"
# Bumped whenever the demo seed changes, to force a reseed
INIT_KEY = "eval_ecole_init_v5_final"

# --- Session Configuration ---

# Durable key-value slot used by the command-line client
SESSION_SLOT_PATH = Path(
    os.getenv("SESSION_SLOT_PATH", str(DATA_DIR / "session_slot.json"))
)
SESSION_KEY: str = "eval_ecole_session"

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-this-secret-key-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Scoring Configuration ---

# Timezone in which the Monday-to-Sunday week is computed
SCHOOL_TIMEZONE: str = os.getenv("SCHOOL_TIMEZONE", "Europe/Paris")

# Number of events listed in each half of an adult's drill-down
TOP_HIGHLIGHTS_LIMIT: int = int(os.getenv("TOP_HIGHLIGHTS_LIMIT", "10"))

# Number of adults shown in the global chart
TOP_CHART_SIZE: int = int(os.getenv("TOP_CHART_SIZE", "5"))

# Allowed values for a custom action
CUSTOM_POINT_CHOICES: List[int] = [-5, -4, -3, -2, -1, 1, 2, 3, 4, 5]

# Actor id and label of administrative score corrections
ADMIN_ADJUST_ACTOR_ID: str = "admin_adjust"
ADMIN_ADJUST_LABEL: str = "Ajustement administratif du score"

# --- Submission Configuration ---

# Time the success state is held before the flow resets
SUBMISSION_CONFIRMATION_SECONDS: float = float(
    os.getenv("SUBMISSION_CONFIRMATION_SECONDS", "1.5")
)

# Lifetime of a two-step confirmation token for destructive operations
CONFIRMATION_TTL_SECONDS: int = int(os.getenv("CONFIRMATION_TTL_SECONDS", "120"))

# --- Display Fallbacks ---

UNASSIGNED_LABEL: str = "unassigned"
UNKNOWN_LABEL: str = "unknown"
NO_DATA_LABEL: str = "Aucune donnée"

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: Optional[str] = os.getenv("LOG_FILE")


def get_data_dir() -> Path:
    """Return the data directory, creating it if needed."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR
