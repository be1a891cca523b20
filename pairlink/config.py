# ============================================
#     PairLink - Global Configuration
# ============================================

import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# =========================================
#   ENVIRONMENT
# =========================================
# Expected values: "dev", "prod"
ENV = os.getenv("ENV", "dev").lower()

IS_PROD = ENV == "prod"

PORT = int(os.getenv("PORT", "8000"))

# =========================================
#   CORS
# =========================================
# In prod only the deployed frontend may connect.
FRONTEND_URL = os.getenv("FRONTEND_URL", "")

DEV_ORIGINS = ["http://localhost:8000", "http://localhost:5173"]

CORS_ALLOWED_ORIGINS = (
    _env_list("CORS_ALLOWED_ORIGINS", FRONTEND_URL)
    if IS_PROD
    else _env_list("CORS_ALLOWED_ORIGINS", ",".join(DEV_ORIGINS))
)

# =========================================
#   TRANSPORT (Engine.IO)
# =========================================
MAX_HTTP_BUFFER_SIZE = int(os.getenv("MAX_HTTP_BUFFER_SIZE", str(10 * 1000 * 1000)))
PING_TIMEOUT = int(os.getenv("PING_TIMEOUT", "60"))      # seconds
PING_INTERVAL = int(os.getenv("PING_INTERVAL", "25"))    # seconds

# =========================================
#   SESSIONS
# =========================================
SESSION_TIMEOUT_SECONDS = int(os.getenv("SESSION_TIMEOUT_SECONDS", str(30 * 60)))
CLEANUP_INTERVAL_SECONDS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "60"))
MAX_USERS_PER_SESSION = 2       # Pairing only, never configurable

# =========================================
#   SESSION CODES
# =========================================
# No 0/O, 1/I: codes are read aloud and typed by hand.
CODE_ALPHABET = os.getenv("CODE_ALPHABET", "ABCDEFGHJKLMNPQRSTUVW23456789")
CODE_LENGTH = int(os.getenv("CODE_LENGTH", "6"))
CODE_MAX_ATTEMPTS = int(os.getenv("CODE_MAX_ATTEMPTS", "10"))

# =========================================
#   RELAY POLICY
# =========================================
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "5000"))   # chars
MAX_FILENAME_LENGTH = int(os.getenv("MAX_FILENAME_LENGTH", "255"))  # chars
MAX_MEDIA_SIZE = int(os.getenv("MAX_MEDIA_SIZE", str(5 * 1000 * 1000)))  # bytes

# When disabled, media is relayed without type / size checks.
MEDIA_POLICY_ENABLED = _env_bool("MEDIA_POLICY_ENABLED", "true")

ALLOWED_MEDIA_TYPES = _env_list(
    "ALLOWED_MEDIA_TYPES",
    "image/jpeg,image/png,image/gif,image/webp,audio/mpeg,audio/wav,audio/ogg",
)

# =========================================
#   LOGGING
# =========================================
# Project root = one level above /pairlink
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

LOG_DIR = os.getenv("PAIRLINK_LOG_DIR", os.path.join(PROJECT_ROOT, "var", "logs"))
DEFAULT_LOG_FILE = os.path.join(LOG_DIR, "pairlink.log")
LOG_FILE = os.getenv("PAIRLINK_LOG_FILE", DEFAULT_LOG_FILE)
LOG_LEVEL = os.getenv("PAIRLINK_LOG_LEVEL", "INFO").upper()

# Rotating file in prod, console in dev (unless forced)
LOG_TO_FILE = _env_bool("PAIRLINK_LOG_TO_FILE", "true" if IS_PROD else "false")
