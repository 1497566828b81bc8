import os

from dotenv import load_dotenv

load_dotenv()

_raw_origins = os.environ.get("CORS_ORIGINS", "*")
CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",")] if _raw_origins != "*" else ["*"]

# ── Coin economy ──────────────────────────────────────────────────────────────
STARTING_COINS   = int(os.environ.get("STARTING_COINS", "3"))
COIN_CODE_LENGTH = int(os.environ.get("COIN_CODE_LENGTH", "6"))
WRITE_ATTEMPTS   = int(os.environ.get("WRITE_ATTEMPTS", "3"))

# ── Event / login ─────────────────────────────────────────────────────────────
EVENT_DURATION_HOURS = float(os.environ.get("EVENT_DURATION_HOURS", "5"))
# Typing this name on the staff login yields the kitchen identity.
KITCHEN_LOGIN_NAME   = os.environ.get("KITCHEN_LOGIN_NAME", "cozinha")
SEED_DRINKS          = os.environ.get("SEED_DRINKS", "1") not in ("0", "false", "False", "")

# ── Sync ──────────────────────────────────────────────────────────────────────
POLL_INTERVAL_SECONDS = float(os.environ.get("POLL_INTERVAL_SECONDS", "2.0"))

# ── Description generator ─────────────────────────────────────────────────────
# Leave GEMINI_API_KEY blank to use the templated description only.
GEMINI_API_KEY              = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL                = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
DESCRIPTION_TIMEOUT_SECONDS = float(os.environ.get("DESCRIPTION_TIMEOUT_SECONDS", "8.0"))
