"""
Environment configuration for the OmniTrade Pulse backend.
Values come from the process environment, optionally loaded from a .env file.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        print(f"[CONFIG] Invalid float for {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw.isdigit() else default


# LLM backend (intelligence proxy)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
LLM_TIMEOUT_SECONDS = _env_float("LLM_TIMEOUT_SECONDS", 25.0)

# Image enrichment
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "dall-e-3")
IMAGE_ENRICHMENT_ENABLED = _env_bool("IMAGE_ENRICHMENT_ENABLED")

# Proxy access key (X-API-Key). Empty disables the check.
AGENT_API_KEY = os.getenv("AGENT_API_KEY", "")

# Intelligence client
INTELLIGENCE_URL = os.getenv("INTELLIGENCE_URL", "http://127.0.0.1:8000/api/omni-intelligence")
INTELLIGENCE_API_KEY = os.getenv("INTELLIGENCE_API_KEY", AGENT_API_KEY)
INTELLIGENCE_TIMEOUT_SECONDS = _env_float("INTELLIGENCE_TIMEOUT_SECONDS", 30.0)

# Timers
MARKET_TICK_SECONDS = _env_float("MARKET_TICK_SECONDS", 900.0)
CLOCK_TICK_SECONDS = _env_float("CLOCK_TICK_SECONDS", 1.0)
ANALYSIS_STARTUP_DELAY = _env_float("ANALYSIS_STARTUP_DELAY", 2.0)

# Price drift bound around the startup price, in percent. <= 0 disables.
MARKET_DRIFT_LIMIT_PCT = _env_float("MARKET_DRIFT_LIMIT_PCT", 25.0)

# Daily call budgets
DAILY_LLM_LIMIT = _env_int("DAILY_LLM_LIMIT", 500)
DAILY_IMAGE_LIMIT = _env_int("DAILY_IMAGE_LIMIT", 50)
