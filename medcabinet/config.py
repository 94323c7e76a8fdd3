"""Configuration for the medcabinet scheduling engine."""
import os
from dotenv import load_dotenv

# Load environment variables but prioritize local development
load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

# Use the DATABASE_URL from environment variable, with fallback to SQLite for local dev
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./medcabinet.db")

# Timezone used to turn (day, time-of-day) pairs into reminder trigger instants
TIMEZONE = os.environ.get("MEDCABINET_TIMEZONE", "UTC")

# End-date picker reconciliation windows; the settle window must exceed the
# picker's own scroll animation
SETTLE_WINDOW_SECONDS = _float_env("MEDCABINET_SETTLE_WINDOW_MS", 250) / 1000.0
MANUAL_STICKY_SECONDS = _float_env("MEDCABINET_MANUAL_STICKY_MS", 700) / 1000.0

# Computed end dates after Dec 31 of (current year + horizon) are rejected
HORIZON_YEARS = _int_env("MEDCABINET_HORIZON_YEARS", 100)

# Reminder delivery
REMINDERS_ENABLED = _bool_env("MEDCABINET_REMINDERS_ENABLED", True)
REMINDER_CHANNEL = os.environ.get("MEDCABINET_REMINDER_CHANNEL", "medication-reminders")
PUBSUB_NAME = os.environ.get("MEDCABINET_PUBSUB_NAME", "reminder-pubsub")
REMINDER_TOPIC = os.environ.get("MEDCABINET_REMINDER_TOPIC", "reminders")
