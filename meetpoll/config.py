import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./meetpoll.db")

# Deadline scheduler
# Set SCHEDULER_ENABLED=false when the sweeps run in a separate process (run_deadline_scheduler.py)
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
SCHEDULER_INTERVAL_SECONDS = float(os.getenv("SCHEDULER_INTERVAL_SECONDS", "60"))
# Hours after the deadline a host has to resolve a tie before the scheduler picks one
TIEBREAK_WINDOW_HOURS = int(os.getenv("TIEBREAK_WINDOW_HOURS", "24"))

# Public base URL used to build download links in API responses
PUBLIC_API_PREFIX = os.getenv("PUBLIC_API_PREFIX", "")

# Calendar export
ICS_PRODUCT_ID = os.getenv("ICS_PRODUCT_ID", "-//Meetpoll//Meetpoll App//EN")
ICS_UID_DOMAIN = os.getenv("ICS_UID_DOMAIN", "meetpoll.app")
ICS_DEFAULT_DURATION_HOURS = int(os.getenv("ICS_DEFAULT_DURATION_HOURS", "2"))

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")
