import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload (and not get
# stuck on old environment variables).
#
# For automated tests (SQLite), we need to prevent backend/.env from overriding the
# test DATABASE_URL. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_bool(name: str, default: str = "1") -> bool:
    v = (os.getenv(name, default) or default).strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
# Use an absolute path so it works regardless of current working directory.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")

# -------------------- Application lifecycle --------------------
# Status every new application starts in. Created on demand if the lookup table lacks it.
INITIAL_APPLICATION_STATUS = (os.getenv("INITIAL_APPLICATION_STATUS") or "Applied").strip()

# Statuses seeded at startup. Admins can add more later through the API.
DEFAULT_APPLICATION_STATUSES = [
    s.strip()
    for s in (
        os.getenv("DEFAULT_APPLICATION_STATUSES")
        or "Applied,Screening,Shortlisted,Interview,Selected,Rejected,On Hold"
    ).split(",")
    if s.strip()
]

# -------------------- Scoring --------------------
# Fallback weights used when a position has no configuration yet (sum = 100).
DEFAULT_SKILL_MATCH_WEIGHT = 30.0
DEFAULT_EXPERIENCE_WEIGHT = 20.0
DEFAULT_INTERVIEW_WEIGHT = 30.0
DEFAULT_TEST_WEIGHT = 15.0
DEFAULT_EDUCATION_WEIGHT = 5.0

# -------------------- Notifications --------------------
NOTIFICATIONS_ENABLED = _env_bool("NOTIFICATIONS_ENABLED", "1")

# SMTP (Gmail App Password recommended)
SMTP_HOST = (os.getenv("SMTP_HOST") or "").strip()
SMTP_PORT = int((os.getenv("SMTP_PORT") or "587").strip())
SMTP_USER = (os.getenv("SMTP_USER") or "").strip()
SMTP_PASS = (os.getenv("SMTP_PASS") or "").strip()
SMTP_FROM = (os.getenv("SMTP_FROM") or SMTP_USER).strip()
SMTP_TLS = _env_bool("SMTP_TLS", "1")
SMTP_TIMEOUT_S = float(os.getenv("SMTP_TIMEOUT_S", "15") or "15")
