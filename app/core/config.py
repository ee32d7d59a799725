import os


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./events.db")
DATABASE_ECHO = _flag("DATABASE_ECHO")
SQLITE_BUSY_TIMEOUT = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

# Registration transactions
REGISTRATION_MAX_ATTEMPTS = int(os.getenv("REGISTRATION_MAX_ATTEMPTS", "3"))
REGISTRATION_RETRY_BACKOFF = float(os.getenv("REGISTRATION_RETRY_BACKOFF", "0.05"))
REGISTRATION_LOCK_TIMEOUT_MS = int(os.getenv("REGISTRATION_LOCK_TIMEOUT_MS", "5000"))

# Application
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


def get_database_url():
    return DATABASE_URL
