from functools import lru_cache
from os import environ

from dotenv import load_dotenv


@lru_cache(maxsize=1)
def load_environment():
    """Load and cache environment variables"""
    # Load .env file only once
    load_dotenv()

    return {
        "APP_NAME": environ.get("APP_NAME") or "joinus-chat-server",
        "APPLICATION_ENV": environ.get("APPLICATION_ENV") or "development",
        "PORT": int(environ.get("PORT", 3001)),
        # CORS (comma separated list, *.vercel.app is always allowed)
        "CORS_ORIGINS": environ.get(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:5100"
        ),
        # Durable meeting store
        "REDIS_URL": environ.get("REDIS_URL", "redis://127.0.0.1:6379/0"),
        "MEETINGS_COLLECTION": environ.get("MEETINGS_COLLECTION", "meetings"),
        # In-memory meeting cache bounds
        "MEETING_CACHE_MAX_SIZE": int(environ.get("MEETING_CACHE_MAX_SIZE", 1000)),
        "MEETING_CACHE_TTL_SECONDS": int(
            environ.get("MEETING_CACHE_TTL_SECONDS", 6 * 60 * 60)
        ),
        # Summarization
        "SUMMARY_LLM_MODEL": environ.get("SUMMARY_LLM_MODEL", "gemini-2.5-flash"),
        "SUMMARY_LLM_TIMEOUT": int(environ.get("SUMMARY_LLM_TIMEOUT", 30)),
        "SUMMARY_WORKERS": int(environ.get("SUMMARY_WORKERS", 2)),
        "GOOGLE_API_KEY": environ.get("GOOGLE_API_KEY"),
    }


def get_env(key: str, default=""):
    """Get environment variable by key"""
    value = load_environment().get(key)
    return value if value is not None else default
