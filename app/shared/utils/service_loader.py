from functools import lru_cache

from app.shared.services.LLMService import LLMService


@lru_cache(maxsize=1)
def get_llm_service() -> LLMService:
    """Lazy load and cache the LLMService instance.

    Returns:
        LLMService configured from SUMMARY_LLM_MODEL / SUMMARY_LLM_TIMEOUT
    """
    return LLMService()
