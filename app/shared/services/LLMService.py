import logging
import os
from typing import Any, Dict, Optional

from langchain.chat_models import init_chat_model
from langchain_core.messages import HumanMessage

from app.config.environment import get_env

# Default model from environment (provider-agnostic)
# Examples: gemini-2.5-flash, groq:llama-3.1-8b-instant, openai:gpt-4o-mini
DEFAULT_LLM_MODEL = "gemini-2.5-flash"
DEFAULT_LLM_PROVIDER = "google_genai"

# Credential environment variable per LangChain provider
PROVIDER_API_KEYS = {
    "google_genai": "GOOGLE_API_KEY",
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class LLMServiceError(Exception):
    """Base exception for LLMService errors."""

    pass


class LLMService:
    """Provider-agnostic, tool-free LLM client used for one-shot text generation.

    Uses LangChain's init_chat_model() for automatic provider selection. A model
    string may carry its provider ("groq:llama-3.1-8b-instant"); otherwise the
    configured default provider is used.
    """

    DEFAULT_TEMPERATURE = 0.3
    DEFAULT_TIMEOUT = 30
    DEFAULT_MAX_RETRIES = 1

    # Model cache, keyed by model settings
    _model_cache: Dict[str, Any] = {}

    def __init__(
        self,
        model_name: Optional[str] = None,
        provider: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self.model_name = model_name or get_env("SUMMARY_LLM_MODEL", DEFAULT_LLM_MODEL)
        if ":" in self.model_name:
            self.provider, self.model_name = self.model_name.split(":", 1)
        else:
            self.provider = provider or DEFAULT_LLM_PROVIDER
        self.timeout = timeout or get_env("SUMMARY_LLM_TIMEOUT", self.DEFAULT_TIMEOUT)
        self.max_retries = max_retries

        logging.info(
            "Initialized LLMService (provider: %s, model: %s, timeout: %ss)",
            self.provider,
            self.model_name,
            self.timeout,
        )

    def has_credentials(self) -> bool:
        """Check the provider's API key is present (unknown providers pass)."""
        env_var = PROVIDER_API_KEYS.get(self.provider)
        if env_var is None:
            return True
        return bool(os.environ.get(env_var))

    def _get_model(self, temperature: float, max_tokens: Optional[int]):
        """Create or retrieve a cached model instance."""
        cache_key = f"{self.provider}:{self.model_name}:{temperature}:{max_tokens}"

        if cache_key in self._model_cache:
            logging.debug(f"Using cached model {cache_key}")
            return self._model_cache[cache_key]

        logging.info(f"Creating new model instance {cache_key}")
        model_kwargs = {}
        if max_tokens:
            model_kwargs["max_tokens"] = max_tokens
        model = init_chat_model(
            self.model_name,
            model_provider=self.provider,
            temperature=temperature,
            timeout=self.timeout,
            max_retries=self.max_retries,
            **model_kwargs,
        )

        self._model_cache[cache_key] = model
        return model

    def generate(
        self,
        prompt: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a completion for a single prompt.

        Args:
            prompt: The full prompt text
            temperature: Sampling temperature
            max_tokens: Optional completion length cap

        Returns:
            The model's text response (stripped, may be empty)

        Raises:
            LLMServiceError: If model creation or invocation fails
        """
        try:
            model = self._get_model(temperature, max_tokens)
            logging.info(f"Invoking {self.model_name} with prompt length: {len(prompt)}")
            message = model.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            logging.error(f"LLM invocation failed: {e}")
            raise LLMServiceError(str(e)) from e

        return self._extract_text_content(message.content)

    def _extract_text_content(self, content: Any, fallback: str = "") -> str:
        """
        Extract text content from LangChain message content.

        Handles plain strings, lists of content blocks (text elements only)
        and None.

        Examples:
            >>> service._extract_text_content("Hello world")
            'Hello world'
            >>> service._extract_text_content([{"type": "text", "text": "Hello"}])
            'Hello'
        """
        if content is None:
            return fallback

        if isinstance(content, str):
            return content.strip() or fallback

        if isinstance(content, list):
            text_parts = []
            for item in content:
                if isinstance(item, str):
                    text_parts.append(item)
                elif isinstance(item, dict):
                    text = item.get("text") or item.get("content")
                    if text and isinstance(text, str):
                        text_parts.append(text)
            return " ".join(part.strip() for part in text_parts if part.strip()) or fallback

        return str(content).strip() or fallback
