"""
Tests for the shared LLMService.
Coverage: provider selection, credentials check, invocation, content extraction
"""

import importlib
from unittest.mock import Mock, patch

import pytest

from app.shared.services import LLMService, LLMServiceError

# The package re-exports the class under the module's name
llm_module = importlib.import_module("app.shared.services.LLMService")


@pytest.fixture(autouse=True)
def clear_model_cache():
    LLMService._model_cache.clear()
    yield
    LLMService._model_cache.clear()


@pytest.fixture
def mock_init_chat_model():
    with patch.object(llm_module, "init_chat_model") as mock_init:
        yield mock_init


@pytest.mark.unit
class TestLLMServiceConfig:
    """Test model and provider selection"""

    def test_defaults(self):
        service = LLMService(model_name="gemini-2.5-flash")

        assert service.provider == "google_genai"
        assert service.model_name == "gemini-2.5-flash"

    def test_provider_prefix(self):
        service = LLMService(model_name="groq:llama-3.1-8b-instant")

        assert service.provider == "groq"
        assert service.model_name == "llama-3.1-8b-instant"

    def test_explicit_provider(self):
        service = LLMService(model_name="gpt-4o-mini", provider="openai")
        assert service.provider == "openai"

    def test_has_credentials(self, monkeypatch):
        service = LLMService(model_name="groq:llama-3.1-8b-instant")

        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        assert service.has_credentials() is False

        monkeypatch.setenv("GROQ_API_KEY", "test-key")
        assert service.has_credentials() is True

    def test_unknown_provider_passes_credentials_check(self):
        service = LLMService(model_name="ollama:llama3")
        assert service.has_credentials() is True


@pytest.mark.unit
class TestLLMServiceGenerate:
    """Test text generation"""

    def test_generate(self, mock_init_chat_model):
        model = Mock()
        model.invoke.return_value = Mock(content="  A summary.  ")
        mock_init_chat_model.return_value = model
        service = LLMService(model_name="gemini-2.5-flash", timeout=10)

        result = service.generate("Summarize", temperature=0.7, max_tokens=1024)

        assert result == "A summary."
        mock_init_chat_model.assert_called_once_with(
            "gemini-2.5-flash",
            model_provider="google_genai",
            temperature=0.7,
            timeout=10,
            max_retries=1,
            max_tokens=1024,
        )
        (messages,) = model.invoke.call_args.args
        assert messages[0].content == "Summarize"

    def test_models_are_cached(self, mock_init_chat_model):
        mock_init_chat_model.return_value.invoke.return_value = Mock(content="ok")
        service = LLMService(model_name="gemini-2.5-flash")

        service.generate("one", temperature=0.7)
        service.generate("two", temperature=0.7)
        service.generate("three", temperature=0.1)

        assert mock_init_chat_model.call_count == 2

    def test_invocation_failure(self, mock_init_chat_model):
        mock_init_chat_model.return_value.invoke.side_effect = RuntimeError("timeout")
        service = LLMService(model_name="gemini-2.5-flash")

        with pytest.raises(LLMServiceError, match="timeout"):
            service.generate("Summarize")

    def test_model_creation_failure(self, mock_init_chat_model):
        mock_init_chat_model.side_effect = ValueError("unknown model")
        service = LLMService(model_name="gemini-2.5-flash")

        with pytest.raises(LLMServiceError):
            service.generate("Summarize")


@pytest.mark.unit
class TestExtractTextContent:
    """Test LangChain content normalization"""

    @pytest.fixture
    def service(self):
        return LLMService(model_name="gemini-2.5-flash")

    def test_string(self, service):
        assert service._extract_text_content("  Hello world ") == "Hello world"

    def test_content_blocks(self, service):
        content = [
            {"type": "text", "text": "Hello"},
            {"type": "image", "url": "x"},
            "there",
        ]
        assert service._extract_text_content(content) == "Hello there"

    def test_none_and_empty(self, service):
        assert service._extract_text_content(None) == ""
        assert service._extract_text_content("   ", fallback="n/a") == "n/a"
        assert service._extract_text_content([]) == ""
