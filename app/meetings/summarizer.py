"""Meeting chat summarization through the shared LLM service."""
import logging
from typing import Iterable, List, Optional

from app.shared.services.LLMService import LLMService
from app.shared.utils.service_loader import get_llm_service

from .constants import (
    SUMMARY_EMPTY_RESPONSE,
    SUMMARY_FAILED,
    SUMMARY_MAX_TOKENS,
    SUMMARY_MISSING_CREDENTIALS,
    SUMMARY_NO_MESSAGES,
    SUMMARY_TEMPERATURE,
)
from .models import ChatMessage

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """Act as a virtual assistant that is an expert at summarizing meetings.
Below is the chat transcript of a virtual meeting.
Please write a concise, structured summary of the key points discussed,
the decisions made and any tasks that were assigned.

Chat transcript:
{transcript}

Summary:"""


def format_transcript(messages: Iterable[ChatMessage]) -> str:
    """One "{name} ({time}): {text}" line per message, in history order."""
    return "\n".join(
        f"{m.user_name} ({m.timestamp.strftime('%Y-%m-%d %H:%M:%S')}): {m.text}"
        for m in messages
    )


class MeetingSummarizer:
    """Turns a meeting's chat history into a summary. Never raises."""

    def __init__(self, llm_service: Optional[LLMService] = None):
        self._llm_service = llm_service

    @property
    def llm_service(self) -> LLMService:
        """Lazy load LLM service."""
        if self._llm_service is None:
            self._llm_service = get_llm_service()
        return self._llm_service

    def summarize(self, messages: List[ChatMessage]) -> str:
        """
        Summarize the chat history of a meeting.

        Args:
            messages: Chat messages of the meeting

        Returns:
            The summary, or a human-readable fallback if it could not be produced
        """
        if not messages:
            return SUMMARY_NO_MESSAGES

        try:
            if not self.llm_service.has_credentials():
                logger.error(
                    f"No API key configured for LLM provider '{self.llm_service.provider}'"
                )
                return SUMMARY_MISSING_CREDENTIALS

            prompt = SUMMARY_PROMPT.format(transcript=format_transcript(messages))
            summary = self.llm_service.generate(
                prompt,
                temperature=SUMMARY_TEMPERATURE,
                max_tokens=SUMMARY_MAX_TOKENS,
            )
        except Exception as e:
            logger.error(f"Error generating meeting summary: {e}")
            return SUMMARY_FAILED.format(error=str(e) or e.__class__.__name__)

        return summary or SUMMARY_EMPTY_RESPONSE
