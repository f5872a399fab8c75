"""
Services package for the application.

This package contains service implementations shared by the domains,
mostly integrations with external systems.
"""

from .LLMService import LLMService, LLMServiceError

__all__ = [
    "LLMService",
    "LLMServiceError",
]
