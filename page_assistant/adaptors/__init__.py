"""Assistant provider adaptors for page-assistant."""

from page_assistant.adaptors.openai import OpenAIAssistantsAdaptor

__all__ = ["OpenAIAssistantsAdaptor"]
