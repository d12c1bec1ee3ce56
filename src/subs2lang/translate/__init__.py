from __future__ import annotations

from .translator import TranslationEngine, PassthroughTranslator
from .llm_translator import LLMTranslator
from .client import ChatCompletionClient, CompletionClient, LLMClientSettings
from .pacing import CancelToken

__all__ = [
    "TranslationEngine",
    "PassthroughTranslator",
    "LLMTranslator",
    "ChatCompletionClient",
    "CompletionClient",
    "LLMClientSettings",
    "CancelToken",
]
