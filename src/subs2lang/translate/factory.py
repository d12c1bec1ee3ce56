from __future__ import annotations

from subs2lang.config import Subs2LangConfig

from .client import ChatCompletionClient, CompletionClient, LLMClientSettings
from .llm_translator import LLMTranslator
from .pacing import CancelToken
from .translator import PassthroughTranslator, TranslationEngine


def get_translation_engine(
    name: str,
    config: Subs2LangConfig,
    client: CompletionClient | None = None,
    cancel_token: CancelToken | None = None,
    model: str | None = None,
) -> TranslationEngine:
    """
    根据名称返回对应的翻译引擎实例。

    支持：
      - "llm"         : LLMTranslator（未传入 client 时从环境变量构建）
      - "passthrough" : PassthroughTranslator
    """
    key = name.lower()
    if key == "llm":
        if client is None:
            client = ChatCompletionClient(LLMClientSettings.from_env(model=model))
        return LLMTranslator.from_config(config, client, cancel_token=cancel_token)
    if key == "passthrough":
        return PassthroughTranslator()
    raise ValueError(f"Unknown translation engine: {name}")
