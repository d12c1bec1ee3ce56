from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from subs2lang.errors import CompletionError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LLM_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_LLM_MODEL = "openai/gpt-oss-120b"

Message = Dict[str, str]


class CompletionClient(ABC):
    """
    外部补全服务的最小契约：输入 chat 风格的消息列表，返回一段文本。

    任何失败都应以 CompletionError 抛出，由重试控制器统一处理。
    """

    @abstractmethod
    def complete(self, messages: List[Message]) -> str:
        """发送消息并返回补全文本。"""


@dataclass
class LLMClientSettings:
    """
    环境变量约定（来自 .env 或系统环境）：
      - SUBS2LANG_LLM_URL          # 可选，兼容 OpenAI Chat Completions 的完整 URL，默认 Groq
      - SUBS2LANG_LLM_MODEL        # 可选，模型名称
      - SUBS2LANG_LLM_API_KEY      # 用于 Authorization: Bearer，未设置时回退到 GROQ_API_KEY
      - SUBS2LANG_LLM_TEMPERATURE  # 可选，默认 0.1
      - SUBS2LANG_LLM_MAX_TOKENS   # 可选，单次回复的最大 token 数
      - SUBS2LANG_LLM_TIMEOUT      # 可选，请求超时（秒），默认 60
      - SUBS2LANG_HTTP_PROXY / SUBS2LANG_HTTPS_PROXY
    """

    url: str = DEFAULT_LLM_URL
    model: str = DEFAULT_LLM_MODEL
    api_key: Optional[str] = None
    temperature: float = 0.1
    max_tokens: Optional[int] = None
    timeout: float = 60.0
    proxies: Optional[Dict[str, str]] = None

    @classmethod
    def from_env(cls, model: Optional[str] = None) -> "LLMClientSettings":
        api_key = os.getenv("SUBS2LANG_LLM_API_KEY") or os.getenv("GROQ_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "API key not found. Set SUBS2LANG_LLM_API_KEY or GROQ_API_KEY."
            )

        try:
            temperature = float(os.getenv("SUBS2LANG_LLM_TEMPERATURE", "0.1") or "0.1")
            timeout = float(os.getenv("SUBS2LANG_LLM_TIMEOUT", "60") or "60")
            max_tokens_raw = os.getenv("SUBS2LANG_LLM_MAX_TOKENS", "").strip()
            max_tokens = int(max_tokens_raw) if max_tokens_raw else None
        except ValueError as parse_err:
            raise ConfigurationError(f"Invalid LLM setting: {parse_err}") from parse_err

        proxies: dict[str, str] = {}
        http_proxy = os.getenv("SUBS2LANG_HTTP_PROXY")
        https_proxy = os.getenv("SUBS2LANG_HTTPS_PROXY")
        if http_proxy:
            proxies["http"] = http_proxy
        if https_proxy:
            proxies["https"] = https_proxy

        return cls(
            url=os.getenv("SUBS2LANG_LLM_URL") or DEFAULT_LLM_URL,
            model=model or os.getenv("SUBS2LANG_LLM_MODEL") or DEFAULT_LLM_MODEL,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            proxies=proxies or None,
        )


class ChatCompletionClient(CompletionClient):
    """
    使用 OpenAI Chat Completions 兼容接口（Groq / OpenRouter / 自建网关）调用外部 LLM。
    """

    def __init__(
        self,
        settings: LLMClientSettings,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def _build_body(self, messages: List[Message]) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
        }
        if self.settings.max_tokens is not None:
            body["max_tokens"] = self.settings.max_tokens
        return body

    def complete(self, messages: List[Message]) -> str:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"

        body = self._build_body(messages)
        logger.debug(
            "LLM request preview: %s",
            json.dumps(body, ensure_ascii=False)[:2000],
        )

        try:
            response = self.session.post(
                self.settings.url,
                headers=headers,
                data=json.dumps(body),
                timeout=self.settings.timeout,
                proxies=self.settings.proxies,
            )
            response.raise_for_status()
        except requests.RequestException as req_err:
            raise CompletionError(f"LLM request failed: {req_err}") from req_err

        try:
            data = response.json()
        except ValueError as json_err:
            snippet = response.text[:500]
            raise CompletionError(
                f"LLM response is not valid JSON, first 500 chars: {snippet}"
            ) from json_err

        content = self._extract_content(data)
        logger.debug("LLM raw content: %s", content[:4000])
        return content

    @staticmethod
    def _extract_content(data: Any) -> str:
        """
        从补全响应中取出文本，兼容多种常见返回格式。

        结构不符合预期时一律抛出 CompletionError，使其进入 batch 重试流程。
        """
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            keys = list(data.keys()) if isinstance(data, dict) else type(data).__name__
            raise CompletionError(f"LLM response missing 'choices' field, got: {keys}")

        first = choices[0]
        if not isinstance(first, dict):
            raise CompletionError(
                f"LLM response first choice is not an object: {type(first).__name__}"
            )

        content: Any = None

        # OpenAI Chat: choices[0].message.content
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")

        # 某些实现可能直接在 text 字段返回
        if content is None:
            content = first.get("text")

        # 部分网关返回内容片段列表：[{"type": "text", "text": "..."}]
        if isinstance(content, list):
            parts = [
                part["text"]
                for part in content
                if isinstance(part, dict) and isinstance(part.get("text"), str)
            ]
            content = "".join(parts) if parts else None

        if not isinstance(content, str) or not content.strip():
            raise CompletionError(
                f"LLM response missing 'content'/'text' in first choice: {first}"
            )
        return content
