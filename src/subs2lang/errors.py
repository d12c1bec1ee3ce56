from __future__ import annotations


class Subs2LangError(Exception):
    """所有 subs2lang 异常的基类。"""


class ConfigurationError(Subs2LangError):
    """Raised when configuration is invalid or credentials are missing."""


class InvalidInputError(Subs2LangError):
    """Raised when subtitle input is malformed or not an ordered sequence."""


class CompletionError(Subs2LangError):
    """
    补全服务边界上的任何失败（网络、HTTP 状态码、响应格式）。

    对重试控制器而言始终视为可重试。
    """


class BatchAlignmentError(Subs2LangError):
    """单个 batch 的译文分段数量或位置标记与原文不一致（可重试）。"""


class AlignmentFailure(Subs2LangError):
    """
    全部 batch 完成后，译文总数与输入总数不一致。

    这是整个运行中唯一的致命错误：意味着条目被静默丢失或重复，
    无法安全修复，因此不会写出任何输出。
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Translated entry count mismatch: expected {expected}, got {actual}"
        )


class TranslationCancelled(Subs2LangError):
    """Raised when the cancellation signal is observed at a suspension point."""
