from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError


DEFAULT_BATCH_SIZE = 25
DEFAULT_MAX_RETRIES = 3
DEFAULT_INTER_BATCH_DELAY = 12.0
DEFAULT_INTER_RETRY_DELAY = 5.0
DEFAULT_SOFT_CHAR_CAP = 84
DEFAULT_HARD_CHAR_CAP = 81
DEFAULT_LINE_CHAR_CAP = 42

# 截断译文时追加的后缀
ELLIPSIS = "..."


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Subs2LangConfig:
    """
    核心配置对象。

    batch 相关参数（大小、重试次数、延迟）以及译文长度上限由核心翻译流程使用；
    路径与语言由 Pipeline / CLI 使用。
    """

    input_path: Path
    output_path: Optional[Path] = None
    source_lang: str = "en"
    target_lang: str = "sq"
    batch_size: int = DEFAULT_BATCH_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    inter_batch_delay: float = DEFAULT_INTER_BATCH_DELAY
    inter_retry_delay: float = DEFAULT_INTER_RETRY_DELAY
    soft_char_cap: int = DEFAULT_SOFT_CHAR_CAP
    hard_char_cap: int = DEFAULT_HARD_CHAR_CAP
    line_char_cap: int = DEFAULT_LINE_CHAR_CAP
    translation_engine: str = "llm"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.max_retries < 1:
            raise ConfigurationError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.inter_batch_delay < 0 or self.inter_retry_delay < 0:
            raise ConfigurationError("Delays must not be negative")
        if self.hard_char_cap < 1 or self.line_char_cap < 1:
            raise ConfigurationError("Character caps must be >= 1")
        # 截断结果（hard_char_cap + 省略号）不得再超过 soft_char_cap
        if self.hard_char_cap + len(ELLIPSIS) > self.soft_char_cap:
            raise ConfigurationError(
                f"hard_char_cap ({self.hard_char_cap}) + {len(ELLIPSIS)} must not exceed "
                f"soft_char_cap ({self.soft_char_cap})"
            )

    @classmethod
    def from_paths(
        cls,
        input_path: str | Path,
        output_path: Optional[str | Path] = None,
        source_lang: str = "en",
        target_lang: str = "sq",
        batch_size: int | None = None,
        max_retries: int | None = None,
        inter_batch_delay: float | None = None,
        inter_retry_delay: float | None = None,
        translation_engine: str = "llm",
    ) -> "Subs2LangConfig":
        input_path_obj = Path(input_path).expanduser().resolve()
        if output_path is not None:
            output_path_obj = Path(output_path).expanduser().resolve()
        else:
            # 默认输出：与输入同目录，文件名追加目标语言代码，例如 movie.sq.srt
            output_path_obj = input_path_obj.with_name(
                f"{input_path_obj.stem}.{target_lang}.srt"
            )

        # 显式参数优先，其次读取环境变量，最后使用内置默认值
        if batch_size is None:
            batch_size = _env_int("SUBS2LANG_BATCH_SIZE", DEFAULT_BATCH_SIZE)
        if max_retries is None:
            max_retries = _env_int("SUBS2LANG_MAX_RETRIES", DEFAULT_MAX_RETRIES)
        if inter_batch_delay is None:
            inter_batch_delay = _env_float("SUBS2LANG_BATCH_DELAY", DEFAULT_INTER_BATCH_DELAY)
        if inter_retry_delay is None:
            inter_retry_delay = _env_float("SUBS2LANG_RETRY_DELAY", DEFAULT_INTER_RETRY_DELAY)

        return cls(
            input_path=input_path_obj,
            output_path=output_path_obj,
            source_lang=source_lang,
            target_lang=target_lang,
            batch_size=batch_size,
            max_retries=max_retries,
            inter_batch_delay=inter_batch_delay,
            inter_retry_delay=inter_retry_delay,
            translation_engine=translation_engine,
        )
