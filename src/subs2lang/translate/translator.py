from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import List, Sequence

from subs2lang.subtitles import SubtitleItem


class TranslationEngine(ABC):
    """
    翻译引擎抽象接口。

    所有具体实现都应遵循该接口，以便在 Pipeline 中进行统一调度。
    返回的是新的 SubtitleItem 列表，编号与时间轴与输入一致，仅 text 被替换。
    """

    @abstractmethod
    def translate_subtitles(
        self,
        items: Sequence[SubtitleItem],
        source_lang: str,
        target_lang: str,
    ) -> List[SubtitleItem]:
        """
        将给定字幕项翻译为目标语言，返回与 items 一一对应的新字幕项。
        """


class PassthroughTranslator(TranslationEngine):
    """不调用任何外部服务，直接返回原文副本；用于检查文件读写链路（dry run）。"""

    def translate_subtitles(
        self,
        items: Sequence[SubtitleItem],
        source_lang: str,
        target_lang: str,
    ) -> List[SubtitleItem]:
        return [replace(item) for item in items]
