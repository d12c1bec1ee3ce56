"""
Batch 编解码：把一个 batch 序列化为发送给 LLM 的文本，并把 LLM 的回复解析回逐条译文。

载荷语法：

    payload := entry ( SEP entry )*
    entry   := "[" INDEX "] " TEXT
    SEP     := "\\n<<<SUBS2LANG_SEP>>>\\n"

INDEX 为 batch 内从 0 开始的位置索引（不是字幕编号）。纯编号列表（"1. text"）
在模型自行输出编号子列表时会产生歧义，因此采用方括号索引 + 独立分隔行。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Tuple

from subs2lang.config import ELLIPSIS
from subs2lang.errors import BatchAlignmentError
from subs2lang.subtitles import SubtitleItem

from .chunker import Batch
from .languages import describe_language

logger = logging.getLogger(__name__)

SEPARATOR_TOKEN = "<<<SUBS2LANG_SEP>>>"

_MARKER_RE = re.compile(r"^\[(\d+)\][ \t]*:?[ \t]*\n?")
_FENCE_RE = re.compile(r"^```[^\n]*\n(?P<body>.*?)\n?```$", re.DOTALL)


def _load_prompt(name: str) -> str:
    prompt_path = Path(__file__).resolve().parents[1] / "prompts" / name
    if not prompt_path.is_file():
        raise FileNotFoundError(f"Prompt file not found: {prompt_path}")
    return prompt_path.read_text(encoding="utf-8")


def truncate_translation(
    text: str,
    soft_cap: int = 84,
    hard_cap: int = 81,
    word_break_floor: int = 60,
) -> str:
    """
    超过 soft_cap 的译文在 hard_cap 之前的词边界处截断，并追加省略号。

    仅当 hard_cap 之前、word_break_floor 之后存在空格时才按空格断开，
    否则直接在 hard_cap 处硬截断。结果长度不超过 hard_cap + len(ELLIPSIS)。
    """
    if len(text) <= soft_cap:
        return text
    cut = text[:hard_cap]
    space_pos = cut.rfind(" ")
    if space_pos > word_break_floor:
        cut = cut[:space_pos]
    return cut.rstrip() + ELLIPSIS


@dataclass(frozen=True)
class DecodedBatch:
    items: Tuple[SubtitleItem, ...]
    warnings: Tuple[str, ...] = ()


class BatchCodec:
    """
    方括号索引 + 分隔行的 batch 编解码器。

    解码失败分两类：
      - 分段数量不一致、索引标记与位置不符：抛出 BatchAlignmentError（整批重试）；
      - 缺少标记、译文为空、译文过长：就地修正并记录 warning，不中断。
    """

    def __init__(
        self,
        soft_char_cap: int = 84,
        hard_char_cap: int = 81,
        line_char_cap: int = 42,
        separator: str = SEPARATOR_TOKEN,
        prompt_name: str = "translation_prompt.md",
    ) -> None:
        self.soft_char_cap = soft_char_cap
        self.hard_char_cap = hard_char_cap
        self.line_char_cap = line_char_cap
        self.separator = separator
        self.prompt_template = _load_prompt(prompt_name)
        escaped = re.escape(separator)
        self._separator_re = re.compile(rf"\s*{escaped}\s*")
        self._edge_re = re.compile(rf"^\s*{escaped}\s*|\s*{escaped}\s*$")

    def encode(self, batch: Batch) -> str:
        entries = [
            f"[{pos}] {item.text.strip()}" for pos, item in enumerate(batch.items)
        ]
        return f"\n{self.separator}\n".join(entries)

    def instructions(self, batch: Batch, source_lang: str, target_lang: str) -> str:
        """渲染系统提示词：条目数量、顺序与长度约束通过指令而非载荷传递。"""
        return self.prompt_template.format(
            count=len(batch),
            source_language=describe_language(source_lang),
            target_language=describe_language(target_lang),
            separator=self.separator,
            soft_cap=self.soft_char_cap,
            line_cap=self.line_char_cap,
        )

    def split_sections(self, blob: str) -> List[str]:
        text = blob.replace("\r\n", "\n").strip()
        fenced = _FENCE_RE.match(text)
        if fenced:
            text = fenced.group("body").strip()
        text = self._edge_re.sub("", text)
        return [section.strip() for section in self._separator_re.split(text)]

    def decode(self, blob: str, batch: Batch) -> DecodedBatch:
        sections = self.split_sections(blob)
        if len(sections) != len(batch):
            raise BatchAlignmentError(
                f"Batch {batch.number}: expected {len(batch)} sections, got {len(sections)}"
            )

        results: List[SubtitleItem] = []
        warnings: List[str] = []
        for pos, (item, section) in enumerate(zip(batch.items, sections)):
            match = _MARKER_RE.match(section)
            if match:
                marker = int(match.group(1))
                if marker != pos:
                    raise BatchAlignmentError(
                        f"Batch {batch.number}: section {pos} carries marker [{marker}]"
                    )
                translation = section[match.end():].strip()
            else:
                translation = section
                warnings.append(f"entry {item.index}: missing position marker")
                logger.debug("Batch %d entry %d has no [%d] marker", batch.number, item.index, pos)

            if not translation:
                warnings.append(f"entry {item.index}: empty translation, kept source text")
                logger.warning(
                    "Empty translation for entry %d, keeping original text", item.index
                )
                results.append(replace(item))
                continue

            if len(translation) > self.soft_char_cap:
                shortened = truncate_translation(
                    translation, self.soft_char_cap, self.hard_char_cap
                )
                warnings.append(
                    f"entry {item.index}: truncated {len(translation)} -> {len(shortened)} chars"
                )
                logger.info(
                    "Translation for entry %d too long (%d chars), truncated",
                    item.index,
                    len(translation),
                )
                translation = shortened

            results.append(replace(item, text=translation))

        return DecodedBatch(items=tuple(results), warnings=tuple(warnings))
