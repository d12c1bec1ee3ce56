from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Sequence
from typing import List, Tuple

from subs2lang.errors import InvalidInputError
from subs2lang.subtitles import SubtitleItem


@dataclass(frozen=True)
class Batch:
    """
    一个 batch：输入字幕序列中连续的一段。

    number 为 batch 序号（从 1 开始，仅用于日志与进度）；
    batch 内的位置索引 0..k-1 与全局字幕编号 index 相互独立。
    """

    number: int
    items: Tuple[SubtitleItem, ...]

    def __len__(self) -> int:
        return len(self.items)

    @property
    def first_index(self) -> int:
        return self.items[0].index

    @property
    def last_index(self) -> int:
        return self.items[-1].index


def chunk_items(items: Sequence[SubtitleItem], batch_size: int) -> List[Batch]:
    """
    将字幕序列按固定大小切分为 batch。

    每个条目恰好出现在一个 batch 中，保持原始顺序，最后一个 batch 可能较短。
    """
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise InvalidInputError(
            f"Expected an ordered sequence of SubtitleItem, got {type(items).__name__}"
        )
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise InvalidInputError(f"batch_size must be a positive integer, got {batch_size!r}")
    for pos, item in enumerate(items):
        if not isinstance(item, SubtitleItem):
            raise InvalidInputError(
                f"Element {pos} is not a SubtitleItem: {type(item).__name__}"
            )

    batches: List[Batch] = []
    for start in range(0, len(items), batch_size):
        batches.append(
            Batch(
                number=len(batches) + 1,
                items=tuple(items[start:start + batch_size]),
            )
        )
    return batches
