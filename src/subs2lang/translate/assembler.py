from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from subs2lang.errors import AlignmentFailure
from subs2lang.subtitles import SubtitleItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssemblyState:
    """
    翻译结果的累积状态（不可变）。

    每处理完一个 batch 就通过 accumulate() 得到新的状态，
    不存在被多处共享修改的全局缓冲区。
    """

    items: Tuple[SubtitleItem, ...] = ()
    batches_done: int = 0
    fallback_batches: int = 0

    def __len__(self) -> int:
        return len(self.items)


def accumulate(
    state: AssemblyState,
    items: Sequence[SubtitleItem],
    fell_back: bool = False,
) -> AssemblyState:
    return AssemblyState(
        items=state.items + tuple(items),
        batches_done=state.batches_done + 1,
        fallback_batches=state.fallback_batches + (1 if fell_back else 0),
    )


def find_sequence_gaps(items: Sequence[SubtitleItem]) -> List[Tuple[int, int]]:
    """返回 (期望编号, 实际编号) 列表；编号应为从 1 开始的连续序列。"""
    gaps: List[Tuple[int, int]] = []
    for expected, item in enumerate(items, start=1):
        if item.index != expected:
            gaps.append((expected, item.index))
    return gaps


def verify_and_sort(state: AssemblyState, expected_count: int) -> List[SubtitleItem]:
    """
    校验并返回最终结果：

      1. 总数必须与输入一致，否则抛出 AlignmentFailure（致命）；
      2. 按编号升序排序后，编号应为 1..n 连续序列，否则仅记录 warning。
    """
    actual = len(state.items)
    if actual != expected_count:
        logger.error(
            "Result count mismatch: expected %d entries, got %d", expected_count, actual
        )
        raise AlignmentFailure(expected=expected_count, actual=actual)

    ordered = sorted(state.items, key=lambda item: item.index)
    gaps = find_sequence_gaps(ordered)
    if gaps:
        preview = ", ".join(f"#{exp}->{got}" for exp, got in gaps[:5])
        logger.warning(
            "Subtitle numbering is not contiguous (%d mismatches, first: %s)",
            len(gaps),
            preview,
        )
    return ordered
