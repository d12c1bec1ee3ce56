from __future__ import annotations

from pathlib import Path
from typing import List

import srt

from subs2lang.errors import InvalidInputError

from .types import SubtitleItem


BOM = "\ufeff"


def parse_srt(content: str) -> List[SubtitleItem]:
    """
    解析 SRT 文本为 SubtitleItem 列表。

    - 去除开头的 BOM（部分编辑器导出的 UTF-8 文件会带 BOM）；
    - 保留文件中的原始编号，不做重新编号，编号连续性由后续校验负责；
    - 缺少编号行的条目视为输入错误。
    """
    if content.startswith(BOM):
        content = content[len(BOM):]
    try:
        subs = list(srt.parse(content))
    except srt.SRTParseError as parse_err:
        raise InvalidInputError(f"Malformed SRT content: {parse_err}") from parse_err

    items: List[SubtitleItem] = []
    for position, sub in enumerate(subs, start=1):
        if not isinstance(sub.index, int):
            raise InvalidInputError(
                f"Malformed SRT content: block {position} "
                f"({srt.timedelta_to_srt_timestamp(sub.start)}) has no numeric index"
            )
        items.append(
            SubtitleItem(
                index=sub.index,
                start=sub.start.total_seconds(),
                end=sub.end.total_seconds(),
                text=sub.content.strip(),
            )
        )
    return items


def read_srt(path: str | Path) -> List[SubtitleItem]:
    in_path = Path(path).expanduser().resolve()
    if not in_path.is_file():
        raise InvalidInputError(f"Subtitle file not found: {in_path}")
    try:
        content = in_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as decode_err:
        raise InvalidInputError(
            f"Subtitle file is not valid UTF-8: {in_path} ({decode_err})"
        ) from decode_err
    except OSError as os_err:
        raise InvalidInputError(f"Cannot read subtitle file {in_path}: {os_err}") from os_err
    return parse_srt(content)
