from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .types import SubtitleItem


def subtitle_items_to_srt(items: Iterable[SubtitleItem]) -> str:
    lines: list[str] = []
    for item in items:
        lines.append(str(item.index))
        lines.append(f"{item.start_time} --> {item.end_time}")
        lines.append(item.text)
        lines.append("")  # 空行分隔
    return "\n".join(lines).strip() + "\n"


def write_srt(items: Iterable[SubtitleItem], path: str | Path) -> Path:
    srt_text = subtitle_items_to_srt(items)
    out_path = Path(path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(srt_text, encoding="utf-8")
    return out_path
