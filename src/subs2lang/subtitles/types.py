from __future__ import annotations

from dataclasses import dataclass


def format_timestamp(seconds: float) -> str:
    """
    将秒数转换为 SRT 时间戳格式：HH:MM:SS,mmm
    """
    if seconds < 0:
        seconds = 0.0
    total_ms = int(round(seconds * 1000))
    ms = total_ms % 1000
    total_seconds = total_ms // 1000
    s = total_seconds % 60
    total_minutes = total_seconds // 60
    m = total_minutes % 60
    h = total_minutes // 60
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


@dataclass(frozen=True)
class SubtitleItem:
    """
    单条字幕项，对应 SRT 中的一个时间轴块。

    翻译流程从不修改输入条目，而是通过 dataclasses.replace 生成新的条目，
    保留 index 与时间轴，仅替换 text。
    """

    index: int
    start: float
    end: float
    text: str

    @property
    def start_time(self) -> str:
        return format_timestamp(self.start)

    @property
    def end_time(self) -> str:
        return format_timestamp(self.end)
