from __future__ import annotations

from .types import SubtitleItem, format_timestamp
from .srt_reader import parse_srt, read_srt
from .srt_writer import subtitle_items_to_srt, write_srt

__all__ = [
    "SubtitleItem",
    "format_timestamp",
    "parse_srt",
    "read_srt",
    "subtitle_items_to_srt",
    "write_srt",
]
