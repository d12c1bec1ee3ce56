from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .config import Subs2LangConfig
from .subtitles import SubtitleItem, read_srt, write_srt
from .translate.client import CompletionClient
from .translate.factory import get_translation_engine
from .translate.pacing import CancelToken
from .translate.translator import TranslationEngine

logger = logging.getLogger(__name__)


class Subs2LangPipeline:
    """
    文件到文件的翻译流程：读取 SRT → 分批翻译并校验 → 写出 SRT。

    校验失败（AlignmentFailure）时不会写出任何输出文件。
    """

    def __init__(
        self,
        config: Subs2LangConfig,
        engine: Optional[TranslationEngine] = None,
        client: Optional[CompletionClient] = None,
        cancel_token: Optional[CancelToken] = None,
        model: Optional[str] = None,
    ) -> None:
        self.config = config
        self.cancel_token = cancel_token or CancelToken()
        if engine is None:
            engine = get_translation_engine(
                config.translation_engine,
                config,
                client=client,
                cancel_token=self.cancel_token,
                model=model,
            )
        self.engine = engine

    def run_translation(self, items: List[SubtitleItem]) -> List[SubtitleItem]:
        return self.engine.translate_subtitles(
            items,
            source_lang=self.config.source_lang,
            target_lang=self.config.target_lang,
        )

    def run(self) -> List[SubtitleItem]:
        logger.info("Reading subtitles: %s", self.config.input_path)
        items = read_srt(self.config.input_path)
        logger.info("Parsed subtitle entries: %d", len(items))

        translated = self.run_translation(items)

        if self.config.output_path is None:
            raise ValueError("output_path 未在配置中设置")
        out_path: Path = write_srt(translated, self.config.output_path)
        logger.info("Wrote translated subtitles: %s", out_path)
        return translated
