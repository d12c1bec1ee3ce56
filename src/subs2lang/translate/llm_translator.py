from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from subs2lang.config import Subs2LangConfig
from subs2lang.subtitles import SubtitleItem

from .assembler import AssemblyState, accumulate, verify_and_sort
from .chunker import Batch, chunk_items
from .client import CompletionClient
from .codec import BatchCodec, DecodedBatch
from .pacing import BatchPacer, CancelToken
from .retry import BatchOutcome, BatchRetryController
from .translator import TranslationEngine

logger = logging.getLogger(__name__)

# (已完成 batch 数, batch 总数, 已完成条目数, 条目总数)
ProgressCallback = Callable[[int, int, int, int], None]


class LLMTranslator(TranslationEngine):
    """
    基于外部 LLM 补全服务的分批翻译引擎。

    流程：切分 batch → 逐个 batch 编码、请求、解码（失败时按固定延迟重试，
    耗尽后保留原文）→ batch 之间固定间隔 → 汇总并校验总数与编号。

    batch 严格串行处理：外部服务的限速与 batch 间隔都是全局的。
    """

    def __init__(
        self,
        client: CompletionClient,
        codec: Optional[BatchCodec] = None,
        batch_size: int = 25,
        max_retries: int = 3,
        inter_batch_delay: float = 12.0,
        inter_retry_delay: float = 5.0,
        cancel_token: Optional[CancelToken] = None,
    ) -> None:
        self.client = client
        self.codec = codec or BatchCodec()
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.inter_batch_delay = inter_batch_delay
        self.inter_retry_delay = inter_retry_delay
        self.cancel_token = cancel_token or CancelToken()

    @classmethod
    def from_config(
        cls,
        config: Subs2LangConfig,
        client: CompletionClient,
        cancel_token: Optional[CancelToken] = None,
    ) -> "LLMTranslator":
        codec = BatchCodec(
            soft_char_cap=config.soft_char_cap,
            hard_char_cap=config.hard_char_cap,
            line_char_cap=config.line_char_cap,
        )
        return cls(
            client=client,
            codec=codec,
            batch_size=config.batch_size,
            max_retries=config.max_retries,
            inter_batch_delay=config.inter_batch_delay,
            inter_retry_delay=config.inter_retry_delay,
            cancel_token=cancel_token,
        )

    def _attempt_batch(self, batch: Batch, source_lang: str, target_lang: str) -> DecodedBatch:
        messages = [
            {"role": "system", "content": self.codec.instructions(batch, source_lang, target_lang)},
            {"role": "user", "content": self.codec.encode(batch)},
        ]
        self.cancel_token.raise_if_cancelled()
        blob = self.client.complete(messages)
        # 请求期间收到取消信号时丢弃结果
        self.cancel_token.raise_if_cancelled()
        return self.codec.decode(blob, batch)

    def translate_batch(self, batch: Batch, source_lang: str, target_lang: str) -> BatchOutcome:
        controller = BatchRetryController(
            max_retries=self.max_retries,
            retry_delay=self.inter_retry_delay,
            cancel_token=self.cancel_token,
        )
        return controller.run(
            batch,
            lambda b: self._attempt_batch(b, source_lang, target_lang),
        )

    def translate_subtitles(
        self,
        items: Sequence[SubtitleItem],
        source_lang: str,
        target_lang: str,
        progress: Optional[ProgressCallback] = None,
    ) -> List[SubtitleItem]:
        batches = chunk_items(items, self.batch_size)
        total_entries = len(items)
        if not batches:
            return []

        pacer = BatchPacer(self.inter_batch_delay, self.cancel_token)
        state = AssemblyState()
        outcomes: List[BatchOutcome] = []

        for batch in batches:
            pacer.wait_turn()
            logger.info(
                "Translating batch %d/%d (%d entries, #%d-#%d)",
                batch.number,
                len(batches),
                len(batch),
                batch.first_index,
                batch.last_index,
            )
            outcome = self.translate_batch(batch, source_lang, target_lang)
            outcomes.append(outcome)
            state = accumulate(state, outcome.items, fell_back=outcome.fell_back)

            done = len(state)
            percent = 100.0 * done / total_entries
            logger.info(
                "Batch %d/%d done (%d/%d entries, %.0f%%)",
                batch.number,
                len(batches),
                done,
                total_entries,
                percent,
            )
            if progress is not None:
                progress(state.batches_done, len(batches), done, total_entries)

        self._log_run_summary(outcomes)
        result = verify_and_sort(state, total_entries)
        logger.info("Translation complete! Processed %d subtitle entries.", len(result))
        return result

    @staticmethod
    def _log_run_summary(outcomes: Sequence[BatchOutcome]) -> None:
        """汇总整次运行中的重试、回退与逐条告警，便于事后排查。"""
        retried = [o for o in outcomes if o.attempts > 1 and not o.fell_back]
        fallbacks = [o for o in outcomes if o.fell_back]
        warnings = [w for o in outcomes for w in o.warnings]

        if retried:
            logger.info(
                "%d batches succeeded after retrying: %s",
                len(retried),
                ", ".join(f"#{o.batch.number} ({o.attempts} attempts)" for o in retried),
            )
        if warnings:
            logger.warning(
                "%d entry warnings during decoding (first: %s)",
                len(warnings),
                "; ".join(warnings[:5]),
            )
        if fallbacks:
            logger.warning(
                "%d of %d batches kept their original text",
                len(fallbacks),
                len(outcomes),
            )
            for outcome in fallbacks:
                logger.warning(
                    "  batch %d (#%d-#%d) errors: %s",
                    outcome.batch.number,
                    outcome.batch.first_index,
                    outcome.batch.last_index,
                    " | ".join(outcome.errors),
                )
