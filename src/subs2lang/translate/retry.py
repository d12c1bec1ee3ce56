from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Tuple

from subs2lang.errors import BatchAlignmentError, CompletionError
from subs2lang.subtitles import SubtitleItem

from .chunker import Batch
from .codec import DecodedBatch
from .pacing import CancelToken

logger = logging.getLogger(__name__)


class BatchState(Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED_FALLBACK = "exhausted_fallback"


class BatchEvent(Enum):
    DISPATCH = "dispatch"
    SUCCESS = "success"
    FAILURE = "failure"
    EXHAUSTED = "exhausted"


_TRANSITIONS: Dict[Tuple[BatchState, BatchEvent], BatchState] = {
    (BatchState.PENDING, BatchEvent.DISPATCH): BatchState.ATTEMPTING,
    (BatchState.ATTEMPTING, BatchEvent.SUCCESS): BatchState.SUCCEEDED,
    (BatchState.ATTEMPTING, BatchEvent.FAILURE): BatchState.ATTEMPTING,
    (BatchState.ATTEMPTING, BatchEvent.EXHAUSTED): BatchState.EXHAUSTED_FALLBACK,
}

RETRYABLE_ERRORS = (CompletionError, BatchAlignmentError)


def next_state(state: BatchState, event: BatchEvent) -> BatchState:
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(f"Invalid batch transition: {state.value} --{event.value}-->") from None


@dataclass(frozen=True)
class BatchOutcome:
    batch: Batch
    state: BatchState
    items: Tuple[SubtitleItem, ...]
    attempts: int
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def fell_back(self) -> bool:
        return self.state is BatchState.EXHAUSTED_FALLBACK


class BatchRetryController:
    """
    单个 batch 的重试状态机：

        PENDING --dispatch--> ATTEMPTING --success--> SUCCEEDED
                              ATTEMPTING --failure--> ATTEMPTING   (固定延迟后重试)
                              ATTEMPTING --exhausted--> EXHAUSTED_FALLBACK

    max_retries 为总尝试次数。耗尽后整批保留原文，永远不会中断整个运行。
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        cancel_token: CancelToken | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.cancel_token = cancel_token or CancelToken()

    def run(self, batch: Batch, attempt: Callable[[Batch], DecodedBatch]) -> BatchOutcome:
        state = next_state(BatchState.PENDING, BatchEvent.DISPATCH)
        errors: list[str] = []
        attempts = 0

        while True:
            attempts += 1
            try:
                decoded = attempt(batch)
            except RETRYABLE_ERRORS as exc:
                errors.append(str(exc))
                if attempts >= self.max_retries:
                    state = next_state(state, BatchEvent.EXHAUSTED)
                    logger.error(
                        "Batch %d failed after %d attempts, keeping original text: %s",
                        batch.number,
                        attempts,
                        exc,
                    )
                    return BatchOutcome(
                        batch=batch,
                        state=state,
                        items=tuple(replace(item) for item in batch.items),
                        attempts=attempts,
                        errors=tuple(errors),
                    )
                state = next_state(state, BatchEvent.FAILURE)
                logger.warning(
                    "Batch %d attempt %d/%d failed: %s. Retrying in %.0f seconds...",
                    batch.number,
                    attempts,
                    self.max_retries,
                    exc,
                    self.retry_delay,
                )
                self.cancel_token.sleep(self.retry_delay)
                continue

            state = next_state(state, BatchEvent.SUCCESS)
            return BatchOutcome(
                batch=batch,
                state=state,
                items=decoded.items,
                attempts=attempts,
                errors=tuple(errors),
                warnings=decoded.warnings,
            )
