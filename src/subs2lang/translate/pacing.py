from __future__ import annotations

import logging
import threading

from subs2lang.errors import TranslationCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """
    协作式取消信号。

    所有挂起点（batch 间等待、重试等待、补全请求前后）都会检查该信号；
    等待基于 threading.Event.wait，取消时立即唤醒而不是睡满整个延迟。
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TranslationCancelled("Translation cancelled")

    def sleep(self, seconds: float) -> None:
        """等待指定秒数；若期间收到取消信号则抛出 TranslationCancelled。"""
        self.raise_if_cancelled()
        if seconds > 0 and self._event.wait(timeout=seconds):
            raise TranslationCancelled("Translation cancelled while waiting")


class BatchPacer:
    """
    batch 之间的固定间隔（不作用于同一 batch 的重试）。

    第一个 batch 之前不等待，因此最后一个 batch 之后也不会有多余的等待。
    间隔是无条件的，不随失败情况自适应。
    """

    def __init__(self, delay: float, cancel_token: CancelToken | None = None) -> None:
        self.delay = max(0.0, delay)
        self.cancel_token = cancel_token or CancelToken()
        self._dispatched = 0

    def wait_turn(self) -> None:
        """在派发下一个 batch 之前调用。"""
        if self._dispatched > 0 and self.delay > 0:
            logger.info("Waiting %.0f seconds before next batch...", self.delay)
            self.cancel_token.sleep(self.delay)
        else:
            self.cancel_token.raise_if_cancelled()
        self._dispatched += 1
