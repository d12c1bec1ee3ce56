"""Tests for inter-batch pacing and cancellation."""

import threading
import time

import pytest

from subs2lang.errors import TranslationCancelled
from subs2lang.translate.pacing import BatchPacer, CancelToken


class RecordingToken(CancelToken):
    def __init__(self):
        super().__init__()
        self.slept = []

    def sleep(self, seconds):
        self.raise_if_cancelled()
        self.slept.append(seconds)


class TestBatchPacer:

    def test_no_wait_before_first_batch(self):
        token = RecordingToken()
        pacer = BatchPacer(12.0, token)

        pacer.wait_turn()

        assert token.slept == []

    def test_waits_between_batches_only(self):
        token = RecordingToken()
        pacer = BatchPacer(12.0, token)

        for _ in range(3):
            pacer.wait_turn()

        assert token.slept == [12.0, 12.0]

    def test_zero_delay_never_sleeps(self):
        token = RecordingToken()
        pacer = BatchPacer(0, token)

        for _ in range(3):
            pacer.wait_turn()

        assert token.slept == []

    def test_cancelled_token_stops_dispatch(self):
        token = CancelToken()
        token.cancel()

        with pytest.raises(TranslationCancelled):
            BatchPacer(0, token).wait_turn()


class TestCancelToken:

    def test_sleep_returns_when_not_cancelled(self):
        token = CancelToken()
        token.sleep(0.01)
        assert not token.cancelled

    def test_cancel_wakes_sleeper(self):
        token = CancelToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(TranslationCancelled):
                token.sleep(30)
        finally:
            timer.cancel()
        assert time.monotonic() - started < 5
