"""Tests for the batched LLM translation engine."""

import logging
from dataclasses import replace

import pytest

from subs2lang.config import Subs2LangConfig
from subs2lang.errors import AlignmentFailure, CompletionError, TranslationCancelled
from subs2lang.translate.codec import SEPARATOR_TOKEN, BatchCodec, DecodedBatch
from subs2lang.translate.llm_translator import LLMTranslator
from subs2lang.translate.pacing import CancelToken


class RecordingToken(CancelToken):
    def __init__(self):
        super().__init__()
        self.slept = []

    def sleep(self, seconds):
        self.raise_if_cancelled()
        self.slept.append(seconds)


def _translator(client, **kwargs):
    kwargs.setdefault("inter_batch_delay", 0)
    kwargs.setdefault("inter_retry_delay", 0)
    return LLMTranslator(client, **kwargs)


class TestTranslateSubtitles:

    def test_albanian_example_end_to_end(self, make_items, make_client, marked):
        items = make_items(["Hello.", "How are you?", "Goodbye."])
        client = make_client([
            marked(["Përshëndetje.", "Si jeni?"]),
            marked(["Mirupafshim."]),
        ])

        result = _translator(client, batch_size=2).translate_subtitles(items, "en", "sq")

        assert [i.text for i in result] == ["Përshëndetje.", "Si jeni?", "Mirupafshim."]
        assert [(i.index, i.start, i.end) for i in result] == [
            (i.index, i.start, i.end) for i in items
        ]
        assert [i.text for i in items] == ["Hello.", "How are you?", "Goodbye."]
        assert len(client.calls) == 2

    def test_request_messages(self, make_items, make_client, marked):
        items = make_items(["Hello.", "Bye."])
        client = make_client([marked(["Tung.", "Mirupafshim."])])

        _translator(client).translate_subtitles(items, "en", "sq")

        system, user = client.calls[0]
        assert system["role"] == "system"
        assert "exactly 2 entries" in system["content"]
        assert user["role"] == "user"
        assert user["content"].startswith("[0] Hello.")

    def test_misaligned_batch_falls_back_after_retries(self, make_items, make_client, marked):
        items = make_items(["a", "b", "c", "d"])
        bad = marked(["only one"])
        client = make_client([bad, bad, bad, marked(["C", "D"])])

        result = _translator(client, batch_size=2, max_retries=3).translate_subtitles(
            items, "en", "sq"
        )

        assert [i.text for i in result] == ["a", "b", "C", "D"]
        assert len(client.calls) == 4

    def test_run_summary_reports_errors_and_warnings(self, make_items, make_client, caplog):
        """运行结束时汇总回退 batch 的错误与逐条解码告警。"""
        items = make_items(["a", "b", "c", "d"])
        client = make_client([
            CompletionError("503 busy"),
            CompletionError("503 still busy"),
            f"C\n{SEPARATOR_TOKEN}\n[1] D",
        ])

        with caplog.at_level(logging.INFO, logger="subs2lang"):
            result = _translator(client, batch_size=2, max_retries=2).translate_subtitles(
                items, "en", "sq"
            )

        assert [i.text for i in result] == ["a", "b", "C", "D"]
        assert "1 of 2 batches kept their original text" in caplog.text
        assert "batch 1 (#1-#2) errors: 503 busy | 503 still busy" in caplog.text
        assert "1 entry warnings during decoding" in caplog.text
        assert "entry 3: missing position marker" in caplog.text

    def test_transient_error_then_success(self, make_items, make_client, marked):
        items = make_items(["a"])
        token = RecordingToken()
        client = make_client([CompletionError("503"), marked(["A"])])

        result = _translator(
            client, inter_retry_delay=5.0, cancel_token=token
        ).translate_subtitles(items, "en", "sq")

        assert [i.text for i in result] == ["A"]
        assert token.slept == [5.0]

    def test_inter_batch_delay_between_batches_only(self, make_items, make_client, marked):
        items = make_items(["a", "b", "c"])
        token = RecordingToken()
        client = make_client([marked(["A"]), marked(["B"]), marked(["C"])])

        _translator(
            client, batch_size=1, inter_batch_delay=12.0, cancel_token=token
        ).translate_subtitles(items, "en", "sq")

        assert token.slept == [12.0, 12.0]

    def test_progress_callback(self, make_items, make_client, marked):
        items = make_items(["a", "b", "c"])
        client = make_client([marked(["A", "B"]), marked(["C"])])
        seen = []

        _translator(client, batch_size=2).translate_subtitles(
            items, "en", "sq", progress=lambda *args: seen.append(args)
        )

        assert seen == [(1, 2, 2, 3), (2, 2, 3, 3)]

    def test_empty_input(self, make_client):
        client = make_client([])

        assert _translator(client).translate_subtitles([], "en", "sq") == []
        assert client.calls == []

    def test_duplicate_from_decoder_is_fatal(self, make_items, make_client, marked):
        class DuplicatingCodec(BatchCodec):
            def decode(self, blob, batch):
                decoded = super().decode(blob, batch)
                return DecodedBatch(items=decoded.items + decoded.items[:1])

        items = make_items(["a", "b"])
        client = make_client([marked(["A", "B"])])

        with pytest.raises(AlignmentFailure):
            _translator(client, codec=DuplicatingCodec()).translate_subtitles(items, "en", "sq")

    def test_output_sorted_by_index(self, make_items, make_client, marked):
        class ReversingCodec(BatchCodec):
            def decode(self, blob, batch):
                decoded = super().decode(blob, batch)
                return DecodedBatch(items=tuple(reversed(decoded.items)))

        items = make_items(["a", "b", "c"])
        client = make_client([marked(["A", "B", "C"])])

        result = _translator(client, codec=ReversingCodec()).translate_subtitles(
            items, "en", "sq"
        )

        assert [i.index for i in result] == [1, 2, 3]
        assert [i.text for i in result] == ["A", "B", "C"]

    def test_cancel_during_request_discards_result(self, make_items, make_client, marked):
        token = CancelToken()

        def respond(messages):
            token.cancel()
            return marked(["A"])

        client = make_client([respond])

        with pytest.raises(TranslationCancelled):
            _translator(client, cancel_token=token).translate_subtitles(
                make_items(["a"]), "en", "sq"
            )

    def test_cancelled_before_start(self, make_items, make_client):
        token = CancelToken()
        token.cancel()
        client = make_client([])

        with pytest.raises(TranslationCancelled):
            _translator(client, cancel_token=token).translate_subtitles(
                make_items(["a"]), "en", "sq"
            )
        assert client.calls == []


class TestFromConfig:

    def test_uses_config_values(self, tmp_path, make_client):
        config = Subs2LangConfig.from_paths(
            tmp_path / "in.srt",
            batch_size=10,
            max_retries=2,
            inter_batch_delay=1.0,
            inter_retry_delay=0.5,
        )
        config = replace(config, soft_char_cap=60, hard_char_cap=50)

        translator = LLMTranslator.from_config(config, make_client([]))

        assert translator.batch_size == 10
        assert translator.max_retries == 2
        assert translator.inter_batch_delay == 1.0
        assert translator.inter_retry_delay == 0.5
        assert translator.codec.soft_char_cap == 60
        assert translator.codec.hard_char_cap == 50
