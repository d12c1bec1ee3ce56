"""
Pytest configuration for subs2lang tests.

Provides subtitle factories and a scripted completion client so that
no test touches the network or sleeps.
"""

import logging
from typing import Callable, List, Sequence, Union

import pytest

from subs2lang.subtitles import SubtitleItem
from subs2lang.translate.client import CompletionClient
from subs2lang.translate.codec import SEPARATOR_TOKEN


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "e2e: marks tests as end-to-end tests (file in, file out)"
    )


Response = Union[str, Exception, Callable[[list], str]]


class ScriptedClient(CompletionClient):
    """Completion client that replays a fixed list of responses in order."""

    def __init__(self, responses: Sequence[Response]):
        self.responses: List[Response] = list(responses)
        self.calls: List[list] = []

    def complete(self, messages):
        self.calls.append(messages)
        if not self.responses:
            raise AssertionError("Unexpected completion request")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(messages)
        return response


def build_items(texts: Sequence[str], first_index: int = 1) -> List[SubtitleItem]:
    return [
        SubtitleItem(
            index=first_index + i,
            start=float(2 * i),
            end=float(2 * i + 1.5),
            text=text,
        )
        for i, text in enumerate(texts)
    ]


def build_marked_response(texts: Sequence[str]) -> str:
    return f"\n{SEPARATOR_TOKEN}\n".join(f"[{i}] {t}" for i, t in enumerate(texts))


@pytest.fixture
def make_items():
    return build_items


@pytest.fixture
def make_client():
    return ScriptedClient


@pytest.fixture
def marked():
    return build_marked_response


@pytest.fixture
def restore_logging():
    """Undo root logger changes made by the CLI's logging setup."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
