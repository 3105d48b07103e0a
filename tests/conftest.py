import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from FlashcardsModule.vocabulary import VocabularyItem
from tools import settings


class FakeHandle:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.done = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock: callbacks only fire when the test advances time."""

    def __init__(self):
        self.now = 0
        self.handles = []

    def call_later(self, delay_ms, callback):
        handle = FakeHandle(self.now + delay_ms, callback)
        self.handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self.handles if not h.cancelled and not h.done]

    def advance(self, ms):
        self.now += ms
        for handle in sorted(self.pending(), key=lambda h: h.due):
            if handle.due <= self.now and not handle.cancelled:
                handle.done = True
                handle.callback()


class SyncExecutor:
    def submit(self, fn, *args, **kwargs):
        fn(*args, **kwargs)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def sync_executor():
    return SyncExecutor()


@pytest.fixture
def vocab():
    return [
        VocabularyItem(word="abundant", ipa="/əˈbʌndənt/", definition="丰富的", example="Water is abundant here."),
        VocabularyItem(word="brisk", ipa="/brɪsk/", definition="轻快的", example="We took a brisk walk."),
        VocabularyItem(word="candid", definition="坦率的", example="She was candid about it."),
    ]


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", str(tmp_path))
    return tmp_path
