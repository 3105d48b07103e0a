"""Pronunciation playback with gTTS.

Speech is fire-and-forget: ``speak`` returns immediately and synthesis happens
on a worker. Only the most recent request is ever played; starting a new one
supersedes whatever was in flight.
"""
from __future__ import annotations

import io
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from gtts import gTTS

from tools import settings
from tools.scheduler import get_scheduler

logger = logging.getLogger(__name__)

# Pause between a word and its example sentence.
EXAMPLE_GAP_MS = 500


def save_to_file(audio: bytes, text: str, base_dir: Optional[str] = None) -> str:
    """Default player: write the latest utterance to ``<data_dir>/audio``."""
    base_dir = base_dir or os.path.join(settings.data_dir, "audio")
    os.makedirs(base_dir, exist_ok=True)
    path = os.path.join(base_dir, "last_utterance.mp3")
    with open(path, "wb") as f:
        f.write(audio)
    logger.info("Saved speech for %r to %s", text[:40], path)
    return path


class SpeechService:
    def __init__(
        self,
        player: Optional[Callable[[bytes, str], object]] = None,
        lang: Optional[str] = None,
        executor=None,
        scheduler=None,
    ):
        self.player = player or save_to_file
        self.lang = lang or settings.tts_lang
        self.executor = executor or ThreadPoolExecutor(max_workers=1)
        self.scheduler = scheduler or get_scheduler()
        self._generation = 0
        self._pending = None
        self._lock = threading.Lock()

    def _supersede(self) -> int:
        with self._lock:
            self._generation += 1
            generation = self._generation
            pending, self._pending = self._pending, None
        if pending is not None:
            pending.cancel()
        return generation

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def synthesize(self, text: str) -> bytes:
        buffer = io.BytesIO()
        gTTS(text=text, lang=self.lang).write_to_fp(buffer)
        return buffer.getvalue()

    def _play(self, text: str, generation: int, then: Optional[Callable[[], None]] = None) -> None:
        try:
            audio = self.synthesize(text)
        except Exception as e:
            logger.warning("Speech synthesis failed for %r: %s", text[:40], e)
            return
        if not self._is_current(generation):
            return
        try:
            self.player(audio, text)
        except Exception:
            logger.exception("Speech playback failed")
            return
        if then is not None:
            then()

    def speak(self, text: str) -> None:
        if not text or not text.strip():
            return
        generation = self._supersede()
        self.executor.submit(self._play, text, generation)

    def speak_word_and_example(self, word: str, example: str) -> None:
        if not word or not word.strip():
            if example and example.strip():
                self.speak(example)
            else:
                self.cancel()
            return
        generation = self._supersede()

        def _queue_example():
            if not example or not self._is_current(generation):
                return
            handle = self.scheduler.call_later(
                EXAMPLE_GAP_MS,
                lambda: self.executor.submit(self._play, example, generation),
            )
            with self._lock:
                if generation == self._generation:
                    self._pending = handle
                    return
            handle.cancel()

        self.executor.submit(self._play, word, generation, _queue_example)

    def cancel(self) -> None:
        self._supersede()
