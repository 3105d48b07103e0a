"""Audible feedback for known/forgot judgments.

A short synthesized tone accompanies the visual pulse on the card: a rising
sine "ding" for a correct answer and a low sawtooth "buzz" for a wrong one.
Playing it is best effort. Failures are logged and never reach the presenter.
"""
from __future__ import annotations

import io
import logging
import wave
from enum import Enum
from typing import Callable, Optional

import numpy as np

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050


class Feedback(str, Enum):
    NONE = "none"
    CORRECT = "correct"
    WRONG = "wrong"


def _exponential_ramp(start: float, end: float, ramp_s: float, t: np.ndarray) -> np.ndarray:
    progress = np.clip(t / ramp_s, 0.0, 1.0)
    return start * (end / start) ** progress


def _linear_ramp(start: float, end: float, ramp_s: float, t: np.ndarray) -> np.ndarray:
    progress = np.clip(t / ramp_s, 0.0, 1.0)
    return start + (end - start) * progress


def render_feedback_tone(feedback: Feedback, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Return the tone for ``feedback`` as float samples in ``[-1, 1]``."""
    feedback = Feedback(feedback)
    if feedback is Feedback.CORRECT:
        duration = 0.5
        t = np.arange(int(duration * sample_rate)) / sample_rate
        freq = _exponential_ramp(500.0, 1000.0, 0.1, t)
        gain = _exponential_ramp(0.3, 0.01, 0.5, t)
        phase = 2 * np.pi * np.cumsum(freq) / sample_rate
        wave_form = np.sin(phase)
    elif feedback is Feedback.WRONG:
        duration = 0.3
        t = np.arange(int(duration * sample_rate)) / sample_rate
        freq = _linear_ramp(150.0, 100.0, 0.2, t)
        gain = _linear_ramp(0.3, 0.01, 0.3, t)
        cycles = np.cumsum(freq) / sample_rate
        wave_form = 2.0 * (cycles - np.floor(cycles + 0.5))
    else:
        return np.zeros(0, dtype=np.float32)
    return (wave_form * gain).astype(np.float32)


def tone_to_wav(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Encode float samples as 16-bit mono WAV."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype("<i2")
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.tobytes())
    return buffer.getvalue()


def play_feedback_sound(
    feedback: Feedback, sink: Optional[Callable[[bytes], None]]
) -> None:
    """Render the tone for ``feedback`` and hand the WAV bytes to ``sink``."""
    if sink is None or Feedback(feedback) is Feedback.NONE:
        return
    try:
        sink(tone_to_wav(render_feedback_tone(feedback)))
    except Exception:
        logger.exception("Audio play failed")
