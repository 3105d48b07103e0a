"""State machine deciding what the flashcard view shows.

``CardPresenter`` sits on top of :class:`ReviewSession`. A judgment is recorded
in the session immediately, but the card on screen only changes after a short
feedback delay, so the presenter keeps its own notion of the *displayed* card
while a transition is pending.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from tools import settings
from tools.dictionary_lookup import lookup_images
from tools.scheduler import get_scheduler

from .errors import ContractViolation
from .feedback import Feedback, play_feedback_sound
from .review_session import Judgment, ReviewSession, SessionPhase
from .vocabulary import VocabularyItem

logger = logging.getLogger(__name__)


class Orientation(str, Enum):
    FORWARD = "forward"  # word first, flips to definition
    REVERSE = "reverse"  # definition first, flips to word


class PresenterState(str, Enum):
    IDLE = "idle"
    STUDYING = "studying"
    AWAITING_ADVANCE = "awaiting_advance"
    ROUND_SUMMARY = "round_summary"
    SESSION_COMPLETE = "session_complete"


class CardFace(BaseModel):
    """Fields visible on the current side of the card; hidden ones are None."""

    side: str
    word: Optional[str] = None
    ipa: Optional[str] = None
    definition: Optional[str] = None
    example: Optional[str] = None
    images: List[str] = []


class CardPresenter:
    def __init__(
        self,
        items: Sequence[VocabularyItem],
        scheduler=None,
        feedback_delay_ms: Optional[int] = None,
        sound_sink: Optional[Callable[[bytes], None]] = None,
        speech=None,
        on_change: Optional[Callable[["CardPresenter"], None]] = None,
    ):
        self.items = tuple(items)
        self.scheduler = scheduler or get_scheduler()
        self.feedback_delay_ms = (
            settings.feedback_delay_ms if feedback_delay_ms is None else feedback_delay_ms
        )
        self.sound_sink = sound_sink
        self.speech = speech
        self.on_change = on_change

        self.session: Optional[ReviewSession] = None
        self.state = PresenterState.IDLE
        self.flipped = False
        self.orientation = Orientation.FORWARD
        self.feedback = Feedback.NONE

        self._displayed_index: Optional[int] = None
        self._displayed_progress: Optional[Tuple[int, int]] = None
        self._pending = None
        self._generation = 0
        self._lock = threading.RLock()

    def _require(self, *states: PresenterState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise ContractViolation(f"presenter is {self.state.value}, expected one of: {allowed}")

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _show_current(self) -> None:
        self._displayed_index = self.session.current_item_index()
        self._displayed_progress = self.session.progress()

    def start(self) -> None:
        with self._lock:
            self._require(PresenterState.IDLE)
            if not self.items:
                raise ContractViolation("lesson has no vocabulary to review")
            session = ReviewSession()
            session.start(len(self.items))
            self.session = session
            self.flipped = False
            self.feedback = Feedback.NONE
            self._show_current()
            self.state = PresenterState.STUDYING
        self._notify()

    def flip(self) -> None:
        with self._lock:
            self._require(PresenterState.STUDYING)
            self.flipped = not self.flipped
        self._notify()

    def set_orientation(self, mode: Orientation) -> None:
        with self._lock:
            if self.state is PresenterState.SESSION_COMPLETE:
                raise ContractViolation("orientation cannot change after the session is complete")
            self.orientation = Orientation(mode)
            self.flipped = False
        self._notify()

    def toggle_orientation(self) -> None:
        if self.orientation is Orientation.FORWARD:
            self.set_orientation(Orientation.REVERSE)
        else:
            self.set_orientation(Orientation.FORWARD)

    def judge(self, outcome: Judgment) -> None:
        """Record ``outcome`` now and show the next card after the delay."""
        with self._lock:
            self._require(PresenterState.STUDYING)
            outcome = Judgment(outcome)
            item = self.items[self._displayed_index]
            self.feedback = Feedback.CORRECT if outcome is Judgment.KNOWN else Feedback.WRONG
            self.session.judge(outcome, item.word)
            self.state = PresenterState.AWAITING_ADVANCE
            self._generation += 1
            generation = self._generation
            self._pending = self.scheduler.call_later(
                self.feedback_delay_ms, lambda: self._finish_advance(generation)
            )
            feedback = self.feedback
        play_feedback_sound(feedback, self.sound_sink)
        self._notify()

    def _finish_advance(self, generation: int) -> None:
        with self._lock:
            # A timer from a judgment that was superseded or torn down.
            if generation != self._generation or self.state is not PresenterState.AWAITING_ADVANCE:
                return
            self._pending = None
            self.feedback = Feedback.NONE
            self.flipped = False
            if self.session.phase is SessionPhase.STUDYING:
                self._show_current()
                self.state = PresenterState.STUDYING
            else:
                self._displayed_index = None
                self._displayed_progress = None
                self.state = PresenterState.ROUND_SUMMARY
        self._notify()

    def wait_for_advance(self, timeout: Optional[float] = None) -> None:
        """Block until the pending advance has run (threading scheduler only)."""
        pending = self._pending
        if pending is not None:
            pending.join(timeout)

    def continue_session(self) -> None:
        with self._lock:
            self._require(PresenterState.ROUND_SUMMARY)
            self.session.advance_round()
            if self.session.phase is SessionPhase.STUDYING:
                self.flipped = False
                self._show_current()
                self.state = PresenterState.STUDYING
            else:
                self.state = PresenterState.SESSION_COMPLETE
        self._notify()

    def close(self) -> None:
        """Tear the session down, cancelling any pending advance."""
        with self._lock:
            pending = self._pending
            self._pending = None
            self._generation += 1
            self.session = None
            self.state = PresenterState.IDLE
            self.flipped = False
            self.feedback = Feedback.NONE
            self._displayed_index = None
            self._displayed_progress = None
        if pending is not None:
            try:
                pending.cancel()
            except Exception:
                logger.exception("Failed to cancel feedback timer")
        if self.speech is not None:
            try:
                self.speech.cancel()
            except Exception:
                logger.exception("Failed to cancel speech")
        self._notify()

    @property
    def phase(self) -> PresenterState:
        return self.state

    def current_item(self) -> VocabularyItem:
        with self._lock:
            self._require(PresenterState.STUDYING, PresenterState.AWAITING_ADVANCE)
            return self.items[self._displayed_index]

    def progress(self) -> Tuple[int, int]:
        with self._lock:
            self._require(PresenterState.STUDYING, PresenterState.AWAITING_ADVANCE)
            return self._displayed_progress

    def words_to_review(self) -> int:
        with self._lock:
            if self.session is None:
                raise ContractViolation("no active review session")
            return self.session.words_to_review

    def ever_forgotten(self) -> FrozenSet[str]:
        with self._lock:
            if self.session is None:
                return frozenset()
            return frozenset(self.session.ever_forgotten)

    def visible_face(self) -> CardFace:
        with self._lock:
            item = self.current_item()
            reverse = self.orientation is Orientation.REVERSE
            if not self.flipped:
                if reverse:
                    return CardFace(side="front", definition=item.definition)
                return CardFace(
                    side="front", word=item.word, ipa=item.ipa, images=lookup_images(item.word)
                )
            if reverse:
                return CardFace(
                    side="back",
                    word=item.word,
                    ipa=item.ipa,
                    example=item.example,
                    images=lookup_images(item.word),
                )
            return CardFace(
                side="back", word=item.word, definition=item.definition, example=item.example
            )

    def snapshot(self) -> dict:
        """Consistent view of the screen state, taken under one lock."""
        with self._lock:
            state = self.phase
            data = {
                "phase": state.value,
                "orientation": self.orientation.value,
                "flipped": self.flipped,
                "feedback": self.feedback.value,
                "ever_forgotten": sorted(self.ever_forgotten()),
                "progress": None,
                "card": None,
                "words_to_review": None,
            }
            if state in (PresenterState.STUDYING, PresenterState.AWAITING_ADVANCE):
                position, total = self.progress()
                data["progress"] = {"position": position, "total": total}
                data["card"] = self.visible_face().model_dump()
            if state in (PresenterState.ROUND_SUMMARY, PresenterState.SESSION_COMPLETE):
                data["words_to_review"] = self.words_to_review()
        return data

    def speak_current(self) -> None:
        if self.speech is None:
            return
        item = self.current_item()
        self.speech.speak_word_and_example(item.word, item.example)
