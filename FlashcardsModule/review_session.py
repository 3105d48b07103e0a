"""Round-based requeue of vocabulary items within one study session.

Round 1 visits every item in lesson order. Items judged "forgot" are collected,
in judgment order, into the queue for the next round. The session is complete
once a round ends with nothing collected. There is no cap on the number of
rounds: an item that is forgotten every time keeps the session going.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Set, Tuple

from .errors import ContractViolation

logger = logging.getLogger(__name__)


class Judgment(str, Enum):
    KNOWN = "known"
    FORGOT = "forgot"


class SessionPhase(str, Enum):
    STUDYING = "studying"
    ROUND_SUMMARY = "round_summary"
    SESSION_COMPLETE = "session_complete"


class ReviewSession:
    """Decides which item is current and when rounds and the session end.

    Items are referred to by their index in the lesson's vocabulary; the
    session never sees the items themselves, only the word text of forgotten
    ones for :attr:`ever_forgotten`.
    """

    def __init__(self):
        self.item_count = 0
        self.current_round_queue: List[int] = []
        self.current_position = 0
        self.next_round_queue: List[int] = []
        self.ever_forgotten: Set[str] = set()
        self.phase = None
        self.rounds_started = 0

    def start(self, item_count: int) -> None:
        if item_count < 1:
            raise ContractViolation("cannot start a review session without vocabulary")
        self.item_count = item_count
        self.current_round_queue = list(range(item_count))
        self.current_position = 0
        self.next_round_queue = []
        self.ever_forgotten = set()
        self.phase = SessionPhase.STUDYING
        self.rounds_started = 1
        logger.info("Review session started with %d item(s)", item_count)

    def _require(self, phase: SessionPhase, operation: str) -> None:
        if self.phase is not phase:
            current = self.phase.value if self.phase else "not started"
            raise ContractViolation(f"{operation}() requires phase {phase.value}, session is {current}")

    def current_item_index(self) -> int:
        self._require(SessionPhase.STUDYING, "current_item_index")
        return self.current_round_queue[self.current_position]

    def judge(self, outcome: Judgment, word_text: str) -> None:
        self._require(SessionPhase.STUDYING, "judge")
        outcome = Judgment(outcome)
        index = self.current_item_index()
        if outcome is Judgment.FORGOT:
            self.next_round_queue.append(index)
            self.ever_forgotten.add(word_text)
        logger.debug("Item %d judged %s", index, outcome.value)

        if self.current_position + 1 < len(self.current_round_queue):
            self.current_position += 1
        else:
            self.current_position = len(self.current_round_queue)
            self.phase = SessionPhase.ROUND_SUMMARY
            logger.info(
                "Round %d finished, %d word(s) to review",
                self.rounds_started,
                len(self.next_round_queue),
            )

    def advance_round(self) -> None:
        self._require(SessionPhase.ROUND_SUMMARY, "advance_round")
        if not self.next_round_queue:
            self.phase = SessionPhase.SESSION_COMPLETE
            logger.info("Review session complete after %d round(s)", self.rounds_started)
            return
        self.current_round_queue = self.next_round_queue
        self.next_round_queue = []
        self.current_position = 0
        self.phase = SessionPhase.STUDYING
        self.rounds_started += 1

    def progress(self) -> Tuple[int, int]:
        self._require(SessionPhase.STUDYING, "progress")
        return self.current_position + 1, len(self.current_round_queue)

    @property
    def words_to_review(self) -> int:
        return len(self.next_round_queue)
