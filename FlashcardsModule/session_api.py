"""Function-style entry points for running a review session.

A ``SessionHandle`` owns one started :class:`CardPresenter`. Callers (the HTTP
backend, the terminal loop) only go through these functions.
"""
from __future__ import annotations

import uuid
from typing import Any, Iterable, Tuple

from .card_presenter import CardPresenter, Orientation, PresenterState
from .errors import ContractViolation
from .review_session import Judgment
from .vocabulary import VocabularyItem, as_vocabulary


class SessionHandle:
    def __init__(self, presenter: CardPresenter):
        self.id = uuid.uuid4().hex
        self.presenter = presenter

    @property
    def items(self) -> Tuple[VocabularyItem, ...]:
        return self.presenter.items


def create_session(items: Iterable[Any], **presenter_kwargs) -> SessionHandle:
    """Start a review over ``items`` (vocabulary items or plain mappings)."""
    vocabulary = as_vocabulary(items)
    if not vocabulary:
        raise ContractViolation("cannot start a review session without vocabulary")
    presenter = CardPresenter(vocabulary, **presenter_kwargs)
    presenter.start()
    return SessionHandle(presenter)


def current(session: SessionHandle) -> VocabularyItem:
    return session.presenter.current_item()


def flip(session: SessionHandle) -> None:
    session.presenter.flip()


def judge(session: SessionHandle, outcome: Judgment) -> None:
    session.presenter.judge(outcome)


def advance_round(session: SessionHandle) -> None:
    session.presenter.continue_session()


def progress(session: SessionHandle) -> Tuple[int, int]:
    return session.presenter.progress()


def phase(session: SessionHandle) -> PresenterState:
    return session.presenter.phase


def set_orientation(session: SessionHandle, mode: Orientation) -> None:
    session.presenter.set_orientation(mode)


def speak(session: SessionHandle) -> None:
    session.presenter.speak_current()


def close(session: SessionHandle) -> None:
    session.presenter.close()


def snapshot(session: SessionHandle) -> dict:
    """JSON-friendly view of everything the flashcard screen needs."""
    return {"session_id": session.id, **session.presenter.snapshot()}
