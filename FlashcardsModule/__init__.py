"""
FlashcardsModule
----------------
The flashcard review loop: items not yet recalled are recycled into further
rounds until every item has been marked known once in the session.
"""

from .card_presenter import CardFace, CardPresenter, Orientation, PresenterState
from .errors import ContractViolation
from .feedback import Feedback
from .review_session import Judgment, ReviewSession, SessionPhase
from .session_api import SessionHandle, create_session
from .vocabulary import InvalidVocabularyError, VocabularyItem, parse_vocabulary_payload

__all__ = [
    "CardFace",
    "CardPresenter",
    "ContractViolation",
    "Feedback",
    "InvalidVocabularyError",
    "Judgment",
    "Orientation",
    "PresenterState",
    "ReviewSession",
    "SessionHandle",
    "SessionPhase",
    "VocabularyItem",
    "create_session",
    "parse_vocabulary_payload",
]
