"""Vocabulary items and validation of untrusted vocabulary payloads.

Items produced by the extraction service (or posted by a client) are checked
here before they can reach a review session. Scheduling identifies items by
their position in the lesson, so duplicates are kept as they are.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("word", "definition", "example")


class InvalidVocabularyError(ValueError):
    """Raised when a payload cannot be turned into vocabulary items."""


class VocabularyItem(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    word: str
    ipa: Optional[str] = None
    definition: str
    example: str

    @field_validator("word")
    @classmethod
    def _word_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("word must not be empty")
        return value

    @field_validator("ipa")
    @classmethod
    def _blank_ipa_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def to_dict(self) -> dict:
        return self.model_dump()


def _coerce_item(raw: Any) -> VocabularyItem:
    if isinstance(raw, VocabularyItem):
        return raw
    if not isinstance(raw, dict):
        raise InvalidVocabularyError(f"vocabulary item must be an object, got {type(raw).__name__}")
    missing = [f for f in REQUIRED_FIELDS if not isinstance(raw.get(f), str)]
    if missing:
        raise InvalidVocabularyError(f"vocabulary item missing {', '.join(missing)}: {raw!r}")
    try:
        return VocabularyItem(
            word=raw["word"],
            ipa=raw.get("ipa") if isinstance(raw.get("ipa"), str) else None,
            definition=raw["definition"],
            example=raw["example"],
        )
    except ValidationError as e:
        raise InvalidVocabularyError(str(e)) from e


def parse_vocabulary_payload(payload: Any, strict: bool = False) -> List[VocabularyItem]:
    """Validate ``payload`` and return the vocabulary items it contains.

    ``payload`` may be ``{"vocabulary": [...]}`` or a bare list. Unknown keys
    on items are ignored. With ``strict`` the first bad item raises
    :class:`InvalidVocabularyError`; otherwise bad items are logged and dropped.
    """
    if isinstance(payload, dict):
        if "vocabulary" not in payload:
            raise InvalidVocabularyError("payload has no 'vocabulary' list")
        payload = payload["vocabulary"]
    if not isinstance(payload, (list, tuple)):
        raise InvalidVocabularyError("vocabulary must be a list")

    items = []
    for position, raw in enumerate(payload):
        try:
            items.append(_coerce_item(raw))
        except InvalidVocabularyError as e:
            if strict:
                raise
            logger.warning("Dropping vocabulary item %d: %s", position, e)
    return items


def as_vocabulary(items: Iterable[Any]) -> tuple:
    """Strictly coerce a sequence of items or mappings into a tuple."""
    return tuple(parse_vocabulary_payload(list(items), strict=True))
