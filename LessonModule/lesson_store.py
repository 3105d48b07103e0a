"""JSON-file persistence for lessons.

Reading is open to everyone; every mutating call takes an explicit
``can_edit`` capability flag and refuses to run without it.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
import uuid
from datetime import date
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from FlashcardsModule.vocabulary import VocabularyItem
from tools import settings

logger = logging.getLogger(__name__)


class EditNotAllowed(PermissionError):
    """A mutating store call was made without edit capability."""


class LessonNotFound(KeyError):
    pass


class StoryContent(BaseModel):
    title: str = "Untitled"
    content: str = ""


def _now_ms() -> int:
    return int(time.time() * 1000)


class Lesson(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date: str = Field(default_factory=lambda: date.today().isoformat())
    vocabulary_title: str = ""
    vocabulary: List[VocabularyItem] = []
    story: StoryContent = Field(default_factory=StoryContent)
    created_at: int = Field(default_factory=_now_ms)
    order: Optional[int] = None
    audio_url: Optional[str] = None


class LessonStore:
    def __init__(self, path: Optional[str] = None):
        self.path = path or os.path.join(settings.data_dir, "lessons", "lessons.json")
        self._lock = threading.Lock()

    def _load(self) -> List[Lesson]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [Lesson.model_validate(entry) for entry in data]

    def _dump(self, lessons: List[Lesson]) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(
                [lesson.model_dump() for lesson in lessons], f, indent=4, ensure_ascii=False
            )

    @staticmethod
    def _require_edit(can_edit: bool, action: str) -> None:
        if not can_edit:
            raise EditNotAllowed(f"{action} requires edit permission")

    def list_lessons(self) -> List[Lesson]:
        """Lessons by manual order, unordered ones last, newest first within ties."""
        with self._lock:
            lessons = self._load()
        lessons.sort(key=lambda l: -l.created_at)
        lessons.sort(key=lambda l: (l.order is None, l.order or 0))
        return lessons

    def get_lesson(self, lesson_id: str) -> Lesson:
        with self._lock:
            for lesson in self._load():
                if lesson.id == lesson_id:
                    return lesson
        raise LessonNotFound(lesson_id)

    def get_vocabulary(self, lesson_id: str) -> Tuple[VocabularyItem, ...]:
        return tuple(self.get_lesson(lesson_id).vocabulary)

    def save_lesson(self, lesson: Lesson, can_edit: bool) -> Lesson:
        self._require_edit(can_edit, "Saving a lesson")
        with self._lock:
            lessons = self._load()
            for i, existing in enumerate(lessons):
                if existing.id == lesson.id:
                    lesson = lesson.model_copy(update={"created_at": existing.created_at})
                    if lesson.order is None:
                        lesson = lesson.model_copy(update={"order": existing.order})
                    lessons[i] = lesson
                    break
            else:
                lessons.append(lesson)
            self._dump(lessons)
        logger.info("Saved lesson %s (%d words)", lesson.id, len(lesson.vocabulary))
        return lesson

    def delete_lesson(self, lesson_id: str, can_edit: bool) -> None:
        self._require_edit(can_edit, "Deleting a lesson")
        with self._lock:
            lessons = self._load()
            remaining = [l for l in lessons if l.id != lesson_id]
            if len(remaining) == len(lessons):
                raise LessonNotFound(lesson_id)
            self._dump(remaining)
        logger.info("Deleted lesson %s", lesson_id)

    def save_lessons_order(self, lesson_ids: Sequence[str], can_edit: bool) -> None:
        """Assign ``order`` from the position of each id in ``lesson_ids``."""
        self._require_edit(can_edit, "Reordering lessons")
        positions = {lesson_id: i for i, lesson_id in enumerate(lesson_ids)}
        with self._lock:
            lessons = self._load()
            updated = [
                l.model_copy(update={"order": positions[l.id]}) if l.id in positions else l
                for l in lessons
            ]
            self._dump(updated)
