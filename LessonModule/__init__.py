"""
LessonModule
------------
Stores lessons (dated vocabulary lists with their reading text) and hands
their vocabulary to review sessions.
"""

from .lesson_store import EditNotAllowed, Lesson, LessonNotFound, LessonStore, StoryContent

__all__ = ["EditNotAllowed", "Lesson", "LessonNotFound", "LessonStore", "StoryContent"]
