"""
ExtractionModule
----------------
Turns raw lesson material (text, links, images, PDFs) into vocabulary items and
reading text with the help of an LLM.
"""

from .vocabulary_extractor import (
    ServiceError,
    extract_story,
    extract_vocabulary,
    render_bold_markdown,
)

__all__ = ["ServiceError", "extract_story", "extract_vocabulary", "render_bold_markdown"]
