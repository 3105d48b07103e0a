"""LLM-backed extraction of vocabulary and reading text from lesson material.

Input may be plain text, a link, an image or a PDF. Images are sent to the
model as image parts; PDFs are read with PyMuPDF and pages that carry almost
no text layer (scans) are rendered and sent as images instead.

The model's JSON reply is untrusted: it is validated against the
``VocabularyItem`` shape before anything is returned.
"""
from __future__ import annotations

import base64
import html
import json
import logging
import re
from typing import List, Optional, Tuple, Union

import fitz
from langchain_core.messages import HumanMessage
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from FlashcardsModule.vocabulary import (
    InvalidVocabularyError,
    VocabularyItem,
    parse_vocabulary_payload,
)
from tools import settings
from tools.llm_logger import get_llm_logger

logger = logging.getLogger(__name__)

MIN_PAGE_TEXT = 50
TEMPERATURE = 0.3

FileBlob = Union[bytes, str]


class ServiceError(Exception):
    """The extraction service could not produce a usable result."""


VOCABULARY_PROMPT = PromptTemplate.from_template(
    """
You are an expert, rigorous English linguistics tutor.
Analyze the provided content (text, image, PDF document or URL link).

CRITICAL INSTRUCTION:
Extract a COMPREHENSIVE list. Do NOT limit yourself to just 5 or 10 words.
Scan the entire document/text and extract:
1. All difficult vocabulary.
2. All idiomatic phrases and collocations.
3. Important key sentences (as a phrase entry if short, otherwise the key structure).

SELF-CORRECTION CHECK:
- Have I missed any phrasal verbs?
- Have I missed any C1/C2 level words?
- Have I included all key terms from the text?

For each extracted item provide:
1. "word": the word or phrase.
2. "ipa": IPA phonetic transcription, e.g. /wɜːrd/.
3. "definition": the Chinese definition.
4. "example": a simple English example sentence containing the word.

If the input below looks like a URL (starts with http), infer the content from
that URL and extract from it.

Respond ONLY with a JSON object of the form
{{"vocabulary": [{{"word": "...", "ipa": "...", "definition": "...", "example": "..."}}]}}

Input Context:
{text}
"""
)

STORY_PROMPT = PromptTemplate.from_template(
    """
You are an expert editor and document parser.
Extract the full English text content from the provided input (text, file or URL).

CRITICAL FORMATTING REQUIREMENTS:
1. PRESERVE BOLDING: words that are bold or visually emphasized in the original
   must be kept bold using Markdown (**word**).
2. IDENTIFY KEYWORDS: if the input is plain text without formatting, mark
   difficult English words or key phrases with **bold** yourself.
3. Return ONLY the content. No intro or outro.
4. Preserve paragraph structure.

Input Context:
{text}
"""
)


def _decode_blob(file_blob: FileBlob) -> Tuple[bytes, Optional[str]]:
    """Return raw bytes and, for ``data:`` URLs, the embedded mime type."""
    if isinstance(file_blob, bytes):
        return file_blob, None
    mime_type = None
    data = file_blob
    match = re.match(r"data:([^;,]+)?(;base64)?,", file_blob)
    if match:
        mime_type = match.group(1)
        data = file_blob[match.end():]
    try:
        return base64.b64decode(data, validate=False), mime_type
    except ValueError as e:
        raise ServiceError(f"File is not valid base64: {e}") from e


def _image_part(data: bytes, mime_type: str) -> dict:
    encoded = base64.b64encode(data).decode("ascii")
    return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}}


def _pdf_parts(data: bytes) -> Tuple[str, List[dict]]:
    texts = []
    images = []
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise ServiceError(f"Could not read PDF: {e}") from e
    try:
        for page in doc:
            text = page.get_text()
            if len(text.strip()) < MIN_PAGE_TEXT:
                pix = page.get_pixmap(matrix=fitz.Matrix(2, 2))
                images.append(_image_part(pix.tobytes("png"), "image/png"))
            else:
                texts.append(text.strip())
    finally:
        doc.close()
    return "\n\n".join(texts), images


def _file_parts(file_blob: Optional[FileBlob], mime_type: str) -> Tuple[str, List[dict]]:
    if not file_blob:
        return "", []
    data, embedded_type = _decode_blob(file_blob)
    mime_type = embedded_type or mime_type
    if mime_type == "application/pdf":
        return _pdf_parts(data)
    if mime_type.startswith("image/"):
        return "", [_image_part(data, mime_type)]
    if mime_type.startswith("text/"):
        return data.decode("utf-8", errors="replace"), []
    raise ServiceError(f"Unsupported file type: {mime_type}")


def _invoke_llm(prompt: PromptTemplate, source_text: str, file_blob, mime_type, json_mode, function):
    if not settings.api_key:
        raise ServiceError("Missing API key. Please ensure api_key is set.")
    if not (source_text and source_text.strip()) and not file_blob:
        raise ValueError("Provide source text or a file to extract from.")

    file_text, image_parts = _file_parts(file_blob, mime_type)
    text = "\n\n".join(t for t in (source_text.strip() if source_text else "", file_text) if t)
    prompt_text = prompt.format(text=text)
    message = HumanMessage(content=[*image_parts, {"type": "text", "text": prompt_text}])

    llm = ChatOpenAI(
        model=settings.model_name,
        temperature=TEMPERATURE,
        base_url=settings.base_url,
        api_key=settings.api_key,
    )
    if json_mode:
        llm = llm.bind(response_format={"type": "json_object"})
    try:
        response = llm.invoke([message])
    except Exception as e:
        logger.error("Extraction LLM call failed: %s", e)
        raise ServiceError(f"LLM request failed: {e}") from e

    get_llm_logger().log_llm_call(
        messages=[{"role": "user", "content": prompt_text}],
        response=response,
        model=settings.model_name,
        module="ExtractionModule.vocabulary_extractor",
        metadata={"function": function, "images": len(image_parts)},
    )
    return getattr(response, "content", "") or ""


def _parse_json(content: str):
    cleaned = content.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", cleaned, re.DOTALL)
    if fenced:
        cleaned = fenced.group(1)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ServiceError(f"LLM returned invalid JSON: {e}") from e


def extract_vocabulary(
    source_text: str,
    file_blob: Optional[FileBlob] = None,
    mime_type: str = "image/jpeg",
) -> List[VocabularyItem]:
    """Extract vocabulary items from text and/or an attached file.

    Items missing ``word``, ``definition`` or ``example`` are dropped. The list
    is not deduplicated.
    """
    content = _invoke_llm(
        VOCABULARY_PROMPT, source_text, file_blob, mime_type, True, "extract_vocabulary"
    )
    if not content.strip():
        raise ServiceError("No response from AI")
    payload = _parse_json(content)
    try:
        items = parse_vocabulary_payload(payload)
    except InvalidVocabularyError as e:
        raise ServiceError(f"Unexpected vocabulary payload: {e}") from e
    logger.info("Extracted %d vocabulary item(s)", len(items))
    return items


def extract_story(
    source_text: str,
    file_blob: Optional[FileBlob] = None,
    mime_type: str = "image/jpeg",
) -> str:
    """Extract the reading text, keeping (or adding) **bold** keywords."""
    return _invoke_llm(
        STORY_PROMPT, source_text, file_blob, mime_type, False, "extract_story"
    ).strip()


def render_bold_markdown(text: str) -> str:
    escaped = html.escape(text, quote=False)
    escaped = re.sub(r"\*\*(.*?)\*\*", r"<strong>\1</strong>", escaped)
    return escaped.replace("\n", "<br />")
