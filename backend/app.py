from fastapi import (
    FastAPI,
    File,
    Form,
    Header,
    HTTPException,
    UploadFile,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Dict, List, Optional
import hmac
import logging

from ExtractionModule import ServiceError, extract_story, extract_vocabulary
from FlashcardsModule import ContractViolation, InvalidVocabularyError, Judgment, Orientation, PresenterState
from FlashcardsModule import session_api
from FlashcardsModule.session_api import SessionHandle
from LessonModule import EditNotAllowed, Lesson, LessonNotFound, LessonStore
from tools import settings
from tools.dictionary_lookup import lookup_dictionary, lookup_images
from tools.scheduler import get_scheduler
from tools.speech_service import SpeechService

app = FastAPI(title="Vocabulary Flashcards API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)
lesson_store = LessonStore()
scheduler = get_scheduler()
speech_service = SpeechService(scheduler=scheduler)
sessions: Dict[str, SessionHandle] = {}


class JudgeRequest(BaseModel):
    outcome: Judgment


class OrientationRequest(BaseModel):
    orientation: Orientation


class LessonOrderRequest(BaseModel):
    lesson_ids: List[str]


def can_edit(password: Optional[str]) -> bool:
    """Editing is only possible when an admin password is configured and matches."""
    if not settings.admin_password or not password:
        return False
    return hmac.compare_digest(password, settings.admin_password)


def _get_session(session_id: str) -> SessionHandle:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Review session not found")
    return session


def _session_call(session_id: str, action, *args):
    session = _get_session(session_id)
    try:
        action(session, *args)
    except ContractViolation as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return session_api.snapshot(session)


@app.post("/login/admin")
async def login_admin(password: str = Form(...)):
    allowed = can_edit(password)
    if not allowed:
        logger.info("Rejected admin login")
    return {"can_edit": allowed}


@app.get("/api/lessons")
async def list_lessons():
    return [lesson.model_dump() for lesson in lesson_store.list_lessons()]


@app.get("/api/lessons/{lesson_id}")
async def get_lesson(lesson_id: str):
    try:
        return lesson_store.get_lesson(lesson_id).model_dump()
    except LessonNotFound:
        raise HTTPException(status_code=404, detail="Lesson not found")


@app.post("/api/lessons")
async def save_lesson(lesson: Lesson, x_admin_password: Optional[str] = Header(None)):
    try:
        saved = lesson_store.save_lesson(lesson, can_edit=can_edit(x_admin_password))
    except EditNotAllowed as e:
        raise HTTPException(status_code=403, detail=str(e))
    return saved.model_dump()


@app.post("/api/lessons/order")
async def save_lessons_order(
    data: LessonOrderRequest, x_admin_password: Optional[str] = Header(None)
):
    try:
        lesson_store.save_lessons_order(data.lesson_ids, can_edit=can_edit(x_admin_password))
    except EditNotAllowed as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"success": True}


@app.delete("/api/lessons/{lesson_id}")
async def delete_lesson(lesson_id: str, x_admin_password: Optional[str] = Header(None)):
    try:
        lesson_store.delete_lesson(lesson_id, can_edit=can_edit(x_admin_password))
    except EditNotAllowed as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LessonNotFound:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return {"success": True}


@app.post("/api/extract")
async def extract(
    text: str = Form(""),
    file: Optional[UploadFile] = File(None),
    story: bool = Form(False),
):
    """Extract vocabulary (and optionally the reading text) from lesson material."""
    blob = await file.read() if file is not None else None
    mime_type = (file.content_type if file is not None else None) or "image/jpeg"
    try:
        items = extract_vocabulary(text, blob, mime_type)
        story_text = extract_story(text, blob, mime_type) if story else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ServiceError as e:
        logger.error(f"Extraction failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return {
        "vocabulary": [item.to_dict() for item in items],
        "story": story_text,
    }


@app.post("/api/lessons/{lesson_id}/review")
async def start_review(lesson_id: str):
    try:
        items = lesson_store.get_vocabulary(lesson_id)
    except LessonNotFound:
        raise HTTPException(status_code=404, detail="Lesson not found")
    if not items:
        raise HTTPException(status_code=400, detail="Lesson has no vocabulary to review")
    try:
        session = session_api.create_session(items, scheduler=scheduler, speech=speech_service)
    except (ContractViolation, InvalidVocabularyError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    sessions[session.id] = session
    logger.info("Started review %s for lesson %s", session.id, lesson_id)
    return session_api.snapshot(session)


@app.get("/api/review/{session_id}")
async def get_review(session_id: str):
    return session_api.snapshot(_get_session(session_id))


@app.post("/api/review/{session_id}/flip")
async def flip_card(session_id: str):
    return _session_call(session_id, session_api.flip)


@app.post("/api/review/{session_id}/judge")
async def judge_card(session_id: str, data: JudgeRequest):
    return _session_call(session_id, session_api.judge, data.outcome)


@app.post("/api/review/{session_id}/continue")
async def continue_review(session_id: str):
    snapshot = _session_call(session_id, session_api.advance_round)
    if snapshot["phase"] == PresenterState.SESSION_COMPLETE.value:
        session = sessions.pop(session_id, None)
        if session is not None:
            session_api.close(session)
        logger.info("Finished review %s", session_id)
    return snapshot


@app.post("/api/review/{session_id}/orientation")
async def set_orientation(session_id: str, data: OrientationRequest):
    return _session_call(session_id, session_api.set_orientation, data.orientation)


@app.post("/api/review/{session_id}/speak")
async def speak_card(session_id: str):
    return _session_call(session_id, session_api.speak)


@app.delete("/api/review/{session_id}")
async def close_review(session_id: str):
    session = sessions.pop(session_id, None)
    if session is None:
        raise HTTPException(status_code=404, detail="Review session not found")
    session_api.close(session)
    return {"success": True}


@app.get("/api/dictionary/{word}")
async def dictionary(word: str):
    entry = lookup_dictionary(word)
    if entry is None:
        raise HTTPException(status_code=404, detail="No dictionary entry")
    return entry.model_dump()


@app.get("/api/images/{word}")
async def images(word: str):
    return {"word": word, "images": lookup_images(word)}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
