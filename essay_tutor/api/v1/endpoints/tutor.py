import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from essay_tutor.api.deps import Session, get_session
from essay_tutor.core.errors import (
    AuthError,
    GradingError,
    NavigationError,
    SubmissionInProgressError,
    ValidationError,
)
from essay_tutor.schemas.api import (
    ErrorResponse,
    NavigateRequest,
    PracticeResponse,
    ReportResponse,
    SessionResponse,
)
from essay_tutor.schemas.mindmap import MindMapRequest, MindMapResponse
from essay_tutor.services.image_service import prepare_answer_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tutor")


# ── Helpers ──────────────────────────────────────────────────────────────────

def _ok(session: Session, body) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=session.headers,
    )


def _error(session: Session, status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(status="error", message=message, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=session.headers)


def _state(session: Session) -> SessionResponse:
    return SessionResponse(session_id=session.id, state=session.controller.state)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. SUBMIT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/submit", response_model=SessionResponse)
async def submit_answer(
    topic: str = Form(default=""),
    persona: str = Form(default="professor"),
    answer_text: str = Form(default=""),
    image: Optional[UploadFile] = File(default=None),
    session: Session = Depends(get_session),
):
    """Grade a typed or photographed answer, then load practice suggestions."""
    controller = session.controller
    if controller.state.loading:
        return _error(session, 409, "A submission is already being graded.")

    answer_image = None
    if image is not None and image.filename:
        try:
            answer_image = await prepare_answer_image(await image.read(), image.filename)
        except ValidationError as e:
            return _error(session, 400, str(e))

    try:
        await controller.submit(topic, answer_text, answer_image, persona)
    except ValidationError as e:
        return _error(session, 400, str(e))
    except SubmissionInProgressError as e:
        return _error(session, 409, str(e))
    except AuthError as e:
        return _error(session, 503, controller.state.notice.message, detail=str(e))
    except GradingError as e:
        return _error(session, 502, controller.state.notice.message, detail=str(e))

    return _ok(session, _state(session))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. SESSION & NAVIGATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/session", response_model=SessionResponse)
async def get_session_state(session: Session = Depends(get_session)):
    return _ok(session, _state(session))


@router.post("/navigate", response_model=SessionResponse)
async def navigate(request: NavigateRequest, session: Session = Depends(get_session)):
    try:
        session.controller.navigate(request.view)
    except NavigationError as e:
        return _error(session, 409, str(e))
    return _ok(session, _state(session))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. REPORT & PRACTICE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/report", response_model=ReportResponse)
async def get_report(session: Session = Depends(get_session)):
    report = session.controller.state.report
    if report is None:
        return _error(session, 404, "No report yet. Submit an answer first.")
    return _ok(session, ReportResponse(
        report=report,
        score_band=report.score_band,
        model_essay_type=report.model_essay_type,
    ))


@router.get("/practice", response_model=PracticeResponse)
async def get_practice(session: Session = Depends(get_session)):
    return _ok(session, PracticeResponse(questions=session.controller.practice_questions))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. MIND MAP
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/mindmap", response_model=MindMapResponse)
async def create_mindmap(request: MindMapRequest, session: Session = Depends(get_session)):
    """Outline an answer for any exam topic. mindMap is null when generation failed."""
    try:
        mind_map = await session.controller.build_mind_map(request.topic)
    except ValidationError as e:
        return _error(session, 400, str(e))
    return JSONResponse(
        status_code=200,
        content=MindMapResponse(mind_map=mind_map).model_dump(mode="json", by_alias=True),
        headers=session.headers,
    )
