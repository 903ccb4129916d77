"""Public survey API — anonymous access to active forms by share id."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from formpulse.core.config import settings
from formpulse.core.database import get_db
from formpulse.core.decoding import decode_fields
from formpulse.models.form import Form
from formpulse.schemas.forms import PublicFormOut
from formpulse.schemas.responses import (
    SubmissionRequest,
    SubmissionResult,
    VisibilityRequest,
    VisibilityResult,
)
from formpulse.services.submissions import (
    DuplicateSubmissionError,
    SubmissionValidationError,
    submit_response,
)
from formpulse.services.visibility import visible_fields

logger = logging.getLogger(__name__)

router = APIRouter()

ALREADY_RESPONDED = "This form has already been answered."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_active_form_or_404(share_id: str, db: Session) -> Form:
    form = db.execute(
        select(Form).where(Form.share_id == share_id, Form.status == "active")
    ).scalars().first()
    if form is None:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _responded_cookie(form_id: uuid.UUID) -> str:
    return f"{settings.RESPONDED_COOKIE_PREFIX}{form_id}"


def _already_responded(request: Request, form: Form) -> bool:
    return bool(request.cookies.get(_responded_cookie(form.id)))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/forms/{share_id}", response_model=PublicFormOut)
def get_public_form(share_id: str, request: Request, db: Session = Depends(get_db)):
    form = _get_active_form_or_404(share_id, db)
    return PublicFormOut(
        id=form.id,
        title=form.title,
        description=form.description or "",
        fields=decode_fields(form.fields),
        already_responded=_already_responded(request, form),
    )


@router.post("/forms/{share_id}/visibility", response_model=VisibilityResult)
def evaluate_visibility(share_id: str, payload: VisibilityRequest, db: Session = Depends(get_db)):
    form = _get_active_form_or_404(share_id, db)
    fields = visible_fields(decode_fields(form.fields), payload.answers)
    return VisibilityResult(visible_field_ids=[f.id for f in fields])


@router.post("/forms/{share_id}/responses", response_model=SubmissionResult, status_code=201)
async def submit_public_response(
    share_id: str,
    payload: SubmissionRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    form = _get_active_form_or_404(share_id, db)

    if _already_responded(request, form):
        logger.info("Rejected repeat submission for form %s (responded cookie)", form.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ALREADY_RESPONDED)

    respondent_id = (
        payload.respondent_id
        or request.cookies.get(settings.RESPONDENT_COOKIE_NAME)
        or str(uuid.uuid4())
    )

    try:
        stored, analysis = await submit_response(db, form, respondent_id, payload.answers)
    except SubmissionValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": "Please check your answers.", "errors": exc.errors},
        )
    except DuplicateSubmissionError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ALREADY_RESPONDED)

    max_age = settings.RESPONDENT_COOKIE_MAX_AGE_DAYS * 86400
    response.set_cookie(
        key=settings.RESPONDENT_COOKIE_NAME,
        value=respondent_id,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        max_age=max_age,
    )
    response.set_cookie(
        key=_responded_cookie(form.id),
        value="1",
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        max_age=max_age,
    )

    return SubmissionResult(id=stored.id, respondent_id=respondent_id, analysis=analysis)
