"""Form API — CRUD, templates, response listing and analytics."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from formpulse.core.auth import get_session
from formpulse.core.database import get_db
from formpulse.core.decoding import decode_fields, decode_form, decode_response, encode_fields
from formpulse.models.form import Form
from formpulse.models.form_response import FormResponse
from formpulse.schemas.analytics import FormAnalytics
from formpulse.schemas.auth import AuthSession
from formpulse.schemas.fields import SurveyField
from formpulse.schemas.forms import FormCreate, FormListResponse, FormOut, FormTemplateOut, FormUpdate
from formpulse.schemas.responses import ResponseListResponse
from formpulse.services.aggregation import summarize_responses
from formpulse.services.form_templates import TEMPLATES, build_template_fields, get_template
from formpulse.services.visibility import FormDefinitionError, ensure_valid_fields

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_form_or_404(form_id: uuid.UUID, db: Session, session: AuthSession) -> Form:
    form = db.get(Form, form_id)
    if form is None or form.org_id != session.org_id:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _validate_fields(fields: list[SurveyField]) -> None:
    try:
        ensure_valid_fields(fields)
    except FormDefinitionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _new_form(session: AuthSession, payload: FormCreate, fields: list[SurveyField]) -> Form:
    title = payload.title.strip()
    if not title:
        raise HTTPException(status_code=422, detail="Title is required")
    _validate_fields(fields)
    return Form(
        org_id=session.org_id,
        created_by=session.user_id,
        title=title,
        description=payload.description,
        status=payload.status,
        share_id=str(uuid.uuid4()),
        fields=encode_fields(fields),
        ai_enabled=payload.ai_enabled,
        ai_overall_enabled=payload.ai_overall_enabled,
        ai_min_confidence=payload.ai_min_confidence,
        notification_email=payload.notification_email,
        webhook_url=payload.webhook_url,
        slack_webhook_url=payload.slack_webhook_url,
        google_sheet_url=payload.google_sheet_url,
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@router.get("/templates", response_model=list[FormTemplateOut])
def list_templates(session: AuthSession = Depends(get_session)):
    return [
        FormTemplateOut(
            id=t.id,
            name=t.name,
            summary=t.summary,
            title=t.title,
            description=t.description,
            field_count=len(t.fields),
        )
        for t in TEMPLATES
    ]


@router.post("/from-template/{template_id}", response_model=FormOut, status_code=201)
def create_form_from_template(
    template_id: str,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    template = get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")

    payload = FormCreate(title=template.title, description=template.description)
    form = _new_form(session, payload, build_template_fields(template))
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info("Created form %s from template %s", form.id, template_id)
    return decode_form(form)


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.post("", response_model=FormOut, status_code=201)
def create_form(
    payload: FormCreate,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    form = _new_form(session, payload, payload.fields)
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info("Created form %s for org %s", form.id, session.org_id)
    return decode_form(form)


@router.get("", response_model=FormListResponse)
def list_forms(
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    forms = db.execute(select(Form).where(Form.org_id == session.org_id)).scalars().all()
    items = sorted((decode_form(f) for f in forms), key=lambda f: f.updated_at, reverse=True)
    return FormListResponse(items=items, total=len(items))


@router.get("/{form_id}", response_model=FormOut)
def get_form(
    form_id: uuid.UUID,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    return decode_form(_get_form_or_404(form_id, db, session))


@router.patch("/{form_id}", response_model=FormOut)
def update_form(
    form_id: uuid.UUID,
    payload: FormUpdate,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(form_id, db, session)

    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=422, detail="No fields to update")

    if "title" in update_data:
        title = (payload.title or "").strip()
        if not title:
            raise HTTPException(status_code=422, detail="Title is required")
        update_data["title"] = title

    if "fields" in update_data:
        fields = payload.fields or []
        _validate_fields(fields)
        update_data["fields"] = encode_fields(fields)

    for field, value in update_data.items():
        setattr(form, field, value)

    db.commit()
    db.refresh(form)
    logger.info("Updated form %s (%s)", form.id, ", ".join(sorted(update_data)))
    return decode_form(form)


# ---------------------------------------------------------------------------
# Responses and analytics
# ---------------------------------------------------------------------------


@router.get("/{form_id}/responses", response_model=ResponseListResponse)
def list_form_responses(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    _get_form_or_404(form_id, db, session)

    filters = [FormResponse.form_id == form_id, FormResponse.org_id == session.org_id]
    total = db.execute(select(func.count()).select_from(FormResponse).where(*filters)).scalar_one()

    offset = (page - 1) * page_size
    responses = (
        db.execute(
            select(FormResponse)
            .where(*filters)
            .order_by(FormResponse.submitted_at.desc())
            .offset(offset)
            .limit(page_size)
        )
        .scalars()
        .all()
    )

    return ResponseListResponse(
        items=[decode_response(r) for r in responses],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}/analytics", response_model=FormAnalytics)
def get_form_analytics(
    form_id: uuid.UUID,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(form_id, db, session)

    responses = (
        db.execute(
            select(FormResponse).where(
                FormResponse.form_id == form_id,
                FormResponse.org_id == session.org_id,
            )
        )
        .scalars()
        .all()
    )
    return summarize_responses(form.id, decode_fields(form.fields), [decode_response(r) for r in responses])
