"""Response management — triage fields only (status, tags, memo, assignee)."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from formpulse.core.auth import get_session
from formpulse.core.database import get_db
from formpulse.core.decoding import decode_response
from formpulse.models.form_response import FormResponse
from formpulse.schemas.auth import AuthSession
from formpulse.schemas.responses import ResponseOut, ResponseUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_response_or_404(response_id: str, db: Session, session: AuthSession) -> FormResponse:
    form_response = db.get(FormResponse, response_id)
    if form_response is None or form_response.org_id != session.org_id:
        raise HTTPException(status_code=404, detail="Response not found")
    return form_response


@router.get("/{response_id}", response_model=ResponseOut)
def get_response(
    response_id: str,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    return decode_response(_get_response_or_404(response_id, db, session))


@router.patch("/{response_id}", response_model=ResponseOut)
def update_response(
    response_id: str,
    payload: ResponseUpdate,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
):
    form_response = _get_response_or_404(response_id, db, session)

    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=422, detail="No fields to update")
    if update_data.get("status", "new") is None:
        raise HTTPException(status_code=422, detail="Status cannot be null")

    if "tags" in update_data:
        # Tags are a set; keep first occurrence order
        update_data["tags"] = list(dict.fromkeys(t.strip() for t in payload.tags or [] if t.strip()))
    if "memo" in update_data and update_data["memo"] is None:
        update_data["memo"] = ""

    for field, value in update_data.items():
        setattr(form_response, field, value)

    db.commit()
    db.refresh(form_response)
    logger.info("Updated response %s (%s)", response_id, ", ".join(sorted(update_data)))
    return decode_response(form_response)
