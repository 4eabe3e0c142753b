from __future__ import annotations

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.database import get_db
from aibnk.api.onboarding import cases as case_machine
from aibnk.api.onboarding import documents as doc_machine
from aibnk.api.onboarding import simulator
from aibnk.api.onboarding.progress import DOCUMENT_TYPES
from aibnk.api.routers.onboarding import get_case, get_editable_case
from aibnk.api.utils.uploads import public_url, save_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/onboarding/cases/{case_id}/documents", tags=["onboarding"])


def _document_to_schema(case_id: str, document_type: str, document: models.OnboardingDocument | None):
    if document is None:
        return schemas.DocumentRead(case_id=case_id, document_type=document_type, status="missing")
    return schemas.DocumentRead(
        id=document.id,
        case_id=case_id,
        document_type=document.document_type,
        status=document.status,
        owner_person_id=document.owner_person_id,
        file_url=document.file_url,
        file_name=document.file_name,
        expiry_date=document.expiry_date,
        validation_notes=document.validation_notes,
        rejection_reason_code=document.rejection_reason_code,
        uploaded_at=document.uploaded_at,
    )


@router.get("", response_model=List[schemas.DocumentRead])
def list_documents(case_id: str, db: Session = Depends(get_db)):
    case = get_case(db, case_id)
    by_type = {doc.document_type: doc for doc in case.documents}
    return [_document_to_schema(case.id, doc_type, by_type.get(doc_type)) for doc_type in DOCUMENT_TYPES]


@router.post("/{document_type}", response_model=schemas.DocumentRead, status_code=201)
def upload_document(
    case_id: str,
    document_type: str,
    file: UploadFile = File(...),
    expiry_date: date | None = Form(default=None),
    owner_person_id: str | None = Form(default=None),
    db: Session = Depends(get_db),
):
    if document_type not in DOCUMENT_TYPES:
        raise HTTPException(status_code=422, detail=f"Unknown document type '{document_type}'")
    case = get_editable_case(db, case_id)

    if owner_person_id:
        person = db.get(models.OnboardingPerson, owner_person_id)
        if person is None or person.case_id != case.id:
            raise HTTPException(status_code=422, detail="Owner person does not belong to this case")

    document = (
        db.query(models.OnboardingDocument)
        .filter(models.OnboardingDocument.case_id == case.id)
        .filter(models.OnboardingDocument.document_type == document_type)
        .first()
    )
    if document is None:
        document = models.OnboardingDocument(case_id=case.id, document_type=document_type, status="missing")
    if not doc_machine.can_transition(document.status, "uploaded"):
        raise HTTPException(
            status_code=409,
            detail=str(doc_machine.DocumentTransitionError(document_type, document.status, "uploaded")),
        )

    path, size = save_upload(file, case.id, stem=document_type)
    try:
        doc_machine.mark_uploaded(
            document,
            file_url=public_url(path),
            file_name=file.filename or path.name,
            file_size=size,
            expiry_date=expiry_date,
            owner_person_id=owner_person_id or None,
        )
    except doc_machine.DocumentTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    db.add(document)
    db.flush()
    case_machine.record_event(
        db,
        case.id,
        "document_uploaded",
        actor="user",
        metadata={"document_type": document_type, "file_name": document.file_name},
    )
    case_machine.refresh_progress(db, case)
    db.commit()
    db.refresh(document)
    logger.info("Document %s uploaded for case %s (%d bytes)", document_type, case.id, size)

    simulator.schedule_document_validation(document.id, document.uploaded_at)
    return _document_to_schema(case.id, document_type, document)
