from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.database import get_db
from aibnk.api.deps import get_user_id
from aibnk.api.onboarding import cases as case_machine
from aibnk.api.onboarding import registry, simulator
from aibnk.api.onboarding.progress import COMPANY_REQUIRED_FIELDS, progress_for_case

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/onboarding", tags=["onboarding"])


def get_case(db: Session, case_id: str) -> models.OnboardingCase:
    case = db.get(models.OnboardingCase, case_id)
    if case is None:
        raise HTTPException(status_code=404, detail="Onboarding case not found")
    return case


def get_editable_case(db: Session, case_id: str) -> models.OnboardingCase:
    case = get_case(db, case_id)
    try:
        case_machine.ensure_editable(case)
    except case_machine.CaseLockedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return case


def _case_detail(case: models.OnboardingCase) -> schemas.OnboardingCaseDetail:
    progress = progress_for_case(case)
    base = schemas.OnboardingCaseRead.model_validate(case)
    return schemas.OnboardingCaseDetail(**base.model_dump(), progress=progress.as_dict())


@router.post("/cases", response_model=schemas.OnboardingCaseDetail, status_code=201)
def create_case(user_id: str | None = Depends(get_user_id), db: Session = Depends(get_db)):
    case = models.OnboardingCase(user_id=user_id, status="draft", progress_percent=0)
    case.company_profile = models.CompanyProfile()
    case.compliance_answers = models.ComplianceAnswers()
    db.add(case)
    db.flush()
    case_machine.record_event(db, case.id, "case_created", actor="user")
    db.commit()
    db.refresh(case)
    logger.info("Created onboarding case %s for user %s", case.id, user_id)
    return _case_detail(case)


@router.get("/cases/{case_id}", response_model=schemas.OnboardingCaseDetail)
def read_case(case_id: str, db: Session = Depends(get_db)):
    return _case_detail(get_case(db, case_id))


@router.get("/cases/{case_id}/progress", response_model=schemas.ProgressRead)
def read_progress(case_id: str, db: Session = Depends(get_db)):
    return progress_for_case(get_case(db, case_id)).as_dict()


@router.get("/cases/{case_id}/events", response_model=List[schemas.OnboardingEventRead])
def list_events(case_id: str, db: Session = Depends(get_db)):
    get_case(db, case_id)
    return (
        db.query(models.OnboardingEvent)
        .filter(models.OnboardingEvent.case_id == case_id)
        .order_by(models.OnboardingEvent.created_at.desc())
        .all()
    )


# ---- Company ----

@router.get("/cases/{case_id}/company", response_model=schemas.CompanyProfileRead)
def read_company(case_id: str, db: Session = Depends(get_db)):
    case = get_case(db, case_id)
    if case.company_profile is None:
        case.company_profile = models.CompanyProfile()
        db.commit()
        db.refresh(case)
    return case.company_profile


@router.put("/cases/{case_id}/company", response_model=schemas.CompanyProfileRead)
def update_company(case_id: str, payload: schemas.CompanyProfileUpdate, db: Session = Depends(get_db)):
    case = get_editable_case(db, case_id)
    profile = case.company_profile
    if profile is None:
        profile = models.CompanyProfile()
        case.company_profile = profile

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)

    if profile.confirmed_by_user:
        missing = [name for name in COMPANY_REQUIRED_FIELDS if not (getattr(profile, name) or "").strip()]
        if missing:
            db.rollback()
            raise HTTPException(
                status_code=422,
                detail={"message": "Company details are incomplete", "missing": missing},
            )

    db.add(profile)
    case_machine.refresh_progress(db, case)
    db.commit()
    return case.company_profile


@router.post("/registry-lookup", response_model=schemas.RegistryLookupResult)
def registry_lookup(payload: schemas.RegistryLookupRequest):
    if not payload.issuing_authority.strip() or not payload.trade_license_number.strip():
        raise HTTPException(status_code=422, detail="Issuing authority and trade license number are required")
    return registry.lookup(payload.issuing_authority, payload.trade_license_number)


# ---- Persons ----

@router.get("/cases/{case_id}/persons", response_model=List[schemas.PersonRead])
def list_persons(case_id: str, db: Session = Depends(get_db)):
    return get_case(db, case_id).persons


@router.put("/cases/{case_id}/persons", response_model=schemas.PersonRead)
def upsert_person(case_id: str, payload: schemas.PersonUpsert, db: Session = Depends(get_db)):
    case = get_editable_case(db, case_id)
    values = payload.model_dump(exclude={"id"})

    if payload.id:
        person = db.get(models.OnboardingPerson, payload.id)
        if person is None or person.case_id != case.id:
            raise HTTPException(status_code=404, detail="Person not found")
        for field, value in payload.model_dump(exclude={"id"}, exclude_unset=True).items():
            setattr(person, field, value)
    else:
        person = models.OnboardingPerson(case_id=case.id, **values)

    db.add(person)
    case_machine.refresh_progress(db, case)
    db.commit()
    db.refresh(person)
    return person


# ---- Compliance ----

@router.get("/cases/{case_id}/compliance", response_model=schemas.ComplianceRead)
def read_compliance(case_id: str, db: Session = Depends(get_db)):
    case = get_case(db, case_id)
    if case.compliance_answers is None:
        case.compliance_answers = models.ComplianceAnswers()
        db.commit()
        db.refresh(case)
    return case.compliance_answers


@router.put("/cases/{case_id}/compliance", response_model=schemas.ComplianceRead)
def update_compliance(case_id: str, payload: schemas.ComplianceUpdate, db: Session = Depends(get_db)):
    case = get_editable_case(db, case_id)
    answers = case.compliance_answers
    if answers is None:
        answers = models.ComplianceAnswers()
        case.compliance_answers = answers
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(answers, field, value)
    db.add(answers)
    case_machine.refresh_progress(db, case)
    db.commit()
    return case.compliance_answers


# ---- Submission and review ----

@router.post("/cases/{case_id}/submit", response_model=schemas.OnboardingCaseDetail)
def submit_case(case_id: str, db: Session = Depends(get_db)):
    case = get_editable_case(db, case_id)
    progress = progress_for_case(case)
    if not progress.can_submit:
        raise HTTPException(
            status_code=422,
            detail={"message": "Application is not complete", "missing": progress.missing},
        )
    try:
        case_machine.submit(db, case)
    except case_machine.CaseTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    db.commit()
    db.refresh(case)
    simulator.schedule_review_pickup(case.id)
    return _case_detail(case)


@router.post("/cases/{case_id}/decision", response_model=schemas.OnboardingCaseDetail)
def decide_case(case_id: str, payload: schemas.CaseDecision, db: Session = Depends(get_db)):
    case = get_case(db, case_id)
    try:
        case_machine.decide(db, case, payload.status, payload.note)
    except case_machine.CaseTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    db.commit()
    db.refresh(case)
    return _case_detail(case)


@router.get("/cases/{case_id}/status", response_model=schemas.CaseStatusRead)
def read_status(case_id: str, db: Session = Depends(get_db)):
    return case_machine.status_view(get_case(db, case_id))
