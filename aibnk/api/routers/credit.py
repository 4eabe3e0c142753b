from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking import credit_scoring
from aibnk.api.database import get_db, utcnow
from aibnk.api.deps import get_org_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/credit", tags=["credit"])


def _latest_assessment(db: Session, org_id: str) -> models.CreditPrequalification | None:
    return (
        db.query(models.CreditPrequalification)
        .filter(models.CreditPrequalification.organization_id == org_id)
        .filter(models.CreditPrequalification.expires_at > utcnow())
        .order_by(models.CreditPrequalification.assessed_at.desc())
        .first()
    )


def _new_assessment(db: Session, org_id: str) -> models.CreditPrequalification:
    result = credit_scoring.assess(db, org_id)
    record = models.CreditPrequalification(organization_id=org_id, **result)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Credit assessment for %s: %s (score %s)", org_id, record.status, record.overall_score)
    return record


@router.get("/prequalification", response_model=schemas.PrequalificationRead)
def get_prequalification(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return _latest_assessment(db, org_id) or _new_assessment(db, org_id)


@router.post("/prequalification/refresh", response_model=schemas.PrequalificationRead)
def refresh_prequalification(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return _new_assessment(db, org_id)


@router.get("/requests", response_model=List[schemas.CreditRequestRead])
def list_requests(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return (
        db.query(models.CreditRequest)
        .filter(models.CreditRequest.organization_id == org_id)
        .order_by(models.CreditRequest.created_at.desc())
        .all()
    )


@router.post("/requests", response_model=schemas.CreditRequestRead, status_code=201)
def create_request(
    payload: schemas.CreditRequestCreate,
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    assessment = _latest_assessment(db, org_id)
    if assessment is None or assessment.status != "pre_qualified":
        raise HTTPException(status_code=422, detail="No current pre-qualification for this organization")
    if payload.requested_amount > (assessment.max_eligible_amount or 0):
        raise HTTPException(
            status_code=422,
            detail=f"Requested amount exceeds the eligible maximum of {assessment.max_eligible_amount:,.0f}",
        )

    request = models.CreditRequest(
        organization_id=org_id,
        requested_amount=round(payload.requested_amount, 2),
        purpose=payload.purpose,
        term_months=payload.term_months,
        repayment_preference=payload.repayment_preference,
        status="applied",
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request
