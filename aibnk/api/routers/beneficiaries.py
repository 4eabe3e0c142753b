from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.database import get_db
from aibnk.api.deps import get_org_id


router = APIRouter(prefix="/v1/beneficiaries", tags=["payments"])


@router.get("", response_model=List[schemas.BeneficiaryRead])
def list_beneficiaries(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return (
        db.query(models.Beneficiary)
        .filter(models.Beneficiary.organization_id == org_id)
        .filter(models.Beneficiary.is_active.is_(True))
        .order_by(models.Beneficiary.name)
        .all()
    )


@router.post("", response_model=schemas.BeneficiaryRead, status_code=201)
def create_beneficiary(
    payload: schemas.BeneficiaryCreate,
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    beneficiary = models.Beneficiary(organization_id=org_id, **payload.model_dump())
    db.add(beneficiary)
    db.commit()
    db.refresh(beneficiary)
    return beneficiary


@router.delete("/{beneficiary_id}", response_model=schemas.BeneficiaryRead)
def delete_beneficiary(beneficiary_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    beneficiary = db.get(models.Beneficiary, beneficiary_id)
    if beneficiary is None or beneficiary.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Beneficiary not found")
    # Payments keep pointing at the row, so it is only hidden
    beneficiary.is_active = False
    db.add(beneficiary)
    db.commit()
    db.refresh(beneficiary)
    return beneficiary
