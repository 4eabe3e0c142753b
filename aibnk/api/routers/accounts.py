from __future__ import annotations

from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking import ledger
from aibnk.api.database import get_db
from aibnk.api.deps import get_org_id


router = APIRouter(prefix="/v1/accounts", tags=["accounts"])


def _get_account(db: Session, account_id: str, org_id: str) -> models.Account:
    account = db.get(models.Account, account_id)
    if account is None or account.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("", response_model=List[schemas.AccountRead])
def list_accounts(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return (
        db.query(models.Account)
        .filter(models.Account.organization_id == org_id)
        .order_by(models.Account.is_primary.desc(), models.Account.created_at)
        .all()
    )


@router.get("/{account_id}", response_model=schemas.AccountDetail)
def get_account(account_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    account = _get_account(db, account_id, org_id)
    detail = schemas.AccountDetail.model_validate(account)
    detail.organization_name = account.organization.name if account.organization else None
    return detail


@router.get("/{account_id}/transactions", response_model=List[schemas.FeedEntry])
def list_transactions(
    account_id: str,
    type: Literal["all", "credit", "debit"] = "all",
    q: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    _get_account(db, account_id, org_id)
    return ledger.unified_feed(db, org_id, account_id, type_filter=type, query=q, limit=limit)


@router.get("/{account_id}/summary", response_model=schemas.TransactionSummary)
def account_summary(account_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    _get_account(db, account_id, org_id)
    return ledger.summarize_recent(db, account_id)
