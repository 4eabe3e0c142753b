"""Request-scoped identity: auth lives in front of this service."""
from __future__ import annotations

import os

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models
from aibnk.api.database import get_db


DEMO_ORG_ID = os.getenv("AIBNK_DEMO_ORG_ID", "11111111-1111-1111-1111-111111111111")
DEMO_ACCOUNT_ID = os.getenv("AIBNK_DEMO_ACCOUNT_ID", "22222222-2222-2222-2222-222222222222")


def get_org_id(x_organization_id: str | None = Header(default=None)) -> str:
    return (x_organization_id or DEMO_ORG_ID).strip()


def get_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def get_operating_account(
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
) -> models.Account:
    """The account payments, cards and expenses settle against."""
    return resolve_operating_account(db, org_id)


def resolve_operating_account(db: Session, org_id: str) -> models.Account:
    account = db.get(models.Account, DEMO_ACCOUNT_ID)
    if account is not None and account.organization_id == org_id:
        return account
    account = (
        db.query(models.Account)
        .filter(models.Account.organization_id == org_id)
        .order_by(models.Account.is_primary.desc(), models.Account.created_at)
        .first()
    )
    if account is None:
        raise HTTPException(status_code=404, detail="No operating account for organization")
    return account
