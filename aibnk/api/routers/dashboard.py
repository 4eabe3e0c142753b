from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking import ledger
from aibnk.api.banking.invoicing import OUTSTANDING_STATUSES
from aibnk.api.database import get_db
from aibnk.api.deps import get_org_id, get_user_id


router = APIRouter(prefix="/v1/dashboard", tags=["dashboard"])


@router.get("", response_model=schemas.DashboardRead)
def get_dashboard(
    org_id: str = Depends(get_org_id),
    user_id: str | None = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    organization = db.get(models.Organization, org_id)
    account = (
        db.query(models.Account)
        .filter(models.Account.organization_id == org_id)
        .order_by(models.Account.is_primary.desc(), models.Account.created_at)
        .first()
    )

    recent = []
    summary = None
    if account is not None:
        recent = ledger.unified_feed(db, org_id, account.id, limit=5)
        summary = ledger.summarize_recent(db, account.id)

    pending = (
        db.query(models.Invoice.total)
        .filter(models.Invoice.organization_id == org_id)
        .filter(models.Invoice.status.in_(OUTSTANDING_STATUSES))
        .all()
    )

    onboarding_status = None
    if user_id:
        latest_case = (
            db.query(models.OnboardingCase)
            .filter(models.OnboardingCase.user_id == user_id)
            .order_by(models.OnboardingCase.created_at.desc())
            .first()
        )
        onboarding_status = latest_case.status if latest_case else None

    return schemas.DashboardRead(
        account=schemas.AccountRead.model_validate(account) if account else None,
        organization=schemas.OrganizationRead.model_validate(organization) if organization else None,
        recent_transactions=recent,
        transaction_summary=summary,
        pending_invoices={"total": round(sum(float(total) for (total,) in pending), 2), "count": len(pending)},
        onboarding_status=onboarding_status,
    )
