from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking import invoicing
from aibnk.api.banking.formatting import format_money
from aibnk.api.banking.notifications import notify
from aibnk.api.database import get_db, utcnow
from aibnk.api.deps import get_org_id


router = APIRouter(prefix="/v1/invoices", tags=["invoices"])


def _org_invoices(db: Session, org_id: str):
    return (
        db.query(models.Invoice)
        .filter(models.Invoice.organization_id == org_id)
        .order_by(models.Invoice.created_at.desc())
    )


@router.get("", response_model=List[schemas.InvoiceRead])
def list_invoices(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    if invoicing.refresh_overdue(db, org_id):
        db.commit()
    return _org_invoices(db, org_id).all()


@router.get("/stats", response_model=schemas.InvoiceStats)
def get_invoice_stats(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    if invoicing.refresh_overdue(db, org_id):
        db.commit()
    return invoicing.invoice_stats(_org_invoices(db, org_id).all())


@router.get("/next-number")
def get_next_number(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)) -> Dict[str, str]:
    numbers = [number for (number,) in db.query(models.Invoice.invoice_number)
               .filter(models.Invoice.organization_id == org_id).all()]
    return {"invoice_number": invoicing.next_invoice_number(numbers, utcnow().year)}


@router.post("", response_model=schemas.InvoiceRead, status_code=201)
def create_invoice(payload: schemas.InvoiceCreate, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    if not payload.line_items:
        raise HTTPException(status_code=422, detail="An invoice needs at least one line item")
    if payload.due_date and payload.due_date < payload.issue_date:
        raise HTTPException(status_code=422, detail="Due date cannot be before the issue date")

    totals = invoicing.compute_totals([item.model_dump() for item in payload.line_items], payload.tax_rate)
    numbers = [number for (number,) in db.query(models.Invoice.invoice_number)
               .filter(models.Invoice.organization_id == org_id).all()]
    now = utcnow()

    invoice = models.Invoice(
        organization_id=org_id,
        invoice_number=invoicing.next_invoice_number(numbers, now.year),
        client_name=payload.client_name,
        client_email=payload.client_email,
        client_address=payload.client_address,
        issue_date=payload.issue_date,
        due_date=payload.due_date,
        currency=payload.currency,
        subtotal=totals["subtotal"],
        tax_rate=payload.tax_rate,
        tax_amount=totals["tax_amount"],
        total=totals["total"],
        notes=payload.notes,
        status="sent" if payload.send_immediately else "draft",
        sent_at=now if payload.send_immediately else None,
    )
    invoice.line_items = [
        models.InvoiceLineItem(
            description=item["description"],
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            amount=item["amount"],
        )
        for item in totals["line_items"]
    ]
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.patch("/{invoice_id}/status", response_model=schemas.InvoiceRead)
def update_invoice_status(
    invoice_id: str,
    payload: schemas.InvoiceStatusUpdate,
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    invoice = db.get(models.Invoice, invoice_id)
    if invoice is None or invoice.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if invoice.status in invoicing.TERMINAL_STATUSES:
        raise HTTPException(status_code=409, detail=f"Invoice is already {invoice.status}")

    invoice.status = payload.status
    if payload.status == "sent":
        invoice.sent_at = utcnow()
    elif payload.status == "paid":
        invoice.paid_at = utcnow()
        notify(
            db,
            org_id,
            "success",
            "Invoice Paid",
            f"{invoice.invoice_number} from {invoice.client_name} paid ({format_money(invoice.currency, invoice.total)})",
        )
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice
