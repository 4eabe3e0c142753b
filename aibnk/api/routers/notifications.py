from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.database import get_db
from aibnk.api.deps import get_org_id


router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


@router.get("", response_model=schemas.NotificationList)
def list_notifications(limit: int = 50, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    base = db.query(models.Notification).filter(models.Notification.organization_id == org_id)
    items = base.order_by(models.Notification.created_at.desc()).limit(limit).all()
    unread = base.filter(models.Notification.read.is_(False)).count()
    return {"items": items, "unread_count": unread}


@router.post("/read-all")
def mark_all_read(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)) -> Dict[str, int]:
    updated = (
        db.query(models.Notification)
        .filter(models.Notification.organization_id == org_id)
        .filter(models.Notification.read.is_(False))
        .update({models.Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=schemas.NotificationRead)
def mark_read(notification_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    record = db.get(models.Notification, notification_id)
    if record is None or record.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Notification not found")
    record.read = True
    db.add(record)
    db.commit()
    db.refresh(record)
    return record
