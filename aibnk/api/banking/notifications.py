from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from aibnk.api import models

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("success", "alert", "payment", "card")


def notify(db: Session, organization_id: str, kind: str, title: str, description: str) -> models.Notification:
    """Queue a notification in the caller's transaction."""
    if kind not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type '{kind}'")
    record = models.Notification(
        organization_id=organization_id,
        type=kind,
        title=title,
        description=description,
    )
    db.add(record)
    logger.debug("Notification queued for %s: %s", organization_id, title)
    return record
