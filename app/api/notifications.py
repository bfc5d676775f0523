from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.person import Person
from app.schemas.common import ListResponse
from app.schemas.notification import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationRead,
    UnreadCountResponse,
)
from app.services.notification import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    person: Person = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return {"count": notifications.unread_count(db, person)}


@router.get("", response_model=ListResponse[NotificationRead])
def list_notifications(
    is_read: bool | None = None,
    limit: int = Query(default=25, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return notifications.list_response(db, person, is_read, limit, offset)


@router.post("/mark-read", response_model=MarkReadResponse)
def mark_read(
    payload: MarkReadRequest,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return {"updated": notifications.mark_read(db, person, payload.notification_ids)}


@router.post("/mark-all-read", response_model=MarkReadResponse)
def mark_all_read(
    person: Person = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return {"updated": notifications.mark_all_read(db, person)}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_notification(
    notification_id: str,
    person: Person = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    notifications.dismiss(db, notification_id, person)
