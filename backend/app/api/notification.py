from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.notification import Notification
from ..services.notifications import notification_to_public
from ..utils.dependencies import current_actor_id, get_current_user
from ..utils.error_handlers import get_error_message

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _own(db: Session, user: dict):
    return db.query(Notification).filter(Notification.user_id == current_actor_id(user))


@router.get("")
def my_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    q = _own(db, user)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    limit = max(1, min(int(limit), 200))
    rows = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return {"success": True, "notifications": [notification_to_public(n) for n in rows]}


@router.get("/unread-count")
def unread_count(db: Session = Depends(get_db), user=Depends(get_current_user)):
    count = _own(db, user).filter(Notification.is_read.is_(False)).count()
    return {"success": True, "count": int(count)}


@router.put("/mark-all-read")
def mark_all_read(db: Session = Depends(get_db), user=Depends(get_current_user)):
    updated = (
        _own(db, user)
        .filter(Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return {"success": True, "updated": int(updated)}


@router.put("/{notification_id}/mark-read")
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    n = _own(db, user).filter(Notification.id == int(notification_id)).first()
    if not n:
        raise HTTPException(status_code=404, detail=get_error_message("notification_not_found"))
    n.is_read = True
    db.commit()
    return {"success": True, "notification": notification_to_public(n)}


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    n = _own(db, user).filter(Notification.id == int(notification_id)).first()
    if not n:
        raise HTTPException(status_code=404, detail=get_error_message("notification_not_found"))
    db.delete(n)
    db.commit()
    return {"success": True, "message": "Notification deleted"}
