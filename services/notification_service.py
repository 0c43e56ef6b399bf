import logging
from datetime import datetime, timezone
from typing import Any, Dict

from extensions import db
from models.notification import Notification
from models.share import Share
from services.errors import NotFound

logger = logging.getLogger(__name__)

ITEM_SHARED = "item_shared"


class NotificationService:
    """In-app notifications delivered to share recipients"""

    def notify_item_shared(self, share: Share) -> Notification:
        """Queue an "item shared with you" notification in the current session."""
        if share.document_id is not None:
            item_name = share.document.title if share.document else None
        else:
            item_name = share.folder.name if share.folder else None

        notification = Notification(
            user_id=share.target_user_id,
            type=ITEM_SHARED,
            data={
                'item_type': share.item_type,
                'item_id': share.item_id,
                'item_name': item_name,
                'permission': share.permission,
                'shared_by': share.owner.name if share.owner else None,
            }
        )
        db.session.add(notification)
        logger.info(f"Notification {ITEM_SHARED} queued for user {share.target_user_id}")
        return notification

    def list_for_user(self, user_id: int, limit: int = 20) -> Dict[str, Any]:
        notifications = (Notification.query
                         .filter_by(user_id=user_id)
                         .order_by(Notification.created_at.desc(), Notification.id.desc())
                         .limit(limit)
                         .all())
        unread_count = Notification.query.filter_by(user_id=user_id, read_at=None).count()
        return {
            'notifications': [n.to_dict() for n in notifications],
            'unread_count': unread_count,
        }

    def mark_as_read(self, user_id: int, notification_id: int) -> Notification:
        notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
        if notification is None:
            raise NotFound("Notification not found")
        notification.mark_as_read()
        db.session.commit()
        return notification

    def mark_all_as_read(self, user_id: int) -> int:
        updated = (Notification.query
                   .filter_by(user_id=user_id, read_at=None)
                   .update({'read_at': datetime.now(timezone.utc)}, synchronize_session=False))
        db.session.commit()
        return updated
