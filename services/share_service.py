# services/share_service.py

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import ActivityType, ItemType, PermissionLevel, Share, User
from services.activity_logger import ActivityLogger
from services.errors import Forbidden, NotFound, ValidationError
from services.notification_service import NotificationService
from services.permission_resolver import PermissionResolver, load_item, parse_item_type

logger = logging.getLogger(__name__)


def parse_permission(value) -> PermissionLevel:
    level = PermissionLevel.parse(value)
    if level is None:
        raise ValidationError(
            f"Invalid permission '{value}', expected one of: {', '.join(PermissionLevel.values())}",
            'INVALID_PERMISSION'
        )
    return level


class ShareService:
    """
    Creates, updates and revokes shares.

    Every operation takes the acting user explicitly; nothing is read from
    the request context.
    """

    def __init__(self, resolver: Optional[PermissionResolver] = None,
                 activity_logger: Optional[ActivityLogger] = None,
                 notifier: Optional[NotificationService] = None):
        self.resolver = resolver or PermissionResolver()
        self.activity_logger = activity_logger or ActivityLogger()
        self.notifier = notifier or NotificationService()

    def _can_share(self, user: User, kind: ItemType, item) -> bool:
        if user.is_admin():
            return True
        if item.owner_id == user.id:
            return True
        if user.department_id is not None and item.department_id == user.department_id:
            return True
        return self.resolver.resolve_permission_for_user(user.id, kind, item.id) is PermissionLevel.EDITOR

    def _upsert(self, owner_id: int, target_id: int, document_id, folder_id,
                level: PermissionLevel) -> Tuple[Share, bool]:
        share = Share.query.filter_by(
            target_user_id=target_id,
            document_id=document_id,
            folder_id=folder_id
        ).first()

        if share is not None:
            previous = share.permission
            share.permission = level.value
            share.owner_id = owner_id
            logger.debug(f"Share {share.id} updated {previous} -> {level.value}")
            return share, False

        share = Share(
            owner_id=owner_id,
            target_user_id=target_id,
            document_id=document_id,
            folder_id=folder_id,
            permission=level.value
        )
        db.session.add(share)
        return share, True

    def create_or_update_share(self, owner: User, target_email: str, item_type, item_id,
                               permission) -> Tuple[Share, bool]:
        """
        Grant ``permission`` on an item to the user registered under ``target_email``.

        A user holds at most one grant per item: sharing again overwrites the
        permission of the existing row and hands it to the latest grantor.

        Returns:
            (share, created)
        """
        email = (target_email or "").strip()
        if not email:
            raise ValidationError("email is required", 'MISSING_EMAIL')
        kind = parse_item_type(item_type)
        if item_id is None or item_id == "":
            raise ValidationError("item_id is required", 'MISSING_ITEM_ID')
        try:
            item_id = int(item_id)
        except (TypeError, ValueError):
            raise ValidationError("item_id must be an integer", 'INVALID_ITEM_ID')
        level = parse_permission(permission)

        target = User.query.filter(func.lower(User.email) == email.lower()).first()
        if target is None:
            raise NotFound("User not found", 'USER_NOT_FOUND')
        if target.id == owner.id:
            raise ValidationError("You cannot share an item with yourself", 'SELF_SHARE')

        item = load_item(kind, item_id)
        if not self._can_share(owner, kind, item):
            logger.warning(f"Share refused: user {owner.id} cannot share {kind.value} {item.id}")
            raise Forbidden()

        document_id = item.id if kind is ItemType.DOCUMENT else None
        folder_id = item.id if kind is ItemType.FOLDER else None
        owner_id, target_id = owner.id, target.id

        try:
            try:
                share, created = self._upsert(owner_id, target_id, document_id, folder_id, level)
                db.session.flush()
            except IntegrityError:
                # A concurrent request inserted the same grant first
                db.session.rollback()
                share, created = self._upsert(owner_id, target_id, document_id, folder_id, level)
                db.session.flush()

            self.activity_logger.log_activity(
                user_id=owner_id,
                action=(ActivityType.SHARE_CREATED if created else ActivityType.SHARE_UPDATED).value,
                subject_type=kind.value,
                subject_id=item.id,
                details={'share_id': share.id, 'target_user_id': target_id, 'permission': level.value},
                department_id=item.department_id
            )
            if created:
                self.notifier.notify_item_shared(share)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"Failed to save share of {kind.value} {item_id} for user {target_id}")
            raise

        logger.info(f"{'Created' if created else 'Updated'} share {share.id}: {kind.value} {item_id} "
                    f"-> user {target_id} as {level.value}")
        return share, created

    def _get_share(self, share_id: int) -> Share:
        share = db.session.get(Share, share_id)
        if share is None:
            raise NotFound("Share not found", 'SHARE_NOT_FOUND')
        return share

    def update_permission(self, share_id: int, new_permission, requesting_user_id: int,
                          is_admin: bool) -> Share:
        level = parse_permission(new_permission)
        share = self._get_share(share_id)
        if share.owner_id != requesting_user_id and not is_admin:
            logger.warning(f"Share update refused: user {requesting_user_id} on share {share_id}")
            raise Forbidden()

        try:
            previous = share.permission
            share.permission = level.value
            self.activity_logger.log_activity(
                user_id=requesting_user_id,
                action=ActivityType.SHARE_UPDATED.value,
                subject_type=share.item_type,
                subject_id=share.item_id,
                details={'share_id': share.id, 'from': previous, 'to': level.value}
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"Failed to update share {share_id}")
            raise
        return share

    def delete_share(self, share_id: int, requesting_user_id: int, is_admin: bool) -> None:
        share = self._get_share(share_id)
        if share.owner_id != requesting_user_id and not is_admin:
            logger.warning(f"Share deletion refused: user {requesting_user_id} on share {share_id}")
            raise Forbidden()

        try:
            self.activity_logger.log_activity(
                user_id=requesting_user_id,
                action=ActivityType.SHARE_DELETED.value,
                subject_type=share.item_type,
                subject_id=share.item_id,
                details={'share_id': share.id, 'target_user_id': share.target_user_id,
                         'permission': share.permission}
            )
            db.session.delete(share)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"Failed to delete share {share_id}")
            raise
        logger.info(f"Share {share_id} removed by user {requesting_user_id}")

    def list_incoming_shares(self, user_id: int) -> List[Share]:
        return (Share.query
                .filter_by(target_user_id=user_id)
                .order_by(Share.created_at.desc(), Share.id.desc())
                .all())

    def list_all_shares(self, target_user_id: Optional[int] = None) -> List[Share]:
        """Every share in the ledger, for the admin overview."""
        query = Share.query
        if target_user_id is not None:
            query = query.filter_by(target_user_id=target_user_id)
        return query.order_by(Share.id).all()
