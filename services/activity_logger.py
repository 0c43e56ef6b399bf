import logging
from typing import Any, Dict

from extensions import db
from models.activity import Activity, ActivityType

logger = logging.getLogger(__name__)


class ActivityLogError(Exception):
    """Custom exception for activity logging errors"""
    def __init__(self, message: str, status_code: int = 500, code: str = 'ACTIVITY_LOG_ERROR'):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class ActivityLogger:
    """Records share lifecycle events in the activities table"""

    def __init__(self):
        self.db = db

    def log_activity(self, user_id: int, action: str, subject_type: str, subject_id: int = None,
                     details: Dict[str, Any] = None, department_id: int = None) -> Activity:
        """
        Add an activity row to the current session.

        The caller owns the transaction: the row is committed or rolled back
        together with the change it describes.

        Raises:
            ActivityLogError: If the action type is unknown
        """
        valid_actions = [activity_type.value for activity_type in ActivityType]
        if action not in valid_actions:
            raise ActivityLogError(f"Invalid action type: {action}", 400, 'INVALID_ACTION_TYPE')

        activity = Activity(
            user_id=user_id,
            action=action,
            subject_type=subject_type,
            subject_id=subject_id,
            details=details,
            department_id=department_id
        )
        self.db.session.add(activity)
        logger.info(f"Activity {action} by user {user_id} on {subject_type} {subject_id}")
        return activity

