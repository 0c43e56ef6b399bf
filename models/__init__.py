from .department import Department
from .user import User
from .folder import Folder
from .document import Document, DocumentStatus
from .share import Share, PermissionLevel, ItemType
from .activity import Activity, ActivityType
from .notification import Notification

__all__ = [
    "Department",
    "User",
    "Folder",
    "Document",
    "DocumentStatus",
    "Share",
    "PermissionLevel",
    "ItemType",
    "Activity",
    "ActivityType",
    "Notification",
]
