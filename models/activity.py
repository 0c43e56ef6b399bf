from datetime import datetime, timezone
from extensions import db
from enum import Enum

class ActivityType(Enum):
    SHARE_CREATED = "share_created"
    SHARE_UPDATED = "share_updated"
    SHARE_DELETED = "share_deleted"

class Activity(db.Model):
    __tablename__ = "activities"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=True)
    subject_type = db.Column(db.String(30), nullable=False)  # document, folder, share
    subject_id = db.Column(db.Integer, nullable=True)
    action = db.Column(db.String(100), nullable=False)
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        db.Index('idx_activities_user_id', 'user_id'),
        db.Index('idx_activities_subject', 'subject_type', 'subject_id'),
        db.Index('idx_activities_created_at', 'created_at'),
    )

    user = db.relationship("User", backref="activities", lazy=True)

    def __repr__(self):
        return f"<Activity {self.id}: {self.action} by user {self.user_id}>"

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'department_id': self.department_id,
            'subject_type': self.subject_type,
            'subject_id': self.subject_id,
            'action': self.action,
            'details': self.details,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
