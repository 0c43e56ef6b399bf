from datetime import datetime, timezone
from extensions import db

class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    data = db.Column(db.JSON, nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        db.Index('idx_notifications_user_read', 'user_id', 'read_at'),
    )

    user = db.relationship("User", backref=db.backref("notifications", lazy="dynamic"))

    def __repr__(self):
        return f"<Notification {self.type} for user {self.user_id}>"

    def mark_as_read(self):
        if self.read_at is None:
            self.read_at = datetime.now(timezone.utc)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'data': self.data,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
