from datetime import datetime, timezone
from enum import Enum
from extensions import db

class DocumentStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Document(db.Model):
    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    original_filename = db.Column(db.String(255), nullable=True)
    mime_type = db.Column(db.String(120), nullable=True)
    size_bytes = db.Column(db.BigInteger, default=0)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False)
    folder_id = db.Column(db.Integer, db.ForeignKey("folders.id"), nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    # QA workflow, independent of sharing
    status = db.Column(db.String(20), default=DocumentStatus.PENDING.value, nullable=False)
    trashed_at = db.Column(db.DateTime, nullable=True)
    archived_at = db.Column(db.DateTime, nullable=True)
    uploaded_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index('idx_documents_folder', 'folder_id'),
        db.Index('idx_documents_department', 'department_id'),
    )

    shares = db.relationship("Share", back_populates="document", cascade="all, delete-orphan")
    uploader = db.relationship("User", foreign_keys=[uploaded_by])

    def __repr__(self):
        return f"<Document {self.title}>"

    @property
    def is_listable(self):
        return self.trashed_at is None and self.archived_at is None

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'original_filename': self.original_filename,
            'mime_type': self.mime_type,
            'size_bytes': self.size_bytes,
            'status': self.status,
            'uploaded_at': self.uploaded_at.isoformat() if self.uploaded_at else None,
            'folder_id': self.folder_id,
            'folder_name': self.folder.name if self.folder else None,
            'department_id': self.department_id,
            'department_name': self.department.name if self.department else None,
            'owner_id': self.owner_id,
            'owner_name': self.owner.name if self.owner else None,
        }
