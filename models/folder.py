from datetime import datetime, timezone
from extensions import db

class Folder(db.Model):
    __tablename__ = "folders"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    # NULL parent means the folder sits at its department root
    parent_id = db.Column(db.Integer, db.ForeignKey("folders.id"), nullable=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    trashed_at = db.Column(db.DateTime, nullable=True)
    archived_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index('idx_folders_parent', 'parent_id'),
        db.Index('idx_folders_department_parent', 'department_id', 'parent_id'),
    )

    # Relations
    children = db.relationship("Folder", backref=db.backref("parent", remote_side=[id]), lazy=True)
    documents = db.relationship("Document", backref="folder", lazy=True)
    shares = db.relationship("Share", back_populates="folder", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Folder {self.name}>"

    @property
    def is_listable(self):
        return self.trashed_at is None and self.archived_at is None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'parent_id': self.parent_id,
            'department_id': self.department_id,
            'department_name': self.department.name if self.department else None,
            'owner_id': self.owner_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
