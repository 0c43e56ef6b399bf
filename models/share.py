from datetime import datetime, timezone
from enum import Enum
from extensions import db


class PermissionLevel(Enum):
    VIEWER = "viewer"
    CONTRIBUTOR = "contributor"
    EDITOR = "editor"

    @property
    def rank(self):
        return _PERMISSION_RANK[self]

    @classmethod
    def parse(cls, value):
        """Return the level for ``value`` or None when it is not a known level."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def values(cls):
        return [level.value for level in cls]


_PERMISSION_RANK = {
    PermissionLevel.VIEWER: 1,
    PermissionLevel.CONTRIBUTOR: 2,
    PermissionLevel.EDITOR: 3,
}


class ItemType(Enum):
    DOCUMENT = "document"
    FOLDER = "folder"


class Share(db.Model):
    __tablename__ = "shares"

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    document_id = db.Column(db.Integer, db.ForeignKey("documents.id", ondelete="CASCADE"), nullable=True)
    folder_id = db.Column(db.Integer, db.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    permission = db.Column(db.String(20), default=PermissionLevel.VIEWER.value, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        # One grant per (user, item); the unused item column is always NULL,
        # so each key is a partial index over the rows that use it
        db.Index('uq_shares_target_document', 'target_user_id', 'document_id', unique=True,
                 postgresql_where=db.text('document_id IS NOT NULL'),
                 sqlite_where=db.text('document_id IS NOT NULL')),
        db.Index('uq_shares_target_folder', 'target_user_id', 'folder_id', unique=True,
                 postgresql_where=db.text('folder_id IS NOT NULL'),
                 sqlite_where=db.text('folder_id IS NOT NULL')),
        db.CheckConstraint(
            '(document_id IS NULL) <> (folder_id IS NULL)',
            name='shares_exactly_one_item'
        ),
        db.Index('idx_shares_folder', 'folder_id'),
        db.Index('idx_shares_document', 'document_id'),
    )

    owner = db.relationship("User", foreign_keys=[owner_id], backref="outgoing_shares")
    target_user = db.relationship("User", foreign_keys=[target_user_id], backref="incoming_shares")
    document = db.relationship("Document", back_populates="shares")
    folder = db.relationship("Folder", back_populates="shares")

    def __repr__(self):
        item = f"Document:{self.document_id}" if self.document_id else f"Folder:{self.folder_id}"
        return f"<Share {item} Owner:{self.owner_id} Target:{self.target_user_id} {self.permission}>"

    @property
    def item_type(self):
        return ItemType.DOCUMENT.value if self.document_id is not None else ItemType.FOLDER.value

    @property
    def item_id(self):
        return self.document_id if self.document_id is not None else self.folder_id

    @property
    def permission_level(self):
        return PermissionLevel.parse(self.permission)

    def to_dict(self):
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'owner_name': self.owner.name if self.owner else None,
            'target_user_id': self.target_user_id,
            'target_user_name': self.target_user.name if self.target_user else None,
            'target_user_email': self.target_user.email if self.target_user else None,
            'document_id': self.document_id,
            'folder_id': self.folder_id,
            'item_type': self.item_type,
            'permission': self.permission,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
