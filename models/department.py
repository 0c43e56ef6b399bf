from datetime import datetime, timezone
from extensions import db

class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(30), unique=True, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_qa = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relations
    users = db.relationship("User", backref="department", lazy=True)
    folders = db.relationship("Folder", backref="department", lazy=True)
    documents = db.relationship("Document", backref="department", lazy=True)

    def __repr__(self):
        return f"<Department {self.code or self.name}>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'is_active': self.is_active,
            'is_qa': self.is_qa,
        }
