from datetime import datetime, timezone
from extensions import db
from werkzeug.security import generate_password_hash, check_password_hash

ADMIN_ROLES = ("admin", "super_admin")

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default="staff", nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    status = db.Column(db.String(20), default="active", nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relations
    folders = db.relationship("Folder", backref="owner", lazy=True)
    documents = db.relationship("Document", backref="owner", lazy=True,
                                foreign_keys="Document.owner_id")

    def __repr__(self):
        return f"<User {self.email}>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)
        return self.password_hash

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def is_admin(self) -> bool:
        return (self.role or "").lower() in ADMIN_ROLES

    def is_super_admin(self) -> bool:
        return (self.role or "").lower() == "super_admin"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'department_id': self.department_id,
        }
