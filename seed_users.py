import logging

from app import create_app
from extensions import db
from models import Department, User

logger = logging.getLogger(__name__)

DEPARTMENTS = [
    {"name": "Quality Assurance", "code": "QA", "is_qa": True},
    {"name": "Registrar", "code": "REG"},
]

def seed_users():
    app = create_app()
    with app.app_context():
        departments = {}
        for data in DEPARTMENTS:
            department = Department.query.filter_by(code=data["code"]).first()
            if not department:
                department = Department(**data)
                db.session.add(department)
                logger.info(f"Department {data['code']} created")
            departments[data["code"]] = department
        db.session.flush()

        admin = User.query.filter_by(email="admin@test.com").first()
        if not admin:
            admin = User(name="Administrator", email="admin@test.com", role="super_admin",
                         department_id=departments["QA"].id)
            admin.set_password("admin123")
            db.session.add(admin)
            logger.info("Admin created")
        else:
            logger.info("Admin already exists")

        staff = User.query.filter_by(email="staff@test.com").first()
        if not staff:
            staff = User(name="Staff Member", email="staff@test.com", role="staff",
                         department_id=departments["REG"].id)
            staff.set_password("staff123")
            db.session.add(staff)
            logger.info("Staff user created")
        else:
            logger.info("Staff user already exists")

        db.session.commit()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_users()
