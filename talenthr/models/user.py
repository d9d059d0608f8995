from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

ROLES = ("company_admin", "hr_manager", "recruiter", "manager", "employee")
ADMIN_ROLES = ("company_admin", "hr_manager")
INVITABLE_ROLES = ("hr_manager", "recruiter", "manager", "employee")
USER_STATUSES = ("active", "inactive", "pending")


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="employee")
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    status = db.Column(db.String(20), default="active", nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    company = db.relationship("Company", backref=db.backref("users", lazy=True))

    @property
    def is_active(self):
        return self.status == "active"

    @property
    def is_admin(self):
        return self.role in ADMIN_ROLES

    def set_password(self, raw_password):
        self.password = generate_password_hash(raw_password)

    def check_password(self, raw_password):
        return check_password_hash(self.password, raw_password)

    def summary(self):
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self, with_company=False):
        data = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "companyId": self.company_id,
            "status": self.status,
            "lastLogin": iso(self.last_login),
            "createdAt": iso(self.created_at),
        }
        if with_company and self.company:
            data["company"] = self.company.summary()
        return data

    def __repr__(self):
        return f"<User {self.email} {self.role}>"
