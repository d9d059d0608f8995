from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

DEFAULT_DEPARTMENTS = [
    {"name": "Engineering", "description": "Software development and technical teams"},
    {"name": "Human Resources", "description": "HR and people operations"},
    {"name": "Sales", "description": "Sales and business development"},
    {"name": "Marketing", "description": "Marketing and brand management"},
    {"name": "Finance", "description": "Finance and accounting"},
    {"name": "Operations", "description": "Operations and logistics"},
    {"name": "Customer Support", "description": "Customer service and support"},
    {"name": "Product", "description": "Product management and strategy"},
]


class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20))
    description = db.Column(db.Text)
    parent_department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    budget = db.Column(db.Float)
    location = db.Column(db.String(150))
    status = db.Column(db.String(20), default="active", nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    manager = db.relationship("User", foreign_keys=[manager_id])
    parent = db.relationship("Department", remote_side=[id], backref="children")

    __table_args__ = (db.UniqueConstraint("company_id", "name", name="uq_department_company_name"),)

    @staticmethod
    def seed_defaults(company_id):
        created = [Department(company_id=company_id, status="active", **d) for d in DEFAULT_DEPARTMENTS]
        db.session.add_all(created)
        return created

    def summary(self):
        return {"id": self.id, "name": self.name, "code": self.code}

    def to_dict(self, employee_count=None):
        data = {
            "id": self.id,
            "companyId": self.company_id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "parentDepartment": self.parent.summary() if self.parent else None,
            "manager": self.manager.summary() if self.manager else None,
            "budget": self.budget,
            "location": self.location,
            "status": self.status,
            "createdAt": iso(self.created_at),
        }
        if employee_count is not None:
            data["employeeCount"] = employee_count
        return data

    def __repr__(self):
        return f"<Department {self.name}>"
