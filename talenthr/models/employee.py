import re

from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

EMPLOYMENT_TYPES = ("full-time", "part-time", "contract", "intern")
EMPLOYEE_STATUSES = ("active", "on-leave", "terminated", "resigned")


class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    employee_code = db.Column(db.String(50), unique=True, nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True, index=True)
    position = db.Column(db.String(100))
    hire_date = db.Column(db.Date, nullable=False)
    employment_type = db.Column(db.String(20), default="full-time", nullable=False)
    salary = db.Column(db.Float)
    # manager is a user, the same id the role scoping compares against
    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    work_location = db.Column(db.String(150))
    phone = db.Column(db.String(30))
    address = db.Column(db.JSON, nullable=True)
    emergency_contact = db.Column(db.JSON, nullable=True)
    status = db.Column(db.String(20), default="active", nullable=False)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship(
        "User", foreign_keys=[user_id],
        backref=db.backref("employee_profile", uselist=False, lazy=True),
    )
    manager = db.relationship("User", foreign_keys=[manager_id])
    department = db.relationship("Department", backref=db.backref("employees", lazy=True))

    @staticmethod
    def next_code(company):
        """COMPANY-EMP001 style code, one higher than the company's current maximum."""
        prefix = f"{company.slug.upper()}-EMP"
        codes = db.session.query(Employee.employee_code).filter(
            Employee.company_id == company.id,
            Employee.employee_code.like(f"{prefix}%"),
        ).all()

        sequence = 0
        for (code,) in codes:
            match = re.search(r"EMP(\d+)$", code or "")
            if match:
                sequence = max(sequence, int(match.group(1)))
        return f"{prefix}{sequence + 1:03d}"

    def to_dict(self):
        user = self.user
        return {
            "id": self.id,
            "userId": self.user_id,
            "employeeId": self.employee_code,
            "name": user.name if user else None,
            "email": user.email if user else None,
            "role": user.role if user else None,
            "department": self.department.summary() if self.department else None,
            "position": self.position,
            "hireDate": iso(self.hire_date),
            "employmentType": self.employment_type,
            "salary": self.salary,
            "manager": self.manager.summary() if self.manager else None,
            "workLocation": self.work_location,
            "phone": self.phone,
            "address": self.address,
            "emergencyContact": self.emergency_contact,
            "status": self.status,
            "notes": self.notes,
            "createdAt": iso(self.created_at),
        }

    def __repr__(self):
        return f"<Employee {self.employee_code}>"
