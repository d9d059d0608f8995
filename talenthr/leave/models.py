from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

LEAVE_STATUSES = ("pending", "approved", "rejected", "cancelled")
DEFAULT_LEAVE_COLOR = "#667eea"

DEFAULT_LEAVE_TYPES = [
    {
        "name": "Sick Leave", "code": "SL", "annual_quota": 10,
        "description": "Leave for illness or medical appointments",
        "carry_forward": False, "requires_approval": True, "color": "#ef4444",
    },
    {
        "name": "Vacation Leave", "code": "VL", "annual_quota": 15,
        "description": "Paid time off for vacations and personal time",
        "carry_forward": True, "max_carry_forward": 5, "requires_approval": True, "color": "#3b82f6",
    },
    {
        "name": "Personal Leave", "code": "PL", "annual_quota": 5,
        "description": "Leave for personal matters",
        "carry_forward": False, "requires_approval": True, "color": "#8b5cf6",
    },
    {
        "name": "Casual Leave", "code": "CL", "annual_quota": 12,
        "description": "Short notice leave for casual purposes",
        "carry_forward": False, "requires_approval": False, "color": "#10b981",
    },
]


class LeaveType(db.Model):
    __tablename__ = "leave_types"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text)
    annual_quota = db.Column(db.Float, default=0.0, nullable=False)
    carry_forward = db.Column(db.Boolean, default=False, nullable=False)
    max_carry_forward = db.Column(db.Float, nullable=True)
    requires_approval = db.Column(db.Boolean, default=True, nullable=False)
    color = db.Column(db.String(20), default=DEFAULT_LEAVE_COLOR)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (db.UniqueConstraint("company_id", "code", name="uq_leave_type_company_code"),)

    def summary(self):
        return {"id": self.id, "name": self.name, "code": self.code, "color": self.color}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "annualQuota": self.annual_quota,
            "carryForward": self.carry_forward,
            "maxCarryForward": self.max_carry_forward,
            "requiresApproval": self.requires_approval,
            "color": self.color,
            "isActive": self.is_active,
        }


class LeaveBalance(db.Model):
    __tablename__ = "leave_balances"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)
    leave_type_id = db.Column(db.Integer, db.ForeignKey("leave_types.id"), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    total_days = db.Column(db.Float, default=0.0, nullable=False)
    used_days = db.Column(db.Float, default=0.0, nullable=False)
    pending_days = db.Column(db.Float, default=0.0, nullable=False)
    carried_forward = db.Column(db.Float, default=0.0, nullable=False)

    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    leave_type = db.relationship("LeaveType", backref=db.backref("balances", lazy=True))

    __table_args__ = (
        db.UniqueConstraint("user_id", "leave_type_id", "year", name="uq_leave_balance_user_type_year"),
    )

    @property
    def available_days(self):
        return (self.total_days or 0) - (self.used_days or 0) - (self.pending_days or 0)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "leaveType": self.leave_type.summary() if self.leave_type else None,
            "year": self.year,
            "totalDays": self.total_days,
            "usedDays": self.used_days,
            "pendingDays": self.pending_days,
            "carriedForward": self.carried_forward,
            "availableDays": self.available_days,
        }


class LeaveRequest(db.Model):
    __tablename__ = "leave_requests"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    leave_type_id = db.Column(db.Integer, db.ForeignKey("leave_types.id"), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    total_days = db.Column(db.Float, nullable=False)
    reason = db.Column(db.String(500), nullable=False)
    status = db.Column(db.String(20), default="pending", nullable=False, index=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    approver_comments = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    approver = db.relationship("User", foreign_keys=[approved_by])
    leave_type = db.relationship("LeaveType")

    def to_dict(self):
        return {
            "id": self.id,
            "employee": self.user.summary() if self.user else None,
            "userId": self.user_id,
            "leaveType": self.leave_type.summary() if self.leave_type else None,
            "startDate": iso(self.start_date),
            "endDate": iso(self.end_date),
            "totalDays": self.total_days,
            "reason": self.reason,
            "status": self.status,
            "approvedBy": self.approver.summary() if self.approver else None,
            "approvedAt": iso(self.approved_at),
            "approverComments": self.approver_comments,
            "createdAt": iso(self.created_at),
        }
