from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

ATTENDANCE_STATUSES = ("Present", "Absent", "Late", "Half-day")


class Attendance(db.Model):
    """
    One row per user per date.
    clock_in / clock_out are naive server-local wall-clock times.
    """
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)

    clock_in = db.Column(db.DateTime, nullable=False)
    clock_out = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), default="Present", nullable=False)
    work_duration = db.Column(db.Integer, nullable=True)  # minutes
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        db.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
    )

    def recalc_work_duration(self):
        if self.clock_in and self.clock_out:
            diff = self.clock_out - self.clock_in
            self.work_duration = round(diff.total_seconds() / 60)
        else:
            self.work_duration = None
        return self.work_duration

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "employeeId": self.employee_id,
            "employee": self.user.summary() if self.user else None,
            "date": iso(self.date),
            "clockIn": iso(self.clock_in),
            "clockOut": iso(self.clock_out),
            "status": self.status,
            "workDuration": self.work_duration,
            "notes": self.notes,
            "createdAt": iso(self.created_at),
        }
