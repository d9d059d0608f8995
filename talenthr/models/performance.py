from sqlalchemy import event

from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

GOAL_CATEGORIES = ("individual", "team", "company")
GOAL_STATUSES = ("not-started", "in-progress", "completed", "cancelled")
GOAL_PRIORITIES = ("low", "medium", "high")
REVIEW_STATUSES = ("draft", "submitted", "completed")


class Goal(db.Model):
    __tablename__ = "goals"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(20), default="individual", nullable=False)
    target_date = db.Column(db.Date)
    status = db.Column(db.String(20), default="not-started", nullable=False)
    progress = db.Column(db.Integer, default=0, nullable=False)
    priority = db.Column(db.String(10), default="medium", nullable=False)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    assigner = db.relationship("User", foreign_keys=[assigned_by])

    def sync_status(self):
        progress = self.progress or 0
        if progress >= 100:
            self.status = "completed"
        elif progress > 0 and self.status == "not-started":
            self.status = "in-progress"

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "user": self.user.summary() if self.user else None,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "targetDate": iso(self.target_date),
            "status": self.status,
            "progress": self.progress,
            "priority": self.priority,
            "assignedBy": self.assigner.summary() if self.assigner else None,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@event.listens_for(Goal, "before_insert")
@event.listens_for(Goal, "before_update")
def _goal_status_from_progress(mapper, connection, target):
    target.sync_status()


class PerformanceReview(db.Model):
    __tablename__ = "performance_reviews"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    review_period_start = db.Column(db.Date, nullable=False)
    review_period_end = db.Column(db.Date, nullable=False)
    overall_rating = db.Column(db.Integer, nullable=False)
    strengths = db.Column(db.Text)
    areas_for_improvement = db.Column(db.Text)
    goals = db.Column(db.Text)
    comments = db.Column(db.Text)
    status = db.Column(db.String(20), default="draft", nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    employee = db.relationship("User", foreign_keys=[employee_id])
    reviewer = db.relationship("User", foreign_keys=[reviewer_id])

    def to_dict(self):
        return {
            "id": self.id,
            "employee": self.employee.summary() if self.employee else None,
            "reviewer": self.reviewer.summary() if self.reviewer else None,
            "reviewPeriodStart": iso(self.review_period_start),
            "reviewPeriodEnd": iso(self.review_period_end),
            "overallRating": self.overall_rating,
            "strengths": self.strengths,
            "areasForImprovement": self.areas_for_improvement,
            "goals": self.goals,
            "comments": self.comments,
            "status": self.status,
            "submittedAt": iso(self.submitted_at),
            "createdAt": iso(self.created_at),
        }
