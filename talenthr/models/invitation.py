from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

INVITATION_STATUSES = ("pending", "accepted", "expired", "cancelled")


class Invitation(db.Model):
    """
    pending -> accepted | cancelled | expired, all terminal.
    Only the sha256 of the token is looked up; raw_token is kept for the admin copy-link view.
    """
    __tablename__ = "invitations"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    invited_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    raw_token = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(20), default="pending", nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    accepted_at = db.Column(db.DateTime, nullable=True)
    accepted_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    company = db.relationship("Company")
    inviter = db.relationship("User", foreign_keys=[invited_by])

    __table_args__ = (
        db.Index("ix_invitation_company_email_status", "company_id", "email", "status"),
        # at most one pending invitation per (company, email)
        db.Index("uq_invitation_pending", "company_id", "email", unique=True,
                 sqlite_where=db.text("status = 'pending'"),
                 postgresql_where=db.text("status = 'pending'")),
    )

    def is_expired(self, now=None):
        return (now or utcnow()) > self.expires_at

    def expire_if_due(self, now=None):
        """Lazily move a pending invitation to expired. Returns True when it changed."""
        if self.status == "pending" and self.is_expired(now):
            self.status = "expired"
            return True
        return False

    def link(self, app_url):
        if not self.raw_token:
            return None
        return f"{app_url.rstrip('/')}/signup?token={self.raw_token}"

    def to_dict(self, app_url=None):
        data = {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "invitedBy": self.inviter.summary() if self.inviter else None,
            "expiresAt": iso(self.expires_at),
            "acceptedAt": iso(self.accepted_at),
            "createdAt": iso(self.created_at),
        }
        if app_url:
            data["link"] = self.link(app_url) if self.status == "pending" else None
        return data
