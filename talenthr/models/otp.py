from talenthr.models import db
from talenthr.utils.helpers import utcnow

OTP_PURPOSES = ("company_admin_signup", "invitation_signup", "login", "password_reset")


class OTP(db.Model):
    __tablename__ = "otps"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False, index=True)
    code_hash = db.Column(db.String(255), nullable=False)
    purpose = db.Column(db.String(40), nullable=False)
    type = db.Column(db.String(20), nullable=False, default="signup")  # signup / password_reset
    expires_at = db.Column(db.DateTime, nullable=False)
    attempts = db.Column(db.Integer, default=0, nullable=False)
    max_attempts = db.Column(db.Integer, default=5, nullable=False)
    verified = db.Column(db.Boolean, default=False, nullable=False)
    verified_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (db.Index("ix_otp_email_purpose", "email", "purpose"),)

    @staticmethod
    def type_for(purpose):
        return "password_reset" if purpose == "password_reset" else "signup"

    def is_expired(self, now=None):
        return (now or utcnow()) > self.expires_at

    @property
    def attempts_exhausted(self):
        return self.attempts >= self.max_attempts

    @property
    def remaining_attempts(self):
        return max(self.max_attempts - self.attempts, 0)

    def __repr__(self):
        return f"<OTP {self.email} {self.purpose}>"
