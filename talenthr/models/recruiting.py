from talenthr.models import db
from talenthr.utils.helpers import utcnow, iso

JOB_STATUSES = ("draft", "published", "closed", "cancelled")
EXPERIENCE_LEVELS = ("entry", "mid", "senior", "executive")
CANDIDATE_STATUSES = ("applied", "screening", "interview", "offer", "hired", "rejected", "withdrawn")
CANDIDATE_STAGES = ("application", "phone-screen", "technical", "final", "offer")
INTERVIEW_TYPES = ("phone-screen", "technical", "behavioral", "final", "panel")
INTERVIEW_STATUSES = ("scheduled", "completed", "cancelled", "rescheduled", "no-show")


class JobPosting(db.Model):
    __tablename__ = "job_postings"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    employment_type = db.Column(db.String(20), default="full-time", nullable=False)
    location = db.Column(db.String(150))
    remote = db.Column(db.Boolean, default=False, nullable=False)
    salary_min = db.Column(db.Float)
    salary_max = db.Column(db.Float)
    salary_currency = db.Column(db.String(10), default="USD")
    requirements = db.Column(db.JSON, default=list)
    responsibilities = db.Column(db.JSON, default=list)
    benefits = db.Column(db.JSON, default=list)
    posted_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(20), default="draft", nullable=False, index=True)
    application_deadline = db.Column(db.Date)
    number_of_openings = db.Column(db.Integer, default=1, nullable=False)
    experience_level = db.Column(db.String(20))
    tags = db.Column(db.JSON, default=list)
    views = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    department = db.relationship("Department")
    poster = db.relationship("User", foreign_keys=[posted_by])

    def to_dict(self, applications_count=None):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "department": self.department.summary() if self.department else None,
            "employmentType": self.employment_type,
            "location": self.location,
            "remote": self.remote,
            "salaryRange": {
                "min": self.salary_min,
                "max": self.salary_max,
                "currency": self.salary_currency,
            },
            "requirements": self.requirements or [],
            "responsibilities": self.responsibilities or [],
            "benefits": self.benefits or [],
            "postedBy": self.poster.summary() if self.poster else None,
            "status": self.status,
            "applicationDeadline": iso(self.application_deadline),
            "numberOfOpenings": self.number_of_openings,
            "experienceLevel": self.experience_level,
            "tags": self.tags or [],
            "views": self.views,
            "createdAt": iso(self.created_at),
        }
        if applications_count is not None:
            data["applicationsCount"] = applications_count
        return data


class Candidate(db.Model):
    __tablename__ = "candidates"

    id = db.Column(db.Integer, primary_key=True)
    job_posting_id = db.Column(db.Integer, db.ForeignKey("job_postings.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(30))
    resume_url = db.Column(db.String(500))
    cover_letter = db.Column(db.Text)
    linkedin_url = db.Column(db.String(500))
    portfolio_url = db.Column(db.String(500))
    experience = db.Column(db.Float)
    current_position = db.Column(db.String(150))
    current_company = db.Column(db.String(150))
    expected_salary = db.Column(db.JSON)
    notice_period = db.Column(db.Integer)
    availability = db.Column(db.Date)
    status = db.Column(db.String(20), default="applied", nullable=False, index=True)
    stage = db.Column(db.String(20), default="application", nullable=False)
    source = db.Column(db.String(100))
    recruiter_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    notes = db.Column(db.Text)
    rating = db.Column(db.Integer)
    skills = db.Column(db.JSON, default=list)
    applied_at = db.Column(db.DateTime, default=utcnow)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    job_posting = db.relationship("JobPosting", backref=db.backref("candidates", lazy=True))
    recruiter = db.relationship("User", foreign_keys=[recruiter_id])

    __table_args__ = (
        db.UniqueConstraint("job_posting_id", "email", name="uq_candidate_job_email"),
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def summary(self):
        return {"id": self.id, "name": self.full_name, "email": self.email}

    def to_dict(self):
        return {
            "id": self.id,
            "jobPosting": {"id": self.job_posting.id, "title": self.job_posting.title} if self.job_posting else None,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "resumeUrl": self.resume_url,
            "coverLetter": self.cover_letter,
            "linkedInUrl": self.linkedin_url,
            "portfolioUrl": self.portfolio_url,
            "experience": self.experience,
            "currentPosition": self.current_position,
            "currentCompany": self.current_company,
            "expectedSalary": self.expected_salary,
            "noticePeriod": self.notice_period,
            "availability": iso(self.availability),
            "status": self.status,
            "stage": self.stage,
            "source": self.source,
            "recruiter": self.recruiter.summary() if self.recruiter else None,
            "notes": self.notes,
            "rating": self.rating,
            "skills": self.skills or [],
            "appliedAt": iso(self.applied_at),
        }


interview_interviewers = db.Table(
    "interview_interviewers",
    db.Column("interview_id", db.Integer, db.ForeignKey("interviews.id"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
)


class Interview(db.Model):
    __tablename__ = "interviews"

    id = db.Column(db.Integer, primary_key=True)
    candidate_id = db.Column(db.Integer, db.ForeignKey("candidates.id"), nullable=False, index=True)
    job_posting_id = db.Column(db.Integer, db.ForeignKey("job_postings.id"), nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False)
    scheduled_at = db.Column(db.DateTime, nullable=False)
    duration = db.Column(db.Integer, default=60, nullable=False)  # minutes
    location = db.Column(db.String(255))
    is_remote = db.Column(db.Boolean, default=False, nullable=False)
    organizer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(20), default="scheduled", nullable=False)
    # [{interviewerId, rating, notes, strengths, weaknesses, recommendation, submittedAt}]
    feedback = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text)
    reminder_sent = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    candidate = db.relationship("Candidate", backref=db.backref("interviews", lazy=True))
    job_posting = db.relationship("JobPosting")
    organizer = db.relationship("User", foreign_keys=[organizer_id])
    interviewers = db.relationship("User", secondary=interview_interviewers, lazy="subquery")

    def involves(self, user_id):
        return self.organizer_id == user_id or any(u.id == user_id for u in self.interviewers)

    def to_dict(self):
        return {
            "id": self.id,
            "candidate": self.candidate.summary() if self.candidate else None,
            "jobPosting": {"id": self.job_posting.id, "title": self.job_posting.title} if self.job_posting else None,
            "type": self.type,
            "scheduledAt": iso(self.scheduled_at),
            "duration": self.duration,
            "location": self.location,
            "isRemote": self.is_remote,
            "interviewers": [u.summary() for u in self.interviewers],
            "organizer": self.organizer.summary() if self.organizer else None,
            "status": self.status,
            "feedback": self.feedback or [],
            "notes": self.notes,
            "reminderSent": self.reminder_sent,
            "createdAt": iso(self.created_at),
        }
