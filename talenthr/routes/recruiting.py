from flask import Blueprint, request, g
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from talenthr.models import db, User, Department, JobPosting, Candidate, Interview
from talenthr.models.employee import EMPLOYMENT_TYPES
from talenthr.models.recruiting import (
    JOB_STATUSES, EXPERIENCE_LEVELS, CANDIDATE_STATUSES, CANDIDATE_STAGES,
    INTERVIEW_TYPES, INTERVIEW_STATUSES, interview_interviewers,
)
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.helpers import parse_date, parse_datetime, to_int, utcnow
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import (
    require_fields, check_choice, check_range, normalize_email, check_email, first_error,
)

jobs_bp = Blueprint("jobs", __name__)
candidates_bp = Blueprint("candidates", __name__)
interviews_bp = Blueprint("interviews", __name__)

RECRUITING_ROLES = ("company_admin", "hr_manager", "recruiter")


def _company_department(department_id):
    if department_id in (None, ""):
        return None, None
    dept = db.session.get(Department, to_int(department_id))
    if not dept or dept.company_id != g.user.company_id:
        return None, fail("Invalid department", 400)
    return dept, None


# ==============================================================================
# Job postings
# ==============================================================================

JOB_FIELDS = {
    "title": "title",
    "description": "description",
    "employmentType": "employment_type",
    "location": "location",
    "remote": "remote",
    "requirements": "requirements",
    "responsibilities": "responsibilities",
    "benefits": "benefits",
    "status": "status",
    "numberOfOpenings": "number_of_openings",
    "experienceLevel": "experience_level",
    "tags": "tags",
}


def _validate_job(data):
    return first_error(
        check_choice(data.get("employmentType"), EMPLOYMENT_TYPES, "employmentType"),
        check_choice(data.get("status"), JOB_STATUSES, "status"),
        check_choice(data.get("experienceLevel"), EXPERIENCE_LEVELS, "experienceLevel"),
        check_range(data.get("numberOfOpenings"), 1, 10000, "numberOfOpenings"),
    )


def _apply_job(job, data):
    for key, attr in JOB_FIELDS.items():
        if key in data:
            setattr(job, attr, data[key])
    salary = data.get("salaryRange")
    if isinstance(salary, dict):
        job.salary_min = salary.get("min", job.salary_min)
        job.salary_max = salary.get("max", job.salary_max)
        job.salary_currency = salary.get("currency") or job.salary_currency or "USD"
    if "applicationDeadline" in data:
        job.application_deadline = parse_date(data["applicationDeadline"])


def _load_job(job_id):
    job = db.session.get(JobPosting, job_id)
    if not job:
        return None, fail("Job posting not found", 404)
    if job.company_id != g.user.company_id:
        return None, fail("You don't have permission to access this job posting", 403)
    return job, None


@jobs_bp.route("", methods=["GET"])
@token_required
def list_jobs():
    q = JobPosting.query.filter_by(company_id=g.user.company_id)
    if request.args.get("status"):
        q = q.filter(JobPosting.status == request.args["status"])
    if request.args.get("departmentId"):
        q = q.filter(JobPosting.department_id == to_int(request.args["departmentId"]))
    if request.args.get("employmentType"):
        q = q.filter(JobPosting.employment_type == request.args["employmentType"])

    search = (request.args.get("search") or "").strip().lower()
    if search:
        q = q.filter(or_(
            func.lower(JobPosting.title).like(f"%{search}%"),
            func.lower(JobPosting.description).like(f"%{search}%"),
            func.lower(JobPosting.location).like(f"%{search}%"),
        ))

    jobs = q.order_by(JobPosting.created_at.desc(), JobPosting.id.desc()).all()
    counts = dict(
        db.session.query(Candidate.job_posting_id, func.count(Candidate.id))
        .filter(Candidate.company_id == g.user.company_id)
        .group_by(Candidate.job_posting_id)
        .all()
    )
    return ok("Job postings retrieved", data=[j.to_dict(applications_count=counts.get(j.id, 0)) for j in jobs])


@jobs_bp.route("", methods=["POST"])
@token_required
@role_required(RECRUITING_ROLES, "You don't have permission to create job postings")
def create_job():
    data = request.get_json(silent=True) or {}
    if not data.get("title") or not data.get("description"):
        return fail("Title and description are required", 400)
    err = _validate_job(data)
    if err:
        return err
    dept, err = _company_department(data.get("departmentId"))
    if err:
        return err

    job = JobPosting(company_id=g.user.company_id, posted_by=g.user.id, status="draft")
    try:
        _apply_job(job, data)
    except ValueError as e:
        return fail(str(e), 400)
    job.department_id = dept.id if dept else None

    db.session.add(job)
    db.session.commit()
    return ok("Job posting created successfully", data=job.to_dict(), code=201)


@jobs_bp.route("/<int:job_id>", methods=["GET"])
@token_required
def get_job(job_id):
    job, err = _load_job(job_id)
    if err:
        return err
    count = Candidate.query.filter_by(job_posting_id=job.id).count()
    return ok("Job posting retrieved", data=job.to_dict(applications_count=count))


@jobs_bp.route("/<int:job_id>", methods=["PUT"])
@token_required
@role_required(RECRUITING_ROLES, "You don't have permission to update job postings")
def update_job(job_id):
    job, err = _load_job(job_id)
    if err:
        return err

    data = request.get_json(silent=True) or {}
    err = _validate_job(data)
    if err:
        return err
    if "title" in data and not data["title"]:
        return fail("Title cannot be empty", 400)
    if "description" in data and not data["description"]:
        return fail("Description cannot be empty", 400)
    if "departmentId" in data:
        dept, err = _company_department(data["departmentId"])
        if err:
            return err
        job.department_id = dept.id if dept else None

    try:
        _apply_job(job, data)
    except ValueError as e:
        return fail(str(e), 400)
    db.session.commit()
    return ok("Job posting updated successfully", data=job.to_dict())


@jobs_bp.route("/<int:job_id>", methods=["DELETE"])
@token_required
@role_required(RECRUITING_ROLES, "You don't have permission to delete job postings")
def delete_job(job_id):
    job, err = _load_job(job_id)
    if err:
        return err
    job.status = "cancelled"
    db.session.commit()
    return ok("Job posting deleted successfully")


# ==============================================================================
# Candidates
# ==============================================================================

CANDIDATE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "resumeUrl": "resume_url",
    "coverLetter": "cover_letter",
    "linkedInUrl": "linkedin_url",
    "portfolioUrl": "portfolio_url",
    "experience": "experience",
    "currentPosition": "current_position",
    "currentCompany": "current_company",
    "expectedSalary": "expected_salary",
    "noticePeriod": "notice_period",
    "status": "status",
    "stage": "stage",
    "source": "source",
    "notes": "notes",
    "rating": "rating",
    "skills": "skills",
}


def _validate_candidate(data):
    return first_error(
        check_choice(data.get("status"), CANDIDATE_STATUSES, "status"),
        check_choice(data.get("stage"), CANDIDATE_STAGES, "stage"),
        check_range(data.get("rating"), 1, 5, "rating"),
        check_range(data.get("experience"), 0, 80, "experience"),
    )


def _apply_candidate(candidate, data):
    for key, attr in CANDIDATE_FIELDS.items():
        if key in data:
            setattr(candidate, attr, data[key])
    if "availability" in data:
        candidate.availability = parse_date(data["availability"])


def _company_recruiter(recruiter_id):
    if recruiter_id in (None, ""):
        return None, None
    recruiter = db.session.get(User, to_int(recruiter_id))
    if not recruiter or recruiter.company_id != g.user.company_id:
        return None, fail("Invalid recruiter", 400)
    return recruiter, None


def _load_candidate(candidate_id, action="view"):
    candidate = db.session.get(Candidate, candidate_id)
    if not candidate:
        return None, fail("Candidate not found", 404)
    if candidate.company_id != g.user.company_id:
        return None, fail(f"You don't have permission to {action} this candidate", 403)
    if g.user.role == "recruiter" and candidate.recruiter_id != g.user.id:
        return None, fail(f"You don't have permission to {action} this candidate", 403)
    return candidate, None


@candidates_bp.route("", methods=["GET"])
@token_required
def list_candidates():
    q = Candidate.query.filter_by(company_id=g.user.company_id)
    if g.user.role == "recruiter":
        q = q.filter(Candidate.recruiter_id == g.user.id)
    if request.args.get("jobPostingId"):
        q = q.filter(Candidate.job_posting_id == to_int(request.args["jobPostingId"]))
    if request.args.get("status"):
        q = q.filter(Candidate.status == request.args["status"])
    if request.args.get("stage"):
        q = q.filter(Candidate.stage == request.args["stage"])

    search = (request.args.get("search") or "").strip().lower()
    if search:
        q = q.filter(or_(
            func.lower(Candidate.first_name).like(f"%{search}%"),
            func.lower(Candidate.last_name).like(f"%{search}%"),
            func.lower(Candidate.email).like(f"%{search}%"),
        ))

    rows = q.order_by(Candidate.applied_at.desc(), Candidate.id.desc()).all()
    return ok("Candidates retrieved", data=[c.to_dict() for c in rows])


@candidates_bp.route("", methods=["POST"])
@token_required
@role_required(RECRUITING_ROLES, "You don't have permission to create candidate applications")
def create_candidate():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["jobPostingId", "firstName", "lastName", "email"],
                         "Job posting, first name, last name, and email are required")
    if err:
        return err

    email = normalize_email(data["email"])
    err = first_error(check_email(email), _validate_candidate(data))
    if err:
        return err

    job = db.session.get(JobPosting, to_int(data["jobPostingId"]))
    if not job:
        return fail("Job posting not found", 404)
    if job.company_id != g.user.company_id:
        return fail("Job posting does not belong to your company", 403)

    if Candidate.query.filter_by(job_posting_id=job.id, email=email).first():
        return fail("Candidate has already applied for this job", 400)

    recruiter_id = data.get("recruiterId")
    if recruiter_id in (None, "") and g.user.role == "recruiter":
        recruiter_id = g.user.id
    recruiter, err = _company_recruiter(recruiter_id)
    if err:
        return err

    candidate = Candidate(
        job_posting_id=job.id,
        company_id=g.user.company_id,
        email=email,
        status="applied",
        stage="application",
        recruiter_id=recruiter.id if recruiter else None,
        applied_at=utcnow(),
    )
    try:
        _apply_candidate(candidate, data)
    except ValueError as e:
        return fail(str(e), 400)

    try:
        db.session.add(candidate)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("Candidate has already applied for this job", 400)
    return ok("Candidate application created successfully", data=candidate.to_dict(), code=201)


@candidates_bp.route("/<int:candidate_id>", methods=["GET"])
@token_required
def get_candidate(candidate_id):
    candidate, err = _load_candidate(candidate_id)
    if err:
        return err
    data = candidate.to_dict()
    data["interviews"] = [i.to_dict() for i in candidate.interviews]
    return ok("Candidate retrieved", data=data)


@candidates_bp.route("/<int:candidate_id>", methods=["PUT"])
@token_required
@role_required(RECRUITING_ROLES, "You don't have permission to update candidates")
def update_candidate(candidate_id):
    candidate, err = _load_candidate(candidate_id, action="update")
    if err:
        return err

    data = request.get_json(silent=True) or {}
    err = _validate_candidate(data)
    if err:
        return err
    if "email" in data:
        email = normalize_email(data["email"])
        err = check_email(email)
        if err:
            return err
        candidate.email = email
    if "recruiterId" in data:
        recruiter, err = _company_recruiter(data["recruiterId"])
        if err:
            return err
        candidate.recruiter_id = recruiter.id if recruiter else None

    try:
        _apply_candidate(candidate, data)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return fail(str(e), 400)
    except IntegrityError:
        db.session.rollback()
        return fail("Candidate has already applied for this job", 400)
    return ok("Candidate updated successfully", data=candidate.to_dict())


# ==============================================================================
# Interviews
# ==============================================================================

def _company_users(ids):
    ids = [to_int(i) for i in (ids or [])]
    if any(i is None for i in ids):
        return None, fail("Invalid interviewer", 400)
    users = User.query.filter(User.id.in_(ids), User.company_id == g.user.company_id).all() if ids else []
    if len(users) != len(set(ids)):
        return None, fail("Invalid interviewer", 400)
    return users, None


def _load_interview(interview_id, action="view"):
    interview = db.session.get(Interview, interview_id)
    if not interview:
        return None, fail("Interview not found", 404)
    if interview.company_id != g.user.company_id:
        return None, fail(f"You don't have permission to {action} this interview", 403)
    if g.user.role not in ("company_admin", "hr_manager") and not interview.involves(g.user.id):
        return None, fail(f"You don't have permission to {action} this interview", 403)
    return interview, None


@interviews_bp.route("", methods=["GET"])
@token_required
def list_interviews():
    q = Interview.query.filter_by(company_id=g.user.company_id)
    if g.user.role in ("recruiter", "manager"):
        sits_on = db.session.query(interview_interviewers.c.interview_id).filter(
            interview_interviewers.c.user_id == g.user.id
        )
        q = q.filter(or_(Interview.organizer_id == g.user.id, Interview.id.in_(sits_on)))
    elif g.user.role == "employee":
        return fail("You don't have permission to view interviews", 403)

    if request.args.get("candidateId"):
        q = q.filter(Interview.candidate_id == to_int(request.args["candidateId"]))
    if request.args.get("jobPostingId"):
        q = q.filter(Interview.job_posting_id == to_int(request.args["jobPostingId"]))
    if request.args.get("status"):
        q = q.filter(Interview.status == request.args["status"])

    rows = q.order_by(Interview.scheduled_at.asc()).all()
    return ok("Interviews retrieved", data=[i.to_dict() for i in rows])


@interviews_bp.route("", methods=["POST"])
@token_required
@role_required(RECRUITING_ROLES, "You don't have permission to schedule interviews")
def create_interview():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["candidateId", "jobPostingId", "type", "scheduledAt"],
                         "Candidate, job posting, type, and scheduled time are required")
    if err:
        return err
    err = first_error(
        check_choice(data.get("type"), INTERVIEW_TYPES, "type"),
        check_choice(data.get("status"), INTERVIEW_STATUSES, "status"),
        check_range(data.get("duration"), 15, 480, "duration"),
    )
    if err:
        return err

    candidate = db.session.get(Candidate, to_int(data["candidateId"]))
    if not candidate:
        return fail("Candidate not found", 404)
    if candidate.company_id != g.user.company_id:
        return fail("Candidate does not belong to your company", 403)
    job = db.session.get(JobPosting, to_int(data["jobPostingId"]))
    if not job:
        return fail("Job posting not found", 404)
    if job.company_id != g.user.company_id:
        return fail("Job posting does not belong to your company", 403)

    interviewers, err = _company_users(data.get("interviewers"))
    if err:
        return err
    try:
        scheduled_at = parse_datetime(data["scheduledAt"])
    except ValueError as e:
        return fail(str(e), 400)

    interview = Interview(
        candidate_id=candidate.id,
        job_posting_id=job.id,
        company_id=g.user.company_id,
        type=data["type"],
        scheduled_at=scheduled_at,
        duration=to_int(data.get("duration"), 60),
        location=data.get("location"),
        is_remote=bool(data.get("isRemote", False)),
        organizer_id=g.user.id,
        status=data.get("status") or "scheduled",
        notes=data.get("notes"),
        feedback=[],
        reminder_sent=False,
    )
    interview.interviewers = interviewers
    db.session.add(interview)
    db.session.commit()
    return ok("Interview scheduled successfully", data=interview.to_dict(), code=201)


@interviews_bp.route("/<int:interview_id>", methods=["GET"])
@token_required
def get_interview(interview_id):
    interview, err = _load_interview(interview_id)
    if err:
        return err
    return ok("Interview retrieved", data=interview.to_dict())


@interviews_bp.route("/<int:interview_id>", methods=["PUT"])
@token_required
def update_interview(interview_id):
    interview, err = _load_interview(interview_id, action="update")
    if err:
        return err

    data = request.get_json(silent=True) or {}
    err = first_error(
        check_choice(data.get("type"), INTERVIEW_TYPES, "type"),
        check_choice(data.get("status"), INTERVIEW_STATUSES, "status"),
        check_range(data.get("duration"), 15, 480, "duration"),
    )
    if err:
        return err

    if "interviewers" in data:
        interviewers, err = _company_users(data["interviewers"])
        if err:
            return err
        interview.interviewers = interviewers
    if "scheduledAt" in data:
        try:
            interview.scheduled_at = parse_datetime(data["scheduledAt"])
        except ValueError as e:
            return fail(str(e), 400)
        if not interview.scheduled_at:
            return fail("scheduledAt cannot be empty", 400)

    for key, attr in (("type", "type"), ("duration", "duration"), ("location", "location"),
                      ("isRemote", "is_remote"), ("status", "status"), ("notes", "notes"),
                      ("feedback", "feedback"), ("reminderSent", "reminder_sent")):
        if key in data and data[key] is not None:
            setattr(interview, attr, data[key])

    db.session.commit()
    return ok("Interview updated successfully", data=interview.to_dict())
