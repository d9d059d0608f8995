from flask import Blueprint, request, g
from sqlalchemy import or_

from talenthr.models import db, User, Goal, PerformanceReview, ADMIN_ROLES
from talenthr.models.performance import GOAL_CATEGORIES, GOAL_STATUSES, GOAL_PRIORITIES
from talenthr.utils.decorators import token_required
from talenthr.utils.helpers import parse_date, to_int, utcnow
from talenthr.utils.responses import ok, fail
from talenthr.utils.scoping import scope_query, is_manager_of, team_user_ids, requested_user_param
from talenthr.utils.validators import require_fields, check_choice, check_range, first_error

goals_bp = Blueprint("goals", __name__)
reviews_bp = Blueprint("reviews", __name__)

MANAGING_ROLES = ("company_admin", "hr_manager", "manager")


def _clamp_progress(value):
    progress = to_int(value, 0)
    return max(0, min(100, progress))


def _can_manage_user(user_id):
    """Admin/HR manage anyone in the company, managers only their direct reports."""
    if g.user.role in ADMIN_ROLES:
        return True
    return g.user.role == "manager" and is_manager_of(g.user, user_id)


# -----------------------------
# Goals
# -----------------------------
@goals_bp.route("", methods=["GET"])
@token_required
def list_goals():
    requested, err = requested_user_param("userId")
    if err:
        return err
    q, err = scope_query(Goal.query, Goal, g.user, requested_user_id=requested)
    if err:
        return err

    if request.args.get("status"):
        q = q.filter(Goal.status == request.args["status"])
    if request.args.get("category"):
        q = q.filter(Goal.category == request.args["category"])

    rows = q.order_by(Goal.created_at.desc(), Goal.id.desc()).all()
    return ok("Goals retrieved", data=[r.to_dict() for r in rows])


@goals_bp.route("", methods=["POST"])
@token_required
def create_goal():
    data = request.get_json(silent=True) or {}
    err = first_error(
        require_fields(data, ["title"], "Title is required"),
        check_choice(data.get("category"), GOAL_CATEGORIES, "category"),
        check_choice(data.get("priority"), GOAL_PRIORITIES, "priority"),
        check_choice(data.get("status"), GOAL_STATUSES, "status"),
    )
    if err:
        return err

    owner_id = g.user.id
    assign_to = to_int(data.get("assignToUserId"))
    if assign_to and assign_to != g.user.id:
        if g.user.role not in MANAGING_ROLES:
            return fail("You don't have permission to assign goals to other users", 403)
        target = db.session.get(User, assign_to)
        if not target or target.company_id != g.user.company_id:
            return fail("User not found in your company", 404)
        if not _can_manage_user(assign_to):
            return fail("You can only assign goals to your team members", 403)
        owner_id = assign_to

    try:
        target_date = parse_date(data.get("targetDate"))
    except ValueError as e:
        return fail(str(e), 400)

    goal = Goal(
        user_id=owner_id,
        company_id=g.user.company_id,
        title=str(data["title"]).strip(),
        description=data.get("description"),
        category=data.get("category") or "individual",
        target_date=target_date,
        status=data.get("status") or "not-started",
        progress=_clamp_progress(data.get("progress", 0)),
        priority=data.get("priority") or "medium",
        assigned_by=g.user.id if owner_id != g.user.id else None,
    )
    db.session.add(goal)
    db.session.commit()
    return ok("Goal created successfully", data=goal.to_dict(), code=201)


def _load_goal(goal_id):
    goal = db.session.get(Goal, goal_id)
    if not goal or goal.company_id != g.user.company_id:
        return None, fail("Goal not found", 404)
    if goal.user_id != g.user.id and not _can_manage_user(goal.user_id):
        return None, fail("You don't have permission to modify this goal", 403)
    return goal, None


@goals_bp.route("/<int:goal_id>", methods=["PUT"])
@token_required
def update_goal(goal_id):
    goal, err = _load_goal(goal_id)
    if err:
        return err

    data = request.get_json(silent=True) or {}
    if data.get("action") == "update-progress":
        if "progress" not in data:
            return fail("progress is required", 400)
        goal.progress = _clamp_progress(data["progress"])
        goal.sync_status()
        db.session.commit()
        return ok("Goal progress updated", data=goal.to_dict())

    err = first_error(
        check_choice(data.get("category"), GOAL_CATEGORIES, "category"),
        check_choice(data.get("priority"), GOAL_PRIORITIES, "priority"),
        check_choice(data.get("status"), GOAL_STATUSES, "status"),
    )
    if err:
        return err

    if data.get("title"):
        goal.title = str(data["title"]).strip()
    if "description" in data:
        goal.description = data["description"]
    if data.get("category"):
        goal.category = data["category"]
    if data.get("priority"):
        goal.priority = data["priority"]
    if data.get("status"):
        goal.status = data["status"]
    if "targetDate" in data:
        try:
            goal.target_date = parse_date(data["targetDate"])
        except ValueError as e:
            return fail(str(e), 400)
    if "progress" in data:
        goal.progress = _clamp_progress(data["progress"])

    goal.sync_status()
    db.session.commit()
    return ok("Goal updated successfully", data=goal.to_dict())


@goals_bp.route("/<int:goal_id>", methods=["DELETE"])
@token_required
def delete_goal(goal_id):
    goal, err = _load_goal(goal_id)
    if err:
        return err
    db.session.delete(goal)
    db.session.commit()
    return ok("Goal deleted successfully")


# -----------------------------
# Reviews
# -----------------------------
@reviews_bp.route("", methods=["GET"])
@token_required
def list_reviews():
    q = PerformanceReview.query.filter(PerformanceReview.company_id == g.user.company_id)

    if g.user.role == "manager":
        team = team_user_ids(g.user)
        q = q.filter(or_(
            PerformanceReview.employee_id.in_(team + [g.user.id]),
            PerformanceReview.reviewer_id == g.user.id,
        ))
    elif g.user.role not in ADMIN_ROLES:
        q = q.filter(PerformanceReview.employee_id == g.user.id)

    if request.args.get("status"):
        q = q.filter(PerformanceReview.status == request.args["status"])
    employee_id, err = requested_user_param("employeeId")
    if err:
        return err
    if employee_id:
        q = q.filter(PerformanceReview.employee_id == employee_id)

    rows = q.order_by(PerformanceReview.created_at.desc(), PerformanceReview.id.desc()).all()
    return ok("Reviews retrieved", data=[r.to_dict() for r in rows])


def _review_dates(data, review=None):
    start = parse_date(data.get("reviewPeriodStart")) or (review.review_period_start if review else None)
    end = parse_date(data.get("reviewPeriodEnd")) or (review.review_period_end if review else None)
    return start, end


@reviews_bp.route("", methods=["POST"])
@token_required
def create_review():
    if g.user.role not in MANAGING_ROLES:
        return fail("You don't have permission to create performance reviews", 403)

    data = request.get_json(silent=True) or {}
    err = first_error(
        require_fields(data, ["employeeId", "reviewPeriodStart", "reviewPeriodEnd", "overallRating"]),
        check_range(data.get("overallRating"), 1, 5, "overallRating"),
    )
    if err:
        return err

    employee_id = to_int(data["employeeId"])
    target = db.session.get(User, employee_id) if employee_id else None
    if not target or target.company_id != g.user.company_id:
        return fail("Employee not found in your company", 404)
    if g.user.role == "manager" and not is_manager_of(g.user, employee_id):
        return fail("You can only review your team members", 403)

    try:
        start, end = _review_dates(data)
    except ValueError as e:
        return fail(str(e), 400)
    if end < start:
        return fail("Review period end must be on or after start", 400)

    review = PerformanceReview(
        employee_id=employee_id,
        reviewer_id=g.user.id,
        company_id=g.user.company_id,
        review_period_start=start,
        review_period_end=end,
        overall_rating=int(data["overallRating"]),
        strengths=data.get("strengths"),
        areas_for_improvement=data.get("areasForImprovement"),
        goals=data.get("goals"),
        comments=data.get("comments"),
        status="draft",
    )
    db.session.add(review)
    db.session.commit()
    return ok("Performance review created successfully", data=review.to_dict(), code=201)


@reviews_bp.route("/<int:review_id>", methods=["PUT"])
@token_required
def update_review(review_id):
    review = db.session.get(PerformanceReview, review_id)
    if not review or review.company_id != g.user.company_id:
        return fail("Review not found", 404)
    if review.reviewer_id != g.user.id:
        return fail("Only the reviewer can update this review", 403)

    data = request.get_json(silent=True) or {}
    if data.get("action") == "submit":
        if review.status != "draft":
            return fail("Only draft reviews can be submitted", 400)
        review.status = "submitted"
        review.submitted_at = utcnow()
        db.session.commit()
        return ok("Review submitted successfully", data=review.to_dict())

    err = check_range(data.get("overallRating"), 1, 5, "overallRating")
    if err:
        return err
    try:
        start, end = _review_dates(data, review)
    except ValueError as e:
        return fail(str(e), 400)
    if end < start:
        return fail("Review period end must be on or after start", 400)

    review.review_period_start, review.review_period_end = start, end
    if data.get("overallRating") is not None:
        review.overall_rating = int(data["overallRating"])
    for field, attr in (("strengths", "strengths"), ("areasForImprovement", "areas_for_improvement"),
                        ("goals", "goals"), ("comments", "comments")):
        if field in data:
            setattr(review, attr, data[field])

    db.session.commit()
    return ok("Review updated successfully", data=review.to_dict())
