from flask import Blueprint, request, g, current_app

from talenthr.models import db, Department, LeaveType, ADMIN_ROLES
from talenthr.leave.services import seed_default_leave_types
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import (
    check_choice, check_email, check_min_length, check_range, normalize_email, first_error,
)

seed_bp = Blueprint("seed", __name__)
feedback_bp = Blueprint("feedback", __name__)

FEEDBACK_TYPES = ("bug", "feature", "general", "other")


# -----------------------------
# Default data for existing companies
# -----------------------------
@seed_bp.route("/departments", methods=["POST"])
@token_required
@role_required(("company_admin",), "Only company admins can seed departments")
def seed_departments():
    if Department.query.filter_by(company_id=g.user.company_id).first():
        return fail("Departments already exist for this company", 400)

    created = Department.seed_defaults(g.user.company_id)
    db.session.commit()
    current_app.logger.info("Seeded %d departments for company %s", len(created), g.user.company_id)
    return ok("Default departments created successfully", data=[d.to_dict() for d in created], code=201)


@seed_bp.route("/leave-types", methods=["POST"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to seed leave types")
def seed_leave_types():
    if LeaveType.query.filter_by(company_id=g.user.company_id).first():
        return fail("Leave types already exist for this company", 400)

    created = seed_default_leave_types(g.user.company_id)
    db.session.commit()
    current_app.logger.info("Seeded %d leave types for company %s", len(created), g.user.company_id)
    return ok("Default leave types created successfully", data=[t.to_dict() for t in created], code=201)


# -----------------------------
# Public feedback intake
# -----------------------------
@feedback_bp.route("", methods=["POST"])
def submit_feedback():
    data = request.get_json(silent=True) or {}
    message = str(data.get("message") or "").strip()
    email = normalize_email(data.get("email")) or None

    err = first_error(
        check_min_length(message, 10, "Feedback message"),
        check_email(email) if email else None,
        check_range(data.get("rating"), 1, 5, "rating"),
        check_choice(data.get("type"), FEEDBACK_TYPES, "type"),
    )
    if err:
        return err

    current_app.logger.info(
        "Feedback received: type=%s rating=%s name=%s email=%s message=%s",
        data.get("type") or "general", data.get("rating"), data.get("name"), email, message,
    )
    return ok("Thank you for your feedback!")
