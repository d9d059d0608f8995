from flask import Blueprint, request, g, current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from talenthr.models import db, User, ROLES, ADMIN_ROLES
from talenthr.models.user import USER_STATUSES
from talenthr.utils.auth_utils import hash_password
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import (
    check_choice, check_string, check_min_length, normalize_email, check_email, first_error,
)

users_bp = Blueprint("users", __name__)


def _load_user(user_id, action):
    target = db.session.get(User, user_id)
    if not target:
        return None, fail("User not found", 404)
    if target.company_id != g.user.company_id:
        return None, fail(f"You don't have permission to {action} this user", 403)
    return target, None


@users_bp.route("", methods=["GET"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to view users")
def list_users():
    q = User.query.filter_by(company_id=g.user.company_id)

    if request.args.get("role"):
        q = q.filter(User.role == request.args["role"])
    if request.args.get("status"):
        q = q.filter(User.status == request.args["status"])

    search = (request.args.get("search") or "").strip().lower()
    if search:
        q = q.filter(or_(
            func.lower(User.name).like(f"%{search}%"),
            func.lower(User.email).like(f"%{search}%"),
        ))

    users = q.order_by(User.created_at.desc(), User.id.desc()).all()
    return ok("Users retrieved", data=[u.to_dict() for u in users])


@users_bp.route("/<int:user_id>", methods=["GET"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to view user details")
def get_user(user_id):
    target, err = _load_user(user_id, "view")
    if err:
        return err

    data = target.to_dict()
    emp = target.employee_profile
    data["employee"] = emp.to_dict() if emp else None
    return ok("User retrieved", data=data)


@users_bp.route("/<int:user_id>", methods=["PUT"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to update users")
def update_user(user_id):
    target, err = _load_user(user_id, "update")
    if err:
        return err

    data = request.get_json(silent=True) or {}
    err = first_error(
        check_min_length(data["name"], 2, "Name") if "name" in data else None,
        check_choice(data.get("role"), ROLES, "role"),
        check_choice(data.get("status"), USER_STATUSES, "status"),
        check_string(data.get("password"), "Password"),
        check_min_length(data["password"], 8, "Password") if data.get("password") else None,
        check_email(normalize_email(data["email"])) if "email" in data else None,
    )
    if err:
        return err

    if g.user.role == "hr_manager":
        if data.get("role") in ADMIN_ROLES:
            return fail("HR Managers cannot assign admin or HR manager roles", 403)
        if target.role in ADMIN_ROLES:
            return fail("You don't have permission to modify this user", 403)

    if target.id == g.user.id and data.get("status") in ("inactive", "pending"):
        return fail("You cannot deactivate your own account", 400)

    if "name" in data:
        target.name = str(data["name"]).strip()
    if "email" in data:
        target.email = normalize_email(data["email"])
    if data.get("role"):
        target.role = data["role"]
    if data.get("status"):
        target.status = data["status"]
    if data.get("password"):
        target.password = hash_password(data["password"])

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("User with this email already exists", 409)

    current_app.logger.info("User %s updated by %s", target.id, g.user.id)
    return ok("User updated successfully", data=target.to_dict())


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to deactivate users")
def deactivate_user(user_id):
    target, err = _load_user(user_id, "deactivate")
    if err:
        return err

    if target.id == g.user.id:
        return fail("You cannot deactivate your own account", 400)
    if g.user.role == "hr_manager" and target.role in ADMIN_ROLES:
        return fail("You don't have permission to deactivate this user", 403)

    target.status = "inactive"
    db.session.commit()
    current_app.logger.info("User %s deactivated by %s", target.id, g.user.id)
    return ok("User deactivated successfully")
