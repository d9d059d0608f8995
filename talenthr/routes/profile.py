from flask import Blueprint, request, g

from talenthr.models import db
from talenthr.utils.auth_utils import hash_password, verify_password
from talenthr.utils.decorators import token_required
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import require_fields, check_string, check_min_length, first_error

profile_bp = Blueprint("profile", __name__)


def _profile_payload(user):
    emp = user.employee_profile
    return {
        "user": user.to_dict(with_company=True),
        "employee": emp.to_dict() if emp else None,
    }


@profile_bp.route("", methods=["GET"])
@token_required
def get_profile():
    return ok("Profile retrieved", data=_profile_payload(g.user))


@profile_bp.route("", methods=["PUT"])
@token_required
def update_profile():
    data = request.get_json(silent=True) or {}
    user = g.user

    if "name" in data:
        err = check_min_length(data["name"], 2, "Name")
        if err:
            return err
        user.name = str(data["name"]).strip()

    emp = user.employee_profile
    if emp:
        if "phone" in data:
            emp.phone = data["phone"]
        if isinstance(data.get("address"), dict):
            emp.address = data["address"]
        if isinstance(data.get("emergencyContact"), dict):
            emp.emergency_contact = data["emergencyContact"]
    elif any(k in data for k in ("phone", "address", "emergencyContact")):
        return fail("Employee record not found", 404)

    db.session.commit()
    return ok("Profile updated successfully", data=_profile_payload(user))


@profile_bp.route("/password", methods=["PUT"])
@token_required
def change_password():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["currentPassword", "newPassword"],
                         "Current password and new password are required")
    if err:
        return err
    err = first_error(
        check_string(data["currentPassword"], "Current password"),
        check_string(data["newPassword"], "New password"),
        check_min_length(data["newPassword"], 8, "New password"),
    )
    if err:
        return err

    if not verify_password(g.user.password, data["currentPassword"]):
        return fail("Current password is incorrect", 401)

    g.user.password = hash_password(data["newPassword"])
    db.session.commit()
    return ok("Password changed successfully")
