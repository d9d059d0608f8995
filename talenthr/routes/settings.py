from flask import Blueprint, request, g
from sqlalchemy import func

from talenthr.models import db, Company
from talenthr.utils.decorators import token_required
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import check_min_length

settings_bp = Blueprint("settings", __name__)

SETTINGS_FIELDS = ("industry", "size", "website", "address", "phone")


@settings_bp.route("", methods=["GET"])
@token_required
def get_settings():
    if g.user.role != "company_admin":
        return fail("Only company admins can access settings", 403)

    company = db.session.get(Company, g.user.company_id)
    if not company:
        return fail("Company not found", 404)
    return ok("Settings retrieved", data=company.to_dict())


@settings_bp.route("", methods=["PUT"])
@token_required
def update_settings():
    if g.user.role != "company_admin":
        return fail("Only company admins can update settings", 403)

    company = db.session.get(Company, g.user.company_id)
    if not company:
        return fail("Company not found", 404)

    data = request.get_json(silent=True) or {}
    if "name" in data:
        name = (data["name"] or "").strip()
        err = check_min_length(name, 2, "Company name")
        if err:
            return err
        clash = Company.query.filter(func.lower(Company.name) == name.lower(), Company.id != company.id).first()
        if clash:
            return fail("Company with this name already exists", 409)
        # slug stays as issued; employee codes are derived from it
        company.name = name

    for field in SETTINGS_FIELDS:
        if field in data:
            setattr(company, field, data[field])

    db.session.commit()
    return ok("Settings updated successfully", data=company.to_dict())
