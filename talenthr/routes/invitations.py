from datetime import timedelta

from flask import Blueprint, request, g, current_app
from sqlalchemy.exc import IntegrityError

from talenthr.models import db, User, Company, Invitation, ADMIN_ROLES, INVITABLE_ROLES
from talenthr.utils.auth_utils import generate_invitation_token, hash_token
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.email_utils import send_invitation_email
from talenthr.utils.helpers import utcnow, iso
from talenthr.utils.responses import ok, fail
from talenthr.utils.scoping import enforce_company_match
from talenthr.utils.validators import normalize_email, check_email, check_choice, first_error

invitations_bp = Blueprint("invitations", __name__)

ADMIN_ONLY = "Only company admins and HR managers can manage invitations"


@invitations_bp.route("", methods=["POST"])
@token_required
@role_required(ADMIN_ROLES, ADMIN_ONLY)
def create_invitation():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    role = data.get("role")

    err = first_error(
        check_email(email),
        fail("role is required", 400) if not role else None,
        check_choice(role, INVITABLE_ROLES, "role"),
    )
    if err:
        return err

    if g.user.role == "hr_manager" and role == "hr_manager":
        return fail("HR managers cannot invite other HR managers", 403)

    company_id = g.user.company_id
    if User.query.filter_by(email=email, company_id=company_id).first():
        return fail("User with this email already exists in your company", 409)
    if User.query.filter_by(email=email).first():
        return fail("User with this email already exists", 409)

    existing = Invitation.query.filter_by(company_id=company_id, email=email, status="pending").first()
    if existing:
        if not existing.expire_if_due():
            return fail("An invitation has already been sent to this email", 409)
        db.session.flush()

    raw_token = generate_invitation_token()
    days = current_app.config["INVITATION_EXPIRES_DAYS"]
    invitation = Invitation(
        company_id=company_id,
        email=email,
        role=role,
        invited_by=g.user.id,
        token_hash=hash_token(raw_token),
        raw_token=raw_token,
        status="pending",
        expires_at=utcnow() + timedelta(days=days),
    )
    try:
        db.session.add(invitation)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("An invitation has already been sent to this email", 409)

    link = invitation.link(current_app.config["APP_URL"])
    company = g.user.company
    sent = send_invitation_email(email, company.name if company else "", g.user.name, role, link, days)
    if not sent:
        current_app.logger.warning("Invitation %s created but email was not delivered", invitation.id)

    return ok(
        "Invitation created successfully", code=201,
        invitation={
            "id": invitation.id,
            "email": invitation.email,
            "role": invitation.role,
            "link": link,
            "expiresAt": iso(invitation.expires_at),
        },
        emailSent=sent,
    )


@invitations_bp.route("", methods=["GET"])
@token_required
@role_required(ADMIN_ROLES, ADMIN_ONLY)
def list_invitations():
    rows = (Invitation.query
            .filter_by(company_id=g.user.company_id)
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
            .all())

    now = utcnow()
    changed = [inv for inv in rows if inv.expire_if_due(now)]
    if changed:
        db.session.commit()

    app_url = current_app.config["APP_URL"]
    return ok("Invitations retrieved", data=[inv.to_dict(app_url) for inv in rows])


@invitations_bp.route("/<int:invitation_id>", methods=["DELETE"])
@token_required
@role_required(ADMIN_ROLES, ADMIN_ONLY)
def cancel_invitation(invitation_id):
    invitation = db.session.get(Invitation, invitation_id)
    if not invitation:
        return fail("Invitation not found", 404)

    err = enforce_company_match(invitation.company_id)
    if err:
        return err

    if invitation.status == "accepted":
        return fail("Cannot cancel an accepted invitation", 400)

    invitation.status = "cancelled"
    db.session.commit()
    return ok("Invitation cancelled successfully")


@invitations_bp.route("/validate", methods=["GET"])
def validate_invitation():
    token = request.args.get("token")
    if not token:
        return fail("Token is required", 400)

    invitation = Invitation.query.filter_by(token_hash=hash_token(token)).first()
    if not invitation:
        return fail("Invalid invitation token", 400)

    if invitation.status == "accepted":
        return fail("This invitation has already been accepted", 400)
    if invitation.status == "cancelled":
        return fail("This invitation has been cancelled", 400)

    if invitation.expire_if_due():
        db.session.commit()
    if invitation.status == "expired":
        return fail("This invitation has expired", 400)

    company = db.session.get(Company, invitation.company_id)
    if not company:
        return fail("Company not found", 404)

    return ok(
        "Invitation is valid",
        valid=True,
        invitation={
            "email": invitation.email,
            "role": invitation.role,
            "company": company.summary(),
            "expiresAt": iso(invitation.expires_at),
        },
    )
