from datetime import timedelta

from flask import Blueprint, request, g, current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from talenthr.models import db, User, Company, Employee, Department, Invitation, OTP, ROLES
from talenthr.leave.services import seed_default_leave_types
from talenthr.utils.auth_utils import (
    REFRESH_COOKIE, hash_password, verify_password, hash_token,
    verify_refresh_token, issue_session, clear_auth_cookies,
)
from talenthr.utils.decorators import token_required
from talenthr.utils.helpers import utcnow, slugify
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import (
    require_fields, normalize_email, check_email, check_string, check_min_length, first_error,
)

auth_bp = Blueprint("auth", __name__)


def _auth_payload(user):
    data = user.to_dict(with_company=True)
    emp = user.employee_profile
    data["employeeId"] = emp.employee_code if emp else None
    return data


def _create_employee_record(user, company, position=None):
    emp = Employee(
        user_id=user.id,
        company_id=company.id,
        employee_code=Employee.next_code(company),
        position=position,
        hire_date=utcnow().date(),
        employment_type="full-time",
        status="active",
    )
    db.session.add(emp)
    return emp


# -------------------------
# LOGIN
# -------------------------
@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    role = data.get("role")

    err = first_error(
        require_fields({"email": email, "password": password}, ["email", "password"],
                       "Email and password are required"),
        check_email(email),
        check_string(password, "Password"),
    )
    if err:
        return err
    if role is not None and role not in ROLES:
        return fail("Invalid role", 400)

    try:
        user = User.query.filter_by(email=email).first()

        # unknown email, wrong password and wrong role share one answer
        if not user or not verify_password(user.password, password) or (role and user.role != role):
            current_app.logger.info("Login failed for %s", email)
            return fail("Invalid credentials", 401)

        if not user.is_active:
            message = ("Account is deactivated. Please contact support."
                       if user.status == "inactive" else "Account is pending activation.")
            return fail(message, 403)

        company = user.company
        if not company:
            return fail("Company not found", 404)
        if company.status != "active":
            return fail("Company account is suspended. Please contact support.", 403)

        user.last_login = utcnow()
        db.session.commit()

        response, code = ok("Login successful", user=_auth_payload(user))
        issue_session(response, user)
        return response, code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Login error")
        return fail("Internal server error", 500)


# -------------------------
# REFRESH
# -------------------------
@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        return fail("Refresh token not found", 401)

    data = verify_refresh_token(token)
    if not data:
        response, code = fail("Invalid or expired refresh token", 401)
        clear_auth_cookies(response)
        return response, code

    user = db.session.get(User, data["user_id"])
    if not user:
        response, code = fail("User not found", 401)
        clear_auth_cookies(response)
        return response, code

    response, code = ok("Tokens refreshed successfully")
    issue_session(response, user)
    return response, code


# -------------------------
# ME / LOGOUT
# -------------------------
@auth_bp.route("/me", methods=["GET"])
@token_required
def me():
    return ok("User authenticated", user=_auth_payload(g.user))


@auth_bp.route("/logout", methods=["POST"])
def logout():
    response, code = ok("Logged out successfully")
    clear_auth_cookies(response)
    return response, code


# -------------------------
# SIGNUP
# -------------------------
@auth_bp.route("/signup", methods=["POST"])
def signup():
    data = request.get_json(silent=True) or {}

    if data.get("role") == "company_admin" and data.get("companyName"):
        return _company_admin_signup(data)
    if data.get("token"):
        return _invitation_signup(data)
    return fail("Invalid signup request. Provide companyName for admin signup or token for invitation signup.", 400)


def _validate_signup(data):
    email = normalize_email(data.get("email"))
    err = first_error(
        check_email(email),
        check_string(data.get("password"), "Password"),
        check_min_length(data.get("password") or "", 8, "Password"),
        check_min_length(data.get("name") or "", 2, "Name"),
    )
    return email, err


def _company_admin_signup(data):
    email, err = _validate_signup(data)
    if err:
        return err
    company_name = (data.get("companyName") or "").strip()
    err = check_min_length(company_name, 2, "Company name")
    if err:
        return err

    otp = (OTP.query
           .filter_by(email=email, purpose="company_admin_signup", verified=True)
           .order_by(OTP.created_at.desc())
           .first())
    if not otp:
        return fail("Email not verified. Please verify your email with OTP first.", 400)
    window = timedelta(minutes=current_app.config["SIGNUP_OTP_WINDOW_MINUTES"])
    if utcnow() - otp.created_at > window:
        return fail("OTP verification expired. Please verify your email again.", 400)

    if User.query.filter_by(email=email).first():
        return fail("User with this email already exists", 409)

    if Company.query.filter(func.lower(Company.name) == company_name.lower()).first():
        return fail("Company with this name already exists. Please contact support or use an invitation link.", 409)

    slug = slugify(company_name)
    if not slug:
        return fail("Company name must contain letters or digits", 400)
    if Company.query.filter_by(slug=slug).first():
        return fail("Company with this name already exists. Please contact support or use an invitation link.", 409)

    try:
        company = Company(name=company_name, slug=slug, status="active")
        db.session.add(company)
        db.session.flush()

        user = User(
            email=email,
            password=hash_password(data["password"]),
            name=str(data["name"]).strip(),
            role="company_admin",
            company_id=company.id,
            status="active",
            last_login=utcnow(),
        )
        db.session.add(user)
        db.session.flush()

        _create_employee_record(user, company, position="Company Administrator")
        Department.seed_defaults(company.id)
        seed_default_leave_types(company.id)

        # the verification is single use
        db.session.delete(otp)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("User or company already exists", 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Company admin signup failed")
        return fail("Internal server error", 500)

    current_app.logger.info("Company %s created by %s", company.slug, email)
    response, code = ok("Company and account created successfully", code=201, user=_auth_payload(user))
    issue_session(response, user)
    return response, code


def _invitation_signup(data):
    email, err = _validate_signup(data)
    err = err or check_string(data["token"], "Token")
    if err:
        return err

    invitation = Invitation.query.filter_by(token_hash=hash_token(data["token"]), status="pending").first()
    if not invitation:
        return fail("Invalid or expired invitation link", 400)

    if invitation.expire_if_due():
        db.session.commit()
        return fail("Invitation link has expired", 400)

    if invitation.email != email:
        return fail("Email does not match invitation", 400)

    if User.query.filter_by(email=email).first():
        return fail("User with this email already exists", 409)

    company = db.session.get(Company, invitation.company_id)
    if not company:
        return fail("Company not found", 404)

    try:
        user = User(
            email=email,
            password=hash_password(data["password"]),
            name=str(data["name"]).strip(),
            role=invitation.role,
            company_id=invitation.company_id,
            status="active",
            last_login=utcnow(),
        )
        db.session.add(user)
        db.session.flush()

        _create_employee_record(user, company)

        invitation.status = "accepted"
        invitation.accepted_at = utcnow()
        invitation.accepted_by = user.id
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("User with this email already exists", 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Invitation signup failed")
        return fail("Internal server error", 500)

    response, code = ok("Account created successfully", code=201, user=_auth_payload(user))
    issue_session(response, user)
    return response, code
