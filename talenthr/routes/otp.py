from datetime import timedelta

from flask import Blueprint, request, current_app
from sqlalchemy import or_

from talenthr.models import db, OTP, OTP_PURPOSES
from talenthr.utils.auth_utils import generate_otp_code, hash_password, verify_password
from talenthr.utils.email_utils import send_otp_email
from talenthr.utils.helpers import utcnow
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import normalize_email, check_email, check_choice, first_error

otp_bp = Blueprint("otp", __name__)


def purge_expired_otps(now=None):
    """
    Physically remove dead codes: unverified ones past expiry, and verified ones
    past expiry that are also outside the signup window.
    """
    now = now or utcnow()
    window = timedelta(minutes=current_app.config["SIGNUP_OTP_WINDOW_MINUTES"])
    return OTP.query.filter(
        OTP.expires_at < now,
        or_(OTP.verified.is_(False), OTP.created_at < now - window),
    ).delete(synchronize_session=False)


def _is_production():
    return current_app.config.get("ENV_NAME") == "production"


@otp_bp.route("/send", methods=["POST"])
def send_otp():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    purpose = data.get("purpose")

    err = first_error(
        check_email(email),
        fail("purpose is required", 400) if not purpose else None,
        check_choice(purpose, OTP_PURPOSES, "purpose"),
    )
    if err:
        return err

    minutes = current_app.config["OTP_EXPIRES_MINUTES"]
    code = generate_otp_code()

    try:
        purge_expired_otps()
        # only the newest code for (email, purpose) stays usable
        OTP.query.filter_by(email=email, purpose=purpose, verified=False).delete()
        otp = OTP(
            email=email,
            code_hash=hash_password(code),
            purpose=purpose,
            type=OTP.type_for(purpose),
            expires_at=utcnow() + timedelta(minutes=minutes),
            attempts=0,
            max_attempts=current_app.config["OTP_MAX_ATTEMPTS"],
        )
        db.session.add(otp)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create OTP")
        return fail("Failed to send OTP", 500)

    sent = send_otp_email(email, code, purpose, minutes)
    if not sent and _is_production():
        return fail("Failed to send OTP email. Please try again.", 500)

    extra = {"expiresIn": minutes * 60}
    if not _is_production():
        extra["otp"] = code
    return ok("OTP sent successfully", **extra)


@otp_bp.route("/verify", methods=["POST"])
def verify_otp():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    purpose = data.get("purpose")
    code = str(data.get("otp") or "").strip()

    err = first_error(
        check_email(email),
        check_choice(purpose, OTP_PURPOSES, "purpose") if purpose else fail("purpose is required", 400),
        fail("OTP must be 6 digits", 400) if not (len(code) == 6 and code.isdigit()) else None,
    )
    if err:
        return err

    otp = (OTP.query
           .filter_by(email=email, purpose=purpose, verified=False)
           .order_by(OTP.created_at.desc(), OTP.id.desc())
           .first())
    if not otp:
        return fail("OTP not found or already used", 400)

    if otp.is_expired():
        return fail("OTP has expired. Please request a new one.", 400)

    if otp.attempts_exhausted:
        return fail("Maximum verification attempts exceeded. Please request a new OTP.", 400)

    if not verify_password(otp.code_hash, code):
        otp.attempts += 1
        db.session.commit()
        return fail("Invalid OTP code", 400, remainingAttempts=otp.remaining_attempts)

    otp.verified = True
    otp.verified_at = utcnow()
    db.session.commit()
    return ok("OTP verified successfully", verified=True)
