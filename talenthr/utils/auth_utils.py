# talenthr/utils/auth_utils.py
import datetime
import hashlib
import secrets
import string

import jwt
from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def hash_password(password):
    return generate_password_hash(password)


def verify_password(hash, password):
    return check_password_hash(hash, password)


# -------------------------
# JWT pair
# -------------------------
def _encode(user, secret, lifetime, token_type):
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iat": now,
        "exp": now + datetime.timedelta(seconds=lifetime),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def generate_access_token(user):
    cfg = current_app.config
    return _encode(user, cfg["JWT_SECRET"], cfg["JWT_EXPIRES_IN"], "access")


def generate_refresh_token(user):
    cfg = current_app.config
    return _encode(user, cfg["JWT_REFRESH_SECRET"], cfg["JWT_REFRESH_EXPIRES_IN"], "refresh")


def generate_token_pair(user):
    return generate_access_token(user), generate_refresh_token(user)


def _decode(token, secret, token_type):
    """Payload dict, or None when the token is missing, malformed, expired or of the wrong type."""
    if not token or token.lower() in ("null", "undefined"):
        return None
    try:
        data = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        current_app.logger.debug("%s token expired", token_type)
        return None
    except jwt.InvalidTokenError as e:
        current_app.logger.info("Rejected %s token: %s", token_type, e)
        return None
    if data.get("type") != token_type or "user_id" not in data:
        return None
    return data


def verify_access_token(token):
    return _decode(token, current_app.config["JWT_SECRET"], "access")


def verify_refresh_token(token):
    return _decode(token, current_app.config["JWT_REFRESH_SECRET"], "refresh")


# -------------------------
# Cookies
# -------------------------
def _cookie_kwargs(max_age):
    return {
        "max_age": max_age,
        "httponly": True,
        "secure": bool(current_app.config.get("COOKIE_SECURE")),
        "samesite": "Lax",
        "path": "/",
    }


def set_auth_cookies(response, access_token, refresh_token):
    cfg = current_app.config
    response.set_cookie(ACCESS_COOKIE, access_token, **_cookie_kwargs(cfg["JWT_EXPIRES_IN"]))
    response.set_cookie(REFRESH_COOKIE, refresh_token, **_cookie_kwargs(cfg["JWT_REFRESH_EXPIRES_IN"]))
    return response


def clear_auth_cookies(response):
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name, path="/", httponly=True,
            secure=bool(current_app.config.get("COOKIE_SECURE")), samesite="Lax",
        )
    return response


def issue_session(response, user):
    access_token, refresh_token = generate_token_pair(user)
    return set_auth_cookies(response, access_token, refresh_token)


# -------------------------
# Opaque secrets
# -------------------------
def generate_invitation_token():
    return secrets.token_hex(32)


def hash_token(raw_token):
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_otp_code(length=6):
    return "".join(secrets.choice(string.digits) for _ in range(length))
