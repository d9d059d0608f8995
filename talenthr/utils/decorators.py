from functools import wraps

from flask import request, g, current_app, after_this_request

from talenthr.models import db, User
from talenthr.utils.auth_utils import (
    ACCESS_COOKIE, REFRESH_COOKIE,
    verify_access_token, verify_refresh_token,
    issue_session, clear_auth_cookies,
)
from talenthr.utils.responses import fail


def _unauthorized(message):
    response, code = fail(message, 401)
    clear_auth_cookies(response)
    return response, code


def _load_user(user_id):
    return db.session.get(User, user_id)


def token_required(f):
    """
    Resolves the accessToken cookie to g.user.
    A missing access token is 401. An expired or invalid one is renewed from the refreshToken cookie;
    the new pair is written onto the outgoing response.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        access_token = request.cookies.get(ACCESS_COOKIE)
        refresh_token = request.cookies.get(REFRESH_COOKIE)

        if not access_token:
            return fail("Not authenticated", 401)

        data = verify_access_token(access_token)
        if data:
            user = _load_user(data["user_id"])
            if not user:
                current_app.logger.warning("Auth failed: user %s not found", data["user_id"])
                return _unauthorized("User not found")
        else:
            refresh_data = verify_refresh_token(refresh_token)
            user = _load_user(refresh_data["user_id"]) if refresh_data else None
            if not user:
                return _unauthorized("Session expired. Please login again.")

            @after_this_request
            def _renew(response):
                return issue_session(response, user)

        g.user = user
        return f(*args, **kwargs)
    return decorated


def role_required(allowed_roles, message="Permission denied"):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.user.role not in allowed_roles:
                return fail(message, 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
