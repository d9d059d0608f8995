from flask import g, request

from talenthr.models import db, Employee, ADMIN_ROLES
from talenthr.utils.responses import fail


def enforce_company_match(resource_company_id):
    """
    Ensure resource belongs to the caller's company.
    Return None if allowed, else a JSON error response.
    """
    user = g.get("user")
    my_company_id = getattr(user, "company_id", None)
    if my_company_id is None or resource_company_id != my_company_id:
        return fail("Cross-company access blocked", 403)
    return None


def team_user_ids(manager):
    """User ids of the manager's direct reports."""
    rows = db.session.query(Employee.user_id).filter(
        Employee.company_id == manager.company_id,
        Employee.manager_id == manager.id,
    ).all()
    return [r[0] for r in rows]


def is_manager_of(manager, user_id):
    return db.session.query(Employee.id).filter(
        Employee.company_id == manager.company_id,
        Employee.manager_id == manager.id,
        Employee.user_id == user_id,
    ).first() is not None


def visible_user_ids(user):
    """
    Users whose records the caller may read.
      - company_admin / hr_manager: None (whole company)
      - manager: direct reports + self
      - everyone else: self
    """
    if user.role in ADMIN_ROLES:
        return None
    if user.role == "manager":
        return team_user_ids(user) + [user.id]
    return [user.id]


def can_view_user(viewer, user_id):
    ids = visible_user_ids(viewer)
    return ids is None or user_id in ids


def scope_query(query, model, user, requested_user_id=None, user_column="user_id"):
    """
    Narrow `query` on `model` to the caller's company and visible users.
    Returns (query, None) or (None, error_response) when requested_user_id is out of reach.
    """
    column = getattr(model, user_column)
    query = query.filter(model.company_id == user.company_id)

    ids = visible_user_ids(user)
    if requested_user_id is not None:
        if ids is not None and requested_user_id not in ids:
            return None, fail("You don't have permission to view this employee's records", 403)
        return query.filter(column == requested_user_id), None

    if ids is not None:
        query = query.filter(column.in_(ids))
    return query, None


def requested_user_param(name="employeeId"):
    """Integer user id from the query string. Returns (user_id, error_response)."""
    raw = request.args.get(name)
    if raw in (None, ""):
        return None, None
    try:
        return int(raw), None
    except ValueError:
        return None, fail(f"{name} must be an integer", 400)
