from flask import Blueprint, request, g, current_app
from sqlalchemy import func

from talenthr.models import db, User, Employee, Department, ADMIN_ROLES
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.helpers import to_int
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import require_fields, check_choice, check_range, first_error

departments_bp = Blueprint("departments", __name__)

DEPARTMENT_STATUSES = ("active", "inactive")


def _employee_counts(company_id):
    rows = db.session.query(Employee.department_id, func.count(Employee.id)).filter(
        Employee.company_id == company_id,
        Employee.department_id.isnot(None),
        Employee.status == "active",
    ).group_by(Employee.department_id).all()
    return dict(rows)


def _name_taken(company_id, name, exclude_id=None):
    q = Department.query.filter(
        Department.company_id == company_id,
        func.lower(Department.name) == name.lower(),
    )
    if exclude_id is not None:
        q = q.filter(Department.id != exclude_id)
    return q.first() is not None


def _resolve_refs(dept, data):
    company_id = g.user.company_id
    if "parentDepartmentId" in data:
        parent_id = data["parentDepartmentId"]
        if parent_id in (None, ""):
            dept.parent_department_id = None
        else:
            parent_id = to_int(parent_id)
            if dept.id is not None and parent_id == dept.id:
                return fail("Department cannot be its own parent", 400)
            parent = db.session.get(Department, parent_id)
            if not parent or parent.company_id != company_id:
                return fail("Invalid parent department", 400)
            dept.parent_department_id = parent.id

    if "managerId" in data:
        manager_id = data["managerId"]
        if manager_id in (None, ""):
            dept.manager_id = None
        else:
            manager = db.session.get(User, to_int(manager_id))
            if not manager or manager.company_id != company_id:
                return fail("Invalid manager", 400)
            dept.manager_id = manager.id
    return None


def _apply(dept, data):
    if "code" in data:
        dept.code = (data["code"] or "").strip().upper() or None
    for key in ("description", "budget", "location", "status"):
        if key in data:
            setattr(dept, key, data[key])


@departments_bp.route("", methods=["GET"])
@token_required
def list_departments():
    q = Department.query.filter_by(company_id=g.user.company_id)
    if request.args.get("status"):
        q = q.filter(Department.status == request.args["status"])

    counts = _employee_counts(g.user.company_id)
    rows = q.order_by(Department.name.asc()).all()
    return ok("Departments retrieved", data=[d.to_dict(employee_count=counts.get(d.id, 0)) for d in rows])


@departments_bp.route("", methods=["POST"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to create departments")
def create_department():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["name"], "Department name is required")
    if err:
        return err
    err = first_error(
        check_choice(data.get("status"), DEPARTMENT_STATUSES, "status"),
        check_range(data.get("budget"), 0, 1e12, "budget"),
    )
    if err:
        return err

    name = str(data["name"]).strip()
    if _name_taken(g.user.company_id, name):
        return fail("Department with this name already exists", 409)

    dept = Department(company_id=g.user.company_id, name=name, status="active")
    err = _resolve_refs(dept, data)
    if err:
        return err
    _apply(dept, data)

    db.session.add(dept)
    db.session.commit()
    current_app.logger.info("Department %s created in company %s", dept.name, dept.company_id)
    return ok("Department created successfully", data=dept.to_dict(employee_count=0), code=201)


def _load_department(department_id):
    dept = db.session.get(Department, department_id)
    if not dept:
        return None, fail("Department not found", 404)
    if dept.company_id != g.user.company_id:
        return None, fail("You don't have permission to access this department", 403)
    return dept, None


@departments_bp.route("/<int:department_id>", methods=["GET"])
@token_required
def get_department(department_id):
    dept, err = _load_department(department_id)
    if err:
        return err
    count = _employee_counts(dept.company_id).get(dept.id, 0)
    return ok("Department retrieved", data=dept.to_dict(employee_count=count))


@departments_bp.route("/<int:department_id>", methods=["PUT"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to update departments")
def update_department(department_id):
    dept, err = _load_department(department_id)
    if err:
        return err

    data = request.get_json(silent=True) or {}
    err = first_error(
        check_choice(data.get("status"), DEPARTMENT_STATUSES, "status"),
        check_range(data.get("budget"), 0, 1e12, "budget"),
    )
    if err:
        return err

    if "name" in data:
        name = str(data["name"] or "").strip()
        if not name:
            return fail("Department name is required", 400)
        if _name_taken(dept.company_id, name, exclude_id=dept.id):
            return fail("Department with this name already exists", 409)
        dept.name = name

    err = _resolve_refs(dept, data)
    if err:
        db.session.rollback()
        return err
    _apply(dept, data)

    db.session.commit()
    count = _employee_counts(dept.company_id).get(dept.id, 0)
    return ok("Department updated successfully", data=dept.to_dict(employee_count=count))


@departments_bp.route("/<int:department_id>", methods=["DELETE"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to delete departments")
def delete_department(department_id):
    dept, err = _load_department(department_id)
    if err:
        return err

    active_employees = Employee.query.filter_by(department_id=dept.id, status="active").count()
    if active_employees:
        return fail(
            f"Cannot delete department. It has {active_employees} active employee(s). "
            "Please reassign them first.",
            400,
        )

    active_children = Department.query.filter_by(parent_department_id=dept.id, status="active").count()
    if active_children:
        return fail(
            f"Cannot delete department. It has {active_children} active sub-department(s). "
            "Please reassign or delete them first.",
            400,
        )

    dept.status = "inactive"
    db.session.commit()
    current_app.logger.info("Department %s deactivated", dept.id)
    return ok("Department deleted successfully")
