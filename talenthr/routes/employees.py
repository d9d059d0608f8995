from flask import Blueprint, request, g, current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from talenthr.models import db, User, Employee, Department, ADMIN_ROLES
from talenthr.models.employee import EMPLOYMENT_TYPES, EMPLOYEE_STATUSES
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.helpers import parse_date, to_int, utcnow
from talenthr.utils.responses import ok, fail
from talenthr.utils.validators import require_fields, check_choice, check_range, first_error

employees_bp = Blueprint("employees", __name__)

EMPLOYEE_VIEW_ROLES = ("company_admin", "hr_manager", "manager")

# request key -> column
EMPLOYEE_FIELDS = {
    "position": "position",
    "employmentType": "employment_type",
    "salary": "salary",
    "workLocation": "work_location",
    "phone": "phone",
    "address": "address",
    "emergencyContact": "emergency_contact",
    "status": "status",
    "notes": "notes",
}


def _validate(data):
    return first_error(
        check_choice(data.get("employmentType"), EMPLOYMENT_TYPES, "employmentType"),
        check_choice(data.get("status"), EMPLOYEE_STATUSES, "status"),
        check_range(data.get("salary"), 0, 1e9, "salary"),
    )


def _resolve_refs(emp, data):
    """Department and manager must belong to the caller's company."""
    company_id = g.user.company_id
    if "departmentId" in data:
        dept_id = data["departmentId"]
        if dept_id in (None, ""):
            emp.department_id = None
        else:
            dept = db.session.get(Department, to_int(dept_id))
            if not dept or dept.company_id != company_id:
                return fail("Invalid department", 400)
            emp.department_id = dept.id

    if "managerId" in data:
        manager_id = data["managerId"]
        if manager_id in (None, ""):
            emp.manager_id = None
        else:
            manager = db.session.get(User, to_int(manager_id))
            if not manager or manager.company_id != company_id:
                return fail("Invalid manager", 400)
            if manager.id == emp.user_id:
                return fail("An employee cannot be their own manager", 400)
            emp.manager_id = manager.id
    return None


def _apply(emp, data):
    for key, attr in EMPLOYEE_FIELDS.items():
        if key in data:
            setattr(emp, attr, data[key])
    if data.get("hireDate"):
        emp.hire_date = parse_date(data["hireDate"])


def _can_view(emp):
    if emp.user_id == g.user.id or g.user.role in ADMIN_ROLES:
        return True
    return g.user.role == "manager" and emp.manager_id == g.user.id


@employees_bp.route("", methods=["GET"])
@token_required
@role_required(EMPLOYEE_VIEW_ROLES, "You don't have permission to view employees")
def list_employees():
    q = Employee.query.filter(Employee.company_id == g.user.company_id).join(User, User.id == Employee.user_id)

    if g.user.role == "manager":
        q = q.filter(Employee.manager_id == g.user.id)
    if request.args.get("departmentId"):
        q = q.filter(Employee.department_id == to_int(request.args["departmentId"]))
    if request.args.get("status"):
        q = q.filter(Employee.status == request.args["status"])

    search = (request.args.get("search") or "").strip().lower()
    if search:
        q = q.filter(or_(
            func.lower(User.name).like(f"%{search}%"),
            func.lower(User.email).like(f"%{search}%"),
            func.lower(Employee.employee_code).like(f"%{search}%"),
            func.lower(Employee.position).like(f"%{search}%"),
        ))

    rows = q.order_by(Employee.created_at.desc(), Employee.id.desc()).all()
    return ok("Employees retrieved", data=[e.to_dict() for e in rows])


@employees_bp.route("", methods=["POST"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to create employees")
def create_employee():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["userId"], "User ID is required")
    if err:
        return err
    err = _validate(data)
    if err:
        return err

    user = db.session.get(User, to_int(data["userId"]))
    if not user:
        return fail("User not found", 404)
    if user.company_id != g.user.company_id:
        return fail("User does not belong to your company", 403)
    if Employee.query.filter_by(user_id=user.id).first():
        return fail("Employee record already exists for this user", 409)

    company = g.user.company
    emp = Employee(
        user_id=user.id,
        company_id=company.id,
        employee_code=Employee.next_code(company),
        hire_date=utcnow().date(),
        employment_type="full-time",
        status="active",
    )
    err = _resolve_refs(emp, data)
    if err:
        return err
    try:
        _apply(emp, data)
    except ValueError as e:
        return fail(str(e), 400)

    try:
        db.session.add(emp)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("Employee record already exists for this user", 409)

    current_app.logger.info("Employee %s created for user %s", emp.employee_code, user.id)
    return ok("Employee created successfully", data=emp.to_dict(), code=201)


def _load_employee(employee_id):
    emp = db.session.get(Employee, employee_id)
    if not emp:
        return None, fail("Employee not found", 404)
    if emp.company_id != g.user.company_id:
        return None, fail("You don't have permission to access this employee", 403)
    return emp, None


@employees_bp.route("/<int:employee_id>", methods=["GET"])
@token_required
def get_employee(employee_id):
    emp, err = _load_employee(employee_id)
    if err:
        return err
    if not _can_view(emp):
        return fail("You don't have permission to view this employee", 403)
    return ok("Employee retrieved", data=emp.to_dict())


@employees_bp.route("/<int:employee_id>", methods=["PUT"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to update employees")
def update_employee(employee_id):
    emp, err = _load_employee(employee_id)
    if err:
        return err

    data = request.get_json(silent=True) or {}
    err = _validate(data) or _resolve_refs(emp, data)
    if err:
        db.session.rollback()
        return err
    try:
        _apply(emp, data)
    except ValueError as e:
        db.session.rollback()
        return fail(str(e), 400)

    db.session.commit()
    return ok("Employee updated successfully", data=emp.to_dict())


@employees_bp.route("/<int:employee_id>", methods=["DELETE"])
@token_required
@role_required(ADMIN_ROLES, "You don't have permission to delete employees")
def delete_employee(employee_id):
    emp, err = _load_employee(employee_id)
    if err:
        return err
    if emp.user_id == g.user.id:
        return fail("You cannot terminate your own employee record", 400)

    emp.status = "terminated"
    db.session.commit()
    return ok("Employee terminated successfully")
