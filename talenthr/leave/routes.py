from datetime import date

from flask import request, g, current_app
from sqlalchemy.exc import IntegrityError

from talenthr.leave import leave_bp
from talenthr.leave.models import LeaveType, LeaveRequest, DEFAULT_LEAVE_COLOR
from talenthr.leave.services import get_employee, get_or_create_balance, ensure_balances, decide, cancel, inclusive_days
from talenthr.models import db, Employee, ADMIN_ROLES
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.helpers import parse_date, to_int
from talenthr.utils.responses import ok, fail
from talenthr.utils.scoping import scope_query, is_manager_of, can_view_user, requested_user_param
from talenthr.utils.validators import require_fields, check_range

APPROVER_ROLES = ("company_admin", "hr_manager", "manager")


# ==============================================================================
# A) Leave Types
# ==============================================================================

@leave_bp.route("/leave-types", methods=["GET"])
@token_required
def list_leave_types():
    types = (LeaveType.query
             .filter_by(company_id=g.user.company_id, is_active=True)
             .order_by(LeaveType.name.asc())
             .all())
    return ok("Leave types retrieved", data=[t.to_dict() for t in types])


@leave_bp.route("/leave-types", methods=["POST"])
@token_required
@role_required(ADMIN_ROLES, "Only admins and HR managers can create leave types")
def create_leave_type():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["name", "code"], "Name and code are required")
    if err:
        return err
    quota = data.get("annualQuota", 0)
    err = check_range(quota, 0, 365, "annualQuota")
    if err:
        return err

    code = str(data["code"]).strip().upper()
    company_id = g.user.company_id
    if LeaveType.query.filter_by(company_id=company_id, code=code).first():
        return fail(f"Leave type with code '{code}' already exists", 409)

    leave_type = LeaveType(
        company_id=company_id,
        name=str(data["name"]).strip(),
        code=code,
        description=data.get("description"),
        annual_quota=float(quota),
        carry_forward=bool(data.get("carryForward", False)),
        max_carry_forward=data.get("maxCarryForward"),
        requires_approval=bool(data.get("requiresApproval", True)),
        color=data.get("color") or DEFAULT_LEAVE_COLOR,
        is_active=True,
    )
    try:
        db.session.add(leave_type)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail(f"Leave type with code '{code}' already exists", 409)

    return ok("Leave type created successfully", data=leave_type.to_dict(), code=201)


# ==============================================================================
# B) Leave Requests
# ==============================================================================

@leave_bp.route("/leaves", methods=["GET"])
@token_required
def list_leaves():
    requested, err = requested_user_param("employeeId")
    if err:
        return err
    q, err = scope_query(LeaveRequest.query, LeaveRequest, g.user, requested_user_id=requested)
    if err:
        return err

    status = request.args.get("status")
    if status:
        q = q.filter(LeaveRequest.status == status)
    try:
        start = parse_date(request.args.get("startDate"))
        end = parse_date(request.args.get("endDate"))
    except ValueError as e:
        return fail(str(e), 400)
    if start:
        q = q.filter(LeaveRequest.end_date >= start)
    if end:
        q = q.filter(LeaveRequest.start_date <= end)

    rows = q.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).limit(100).all()
    return ok("Leave requests retrieved", data=[r.to_dict() for r in rows])


@leave_bp.route("/leaves", methods=["POST"])
@token_required
def create_leave():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["leaveTypeId", "startDate", "endDate", "reason"])
    if err:
        return err

    reason = str(data["reason"]).strip()
    if not reason or len(reason) > 500:
        return fail("Reason is required and must be at most 500 characters", 400)

    try:
        start = parse_date(data["startDate"])
        end = parse_date(data["endDate"])
    except ValueError as e:
        return fail(str(e), 400)
    if end < start:
        return fail("End date must be on or after start date", 400)

    total_days = data.get("totalDays")
    if total_days is None:
        total_days = inclusive_days(start, end)
    err = check_range(total_days, 0.5, 366, "totalDays")
    if err:
        return err
    total_days = float(total_days)

    emp = get_employee(g.user.id)
    if not emp:
        return fail("Employee record not found", 404)

    leave_type = db.session.get(LeaveType, to_int(data["leaveTypeId"]))
    if not leave_type or leave_type.company_id != g.user.company_id or not leave_type.is_active:
        return fail("Invalid leave type", 400)

    balance = get_or_create_balance(emp, leave_type, start.year)
    if balance.available_days < total_days:
        db.session.commit()
        return fail(f"Insufficient leave balance. Available: {balance.available_days:g} days", 400)

    req = LeaveRequest(
        user_id=g.user.id,
        employee_id=emp.id,
        company_id=g.user.company_id,
        leave_type_id=leave_type.id,
        start_date=start,
        end_date=end,
        total_days=total_days,
        reason=reason,
        status="pending",
    )
    balance.pending_days = (balance.pending_days or 0) + total_days
    db.session.add(req)
    db.session.commit()

    return ok("Leave request submitted successfully", data=req.to_dict(), code=201)


@leave_bp.route("/leaves/<int:leave_id>", methods=["GET"])
@token_required
def get_leave(leave_id):
    req = db.session.get(LeaveRequest, leave_id)
    if not req or req.company_id != g.user.company_id:
        return fail("Leave request not found", 404)

    if not can_view_user(g.user, req.user_id):
        return fail("You don't have permission to view this leave request", 403)
    return ok("Leave request retrieved", data=req.to_dict())


@leave_bp.route("/leaves/<int:leave_id>", methods=["PUT"])
@token_required
def update_leave(leave_id):
    data = request.get_json(silent=True) or {}
    action = data.get("action")

    req = db.session.get(LeaveRequest, leave_id)
    if not req or req.company_id != g.user.company_id:
        return fail("Leave request not found", 404)

    if action in ("approve", "reject"):
        if g.user.role not in APPROVER_ROLES:
            return fail("You don't have permission to approve or reject leave requests", 403)
        if g.user.role == "manager" and not is_manager_of(g.user, req.user_id):
            return fail("You can only manage leave requests of your team members", 403)
        if req.status != "pending":
            return fail(f"Leave request is already {req.status}", 400)

        decide(req, g.user.id, approve=(action == "approve"), comments=data.get("comments"))
        db.session.commit()
        current_app.logger.info("Leave %s %s by user %s", req.id, req.status, g.user.id)
        return ok(f"Leave request {req.status} successfully", data=req.to_dict())

    if action == "cancel":
        if req.user_id != g.user.id:
            return fail("You can only cancel your own leave requests", 403)
        if req.status != "pending":
            return fail("Only pending leave requests can be cancelled", 400)

        cancel(req)
        db.session.commit()
        return ok("Leave request cancelled successfully", data=req.to_dict())

    return fail("Invalid action. Must be one of: approve, reject, cancel", 400)


# ==============================================================================
# C) Balances
# ==============================================================================

@leave_bp.route("/leaves/balance", methods=["GET"])
@token_required
def leave_balance():
    year = to_int(request.args.get("year"), date.today().year)
    requested, err = requested_user_param("employeeId")
    if err:
        return err

    target_user_id = g.user.id
    if requested and requested != g.user.id:
        allowed = g.user.role in ADMIN_ROLES or (
            g.user.role == "manager" and is_manager_of(g.user, requested)
        )
        if not allowed:
            return fail("You don't have permission to view this employee's leave balance", 403)
        target_user_id = requested

    emp = Employee.query.filter_by(user_id=target_user_id, company_id=g.user.company_id).first()
    if not emp:
        return fail("Employee record not found", 404)

    balances = ensure_balances(emp, year)
    db.session.commit()
    return ok("Leave balances retrieved", data=[b.to_dict() for b in balances], year=year)

