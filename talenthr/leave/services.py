from datetime import date
from typing import List, Optional

from talenthr.models import db
from talenthr.models.employee import Employee
from talenthr.leave.models import LeaveType, LeaveBalance, LeaveRequest, DEFAULT_LEAVE_TYPES
from talenthr.utils.helpers import utcnow


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def get_employee(user_id: int) -> Optional[Employee]:
    return Employee.query.filter_by(user_id=user_id).first()


def seed_default_leave_types(company_id: int) -> List[LeaveType]:
    created = []
    for defaults in DEFAULT_LEAVE_TYPES:
        leave_type = LeaveType(company_id=company_id, **defaults)
        db.session.add(leave_type)
        created.append(leave_type)
    return created


def get_or_create_balance(emp: Employee, leave_type: LeaveType, year: int) -> LeaveBalance:
    balance = LeaveBalance.query.filter_by(
        user_id=emp.user_id, leave_type_id=leave_type.id, year=year
    ).first()
    if balance:
        return balance

    balance = LeaveBalance(
        user_id=emp.user_id,
        employee_id=emp.id,
        leave_type_id=leave_type.id,
        year=year,
        total_days=leave_type.annual_quota or 0,
        used_days=0,
        pending_days=0,
        carried_forward=0,
    )
    db.session.add(balance)
    db.session.flush()
    return balance


def ensure_balances(emp: Employee, year: int) -> List[LeaveBalance]:
    """Balances for every active leave type of the employee's company, created on first read."""
    types = LeaveType.query.filter_by(company_id=emp.company_id, is_active=True).order_by(LeaveType.name).all()
    return [get_or_create_balance(emp, lt, year) for lt in types]


def _balance_for(req: LeaveRequest) -> Optional[LeaveBalance]:
    return LeaveBalance.query.filter_by(
        user_id=req.user_id, leave_type_id=req.leave_type_id, year=req.start_date.year
    ).first()


def decide(req: LeaveRequest, approver_id: int, approve: bool, comments: Optional[str] = None) -> LeaveRequest:
    """Approve or reject a pending request and move its days out of pending."""
    req.status = "approved" if approve else "rejected"
    req.approved_by = approver_id
    req.approved_at = utcnow()
    if comments is not None:
        req.approver_comments = comments

    balance = _balance_for(req)
    if balance:
        balance.pending_days = max((balance.pending_days or 0) - req.total_days, 0)
        if approve:
            balance.used_days = (balance.used_days or 0) + req.total_days
    return req


def cancel(req: LeaveRequest) -> LeaveRequest:
    req.status = "cancelled"
    balance = _balance_for(req)
    if balance:
        balance.pending_days = max((balance.pending_days or 0) - req.total_days, 0)
    return req
