from datetime import datetime, date

from flask import Blueprint, request, g, current_app
from sqlalchemy.exc import IntegrityError

from talenthr.models import db, Attendance, Employee, User, ADMIN_ROLES
from talenthr.models.attendance import ATTENDANCE_STATUSES
from talenthr.utils.decorators import token_required, role_required
from talenthr.utils.helpers import parse_date, parse_datetime, to_int
from talenthr.utils.responses import ok, fail
from talenthr.utils.scoping import scope_query, requested_user_param
from talenthr.utils.validators import require_fields, check_choice

attendance_bp = Blueprint("attendance", __name__)


# -----------------------------
# Helpers
# -----------------------------
def _now():
    # wall-clock time of the server
    return datetime.now().replace(microsecond=0)


def status_for_clock_in(clock_in: datetime, late_hour: int) -> str:
    return "Late" if clock_in.hour >= late_hour else "Present"


def month_range(month: int, year: int):
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def summarize(records):
    total = len(records)
    counts = {s: 0 for s in ATTENDANCE_STATUSES}
    for r in records:
        counts[r.status] = counts.get(r.status, 0) + 1
    minutes = sum(r.work_duration or 0 for r in records)
    worked_days = len([r for r in records if r.work_duration])
    attended = counts["Present"] + counts["Late"] + counts["Half-day"]

    return {
        "totalDays": total,
        "presentDays": counts["Present"],
        "absentDays": counts["Absent"],
        "lateDays": counts["Late"],
        "halfDays": counts["Half-day"],
        "totalWorkHours": round(minutes / 60, 1),
        "averageWorkHours": round(minutes / 60 / worked_days, 1) if worked_days else 0,
        "attendanceRate": round(attended / total * 100, 1) if total else 0,
    }


# -----------------------------
# 1) Clock in / out
# -----------------------------
@attendance_bp.route("/clock-in", methods=["POST"])
@token_required
def clock_in():
    emp = Employee.query.filter_by(user_id=g.user.id).first()
    if not emp:
        return fail("Employee record not found", 404)

    now = _now()
    today = now.date()
    if Attendance.query.filter_by(user_id=g.user.id, date=today).first():
        return fail("You have already clocked in today", 409)

    data = request.get_json(silent=True) or {}
    row = Attendance(
        user_id=g.user.id,
        employee_id=emp.id,
        company_id=g.user.company_id,
        date=today,
        clock_in=now,
        status=status_for_clock_in(now, current_app.config["LATE_HOUR"]),
        notes=data.get("notes"),
    )
    try:
        db.session.add(row)
        db.session.commit()
    except IntegrityError:
        # concurrent clock-in hit the (user, date) constraint
        db.session.rollback()
        return fail("You have already clocked in today", 409)

    return ok("Clocked in successfully", data=row.to_dict(), code=201)


@attendance_bp.route("/clock-out", methods=["POST"])
@token_required
def clock_out():
    now = _now()
    row = Attendance.query.filter_by(user_id=g.user.id, date=now.date()).first()
    if not row:
        return fail("You have not clocked in today", 404)
    if row.clock_out:
        return fail("You have already clocked out today", 409)

    data = request.get_json(silent=True) or {}
    row.clock_out = now
    row.recalc_work_duration()
    if data.get("notes"):
        row.notes = data["notes"]
    db.session.commit()

    return ok("Clocked out successfully", data=row.to_dict())


# -----------------------------
# 2) List / manual entry
# -----------------------------
@attendance_bp.route("", methods=["GET"])
@token_required
def list_attendance():
    requested, err = requested_user_param("employeeId")
    if err:
        return err
    try:
        start = parse_date(request.args.get("startDate"))
        end = parse_date(request.args.get("endDate"))
    except ValueError as e:
        return fail(str(e), 400)

    q, err = scope_query(Attendance.query, Attendance, g.user, requested_user_id=requested)
    if err:
        return err

    if start:
        q = q.filter(Attendance.date >= start)
    if end:
        q = q.filter(Attendance.date <= end)

    rows = q.order_by(Attendance.date.desc()).limit(500).all()
    return ok("Attendance records retrieved", data=[r.to_dict() for r in rows])


@attendance_bp.route("", methods=["POST"])
@token_required
@role_required(ADMIN_ROLES, "Only admins and HR managers can create attendance records")
def create_attendance():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, ["employeeId", "date", "clockIn"], "employeeId, date and clockIn are required")
    if err:
        return err

    try:
        att_date = parse_date(data["date"])
        clock_in_at = parse_datetime(data["clockIn"])
        clock_out_at = parse_datetime(data.get("clockOut"))
    except ValueError as e:
        return fail(str(e), 400)

    status = data.get("status") or "Present"
    err = check_choice(status, ATTENDANCE_STATUSES, "status")
    if err:
        return err
    if clock_out_at and clock_out_at <= clock_in_at:
        return fail("clockOut must be after clockIn", 400)

    target = db.session.get(User, to_int(data["employeeId"]))
    if not target or target.company_id != g.user.company_id:
        return fail("Employee not found in your company", 404)
    emp = Employee.query.filter_by(user_id=target.id).first()
    if not emp:
        return fail("Employee record not found", 404)

    if Attendance.query.filter_by(user_id=target.id, date=att_date).first():
        return fail("Attendance record already exists for this date", 409)

    row = Attendance(
        user_id=target.id,
        employee_id=emp.id,
        company_id=g.user.company_id,
        date=att_date,
        clock_in=clock_in_at,
        clock_out=clock_out_at,
        status=status,
        notes=data.get("notes"),
    )
    row.recalc_work_duration()
    try:
        db.session.add(row)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail("Attendance record already exists for this date", 409)

    return ok("Attendance record created", data=row.to_dict(), code=201)


# -----------------------------
# 3) Summary
# -----------------------------
@attendance_bp.route("/summary", methods=["GET"])
@token_required
def attendance_summary():
    today = date.today()
    month = to_int(request.args.get("month"), today.month)
    year = to_int(request.args.get("year"), today.year)
    if not 1 <= month <= 12:
        return fail("month must be between 1 and 12", 400)

    requested, err = requested_user_param("employeeId")
    if err:
        return err
    q, err = scope_query(Attendance.query, Attendance, g.user, requested_user_id=requested)
    if err:
        return err

    start, end = month_range(month, year)
    rows = q.filter(Attendance.date >= start, Attendance.date < end).all()

    summary = summarize(rows)
    summary.update({"month": month, "year": year})
    return ok("Attendance summary retrieved", data=summary)
