from datetime import date, datetime

from flask import Blueprint, request, g

from talenthr.models import (
    User, Employee, Department, Attendance, Goal, PerformanceReview,
    JobPosting, LeaveRequest, ADMIN_ROLES,
)
from talenthr.models.performance import GOAL_STATUSES
from talenthr.leave.models import LEAVE_STATUSES
from talenthr.routes.attendance import summarize, month_range
from talenthr.utils.decorators import token_required
from talenthr.utils.helpers import to_int
from talenthr.utils.responses import ok, fail
from talenthr.utils.scoping import scope_query, requested_user_param

reports_bp = Blueprint("reports", __name__)


@reports_bp.route("/overview", methods=["GET"])
@token_required
def overview():
    user = g.user
    today = datetime.now().date()

    if user.role in ADMIN_ROLES:
        cid = user.company_id
        data = {
            "totalUsers": User.query.filter_by(company_id=cid).count(),
            "activeEmployees": Employee.query.filter_by(company_id=cid, status="active").count(),
            "departments": Department.query.filter_by(company_id=cid, status="active").count(),
            "pendingLeaves": LeaveRequest.query.filter_by(company_id=cid, status="pending").count(),
            "openJobs": JobPosting.query.filter_by(company_id=cid, status="published").count(),
            "presentToday": Attendance.query.filter(
                Attendance.company_id == cid,
                Attendance.date == today,
                Attendance.status.in_(("Present", "Late", "Half-day")),
            ).count(),
        }
        return ok("Overview retrieved", data=data)

    goals = Goal.query.filter_by(user_id=user.id)
    leaves = LeaveRequest.query.filter_by(user_id=user.id)
    data = {
        "totalGoals": goals.count(),
        "completedGoals": goals.filter(Goal.status == "completed").count(),
        "pendingLeaves": leaves.filter(LeaveRequest.status == "pending").count(),
        "approvedLeaves": leaves.filter(LeaveRequest.status == "approved").count(),
        "clockedInToday": Attendance.query.filter_by(user_id=user.id, date=today).first() is not None,
    }
    return ok("Overview retrieved", data=data)


@reports_bp.route("/attendance", methods=["GET"])
@token_required
def attendance_report():
    now = datetime.now()
    month = to_int(request.args.get("month"), now.month)
    year = to_int(request.args.get("year"), now.year)
    if not 1 <= month <= 12:
        return fail("Month must be between 1 and 12", 400)

    requested, err = requested_user_param("employeeId")
    if err:
        return err
    q, err = scope_query(Attendance.query, Attendance, g.user, requested)
    if err:
        return err

    start, end = month_range(month, year)
    records = q.filter(Attendance.date >= start, Attendance.date < end).all()

    data = summarize(records)
    data.update({"month": month, "year": year, "employees": len({r.user_id for r in records})})
    return ok("Attendance report retrieved", data=data)


@reports_bp.route("/leaves", methods=["GET"])
@token_required
def leave_report():
    year = to_int(request.args.get("year"), datetime.now().year)

    requested, err = requested_user_param("employeeId")
    if err:
        return err
    q, err = scope_query(LeaveRequest.query, LeaveRequest, g.user, requested)
    if err:
        return err
    rows = q.filter(LeaveRequest.start_date >= date(year, 1, 1), LeaveRequest.start_date < date(year + 1, 1, 1)).all()

    by_status = {s: 0 for s in LEAVE_STATUSES}
    by_type = {}
    for r in rows:
        by_status[r.status] = by_status.get(r.status, 0) + 1
        name = r.leave_type.name if r.leave_type else "Unknown"
        entry = by_type.setdefault(name, {"requests": 0, "days": 0})
        entry["requests"] += 1
        if r.status == "approved":
            entry["days"] += r.total_days or 0

    decided = by_status["approved"] + by_status["rejected"]
    data = {
        "year": year,
        "totalRequests": len(rows),
        "byStatus": by_status,
        "byLeaveType": by_type,
        "approvedDays": sum(r.total_days or 0 for r in rows if r.status == "approved"),
        "approvalRate": round(by_status["approved"] / decided * 100, 1) if decided else 0,
    }
    return ok("Leave report retrieved", data=data)


@reports_bp.route("/performance", methods=["GET"])
@token_required
def performance_report():
    requested, err = requested_user_param("employeeId")
    if err:
        return err

    goals_q, err = scope_query(Goal.query, Goal, g.user, requested)
    if err:
        return err
    reviews_q, err = scope_query(PerformanceReview.query, PerformanceReview, g.user, requested,
                                 user_column="employee_id")
    if err:
        return err

    goals = goals_q.all()
    by_status = {s: 0 for s in GOAL_STATUSES}
    for goal in goals:
        by_status[goal.status] = by_status.get(goal.status, 0) + 1

    reviews = reviews_q.filter(PerformanceReview.status.in_(("submitted", "completed"))).all()
    ratings = [r.overall_rating for r in reviews if r.overall_rating is not None]

    data = {
        "totalGoals": len(goals),
        "goalsByStatus": by_status,
        "averageProgress": round(sum(x.progress or 0 for x in goals) / len(goals), 1) if goals else 0,
        "totalReviews": len(reviews),
        "averageRating": round(sum(ratings) / len(ratings), 1) if ratings else 0,
    }
    return ok("Performance report retrieved", data=data)
