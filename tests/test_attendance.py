from datetime import datetime

import pytest

from talenthr.models import Attendance
from talenthr.routes.attendance import status_for_clock_in, summarize


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    clock = Clock(datetime(2025, 3, 10, 9, 0))
    monkeypatch.setattr("talenthr.routes.attendance._now", clock)
    return clock


def test_clock_in_before_late_hour_is_present(login, team, clock):
    resp = login(team["employee"]).post("/api/attendance/clock-in", json={"notes": "office"})

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["status"] == "Present"
    assert data["date"] == "2025-03-10"
    assert data["clockOut"] is None


def test_clock_in_at_late_hour_is_late(login, team, clock):
    clock.now = datetime(2025, 3, 10, 10, 0)
    resp = login(team["employee"]).post("/api/attendance/clock-in")
    assert resp.get_json()["data"]["status"] == "Late"


def test_second_clock_in_same_day_conflicts(login, team, clock):
    c = login(team["employee"])
    assert c.post("/api/attendance/clock-in").status_code == 201

    clock.now = datetime(2025, 3, 10, 13, 0)
    resp = c.post("/api/attendance/clock-in")

    assert resp.status_code == 409
    assert resp.get_json()["message"] == "You have already clocked in today"


def test_clock_in_needs_employee_record(factory, login, company, clock):
    uid = factory.user(company, "recruiter", email="nofile@acme.test", employee=False)
    resp = login(uid).post("/api/attendance/clock-in")
    assert resp.status_code == 404


def test_clock_out_records_duration_in_minutes(login, team, clock):
    c = login(team["employee"])
    c.post("/api/attendance/clock-in")

    clock.now = datetime(2025, 3, 10, 17, 30, 40)
    resp = c.post("/api/attendance/clock-out")

    assert resp.status_code == 200
    assert resp.get_json()["data"]["workDuration"] == 511


def test_clock_out_requires_clock_in(login, team, clock):
    resp = login(team["employee"]).post("/api/attendance/clock-out")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "You have not clocked in today"


def test_clock_out_twice_conflicts(login, team, clock):
    c = login(team["employee"])
    c.post("/api/attendance/clock-in")
    clock.now = datetime(2025, 3, 10, 18, 0)
    c.post("/api/attendance/clock-out")
    assert c.post("/api/attendance/clock-out").status_code == 409


def test_new_day_allows_new_clock_in(login, team, clock):
    c = login(team["employee"])
    c.post("/api/attendance/clock-in")
    clock.now = datetime(2025, 3, 11, 9, 0)
    assert c.post("/api/attendance/clock-in").status_code == 201


def _manual(c, user_id, day, clock_in="09:00", clock_out="17:00", status=None):
    payload = {
        "employeeId": user_id,
        "date": day,
        "clockIn": f"{day}T{clock_in}:00",
        "clockOut": f"{day}T{clock_out}:00" if clock_out else None,
    }
    if status:
        payload["status"] = status
    return c.post("/api/attendance", json=payload)


def test_manual_entry_by_hr(login, team):
    resp = _manual(login(team["hr"]), team["employee"], "2025-03-03")
    assert resp.status_code == 201
    assert resp.get_json()["data"]["workDuration"] == 480


def test_manual_entry_duplicate_conflicts(login, team):
    c = login(team["hr"])
    _manual(c, team["employee"], "2025-03-03")
    resp = _manual(c, team["employee"], "2025-03-03")
    assert resp.status_code == 409


def test_manual_entry_forbidden_for_manager(login, team):
    assert _manual(login(team["manager"]), team["employee"], "2025-03-03").status_code == 403


def test_manual_entry_rejects_bad_status(login, team):
    resp = _manual(login(team["admin"]), team["employee"], "2025-03-03", status="Sleeping")
    assert resp.status_code == 400


def test_list_is_scoped_by_role(login, team):
    hr = login(team["hr"])
    for uid in (team["employee"], team["outsider"], team["manager"]):
        _manual(hr, uid, "2025-03-03")

    own = login(team["employee"]).get("/api/attendance").get_json()["data"]
    assert {r["userId"] for r in own} == {team["employee"]}

    mine_and_team = login(team["manager"]).get("/api/attendance").get_json()["data"]
    assert {r["userId"] for r in mine_and_team} == {team["employee"], team["manager"]}

    everyone = hr.get("/api/attendance").get_json()["data"]
    assert len(everyone) == 3


def test_employee_cannot_read_someone_else(login, team):
    resp = login(team["employee"]).get(f"/api/attendance?employeeId={team['outsider']}")
    assert resp.status_code == 403


def test_manager_cannot_read_outside_team(login, team):
    resp = login(team["manager"]).get(f"/api/attendance?employeeId={team['outsider']}")
    assert resp.status_code == 403


def test_summary_for_month(login, team):
    hr = login(team["hr"])
    _manual(hr, team["employee"], "2025-03-03")
    _manual(hr, team["employee"], "2025-03-04", clock_in="10:15", clock_out="18:15", status="Late")
    _manual(hr, team["employee"], "2025-03-05", clock_out=None, status="Absent")
    _manual(hr, team["employee"], "2025-04-01")

    resp = login(team["employee"]).get("/api/attendance/summary?month=3&year=2025")

    data = resp.get_json()["data"]
    assert data["totalDays"] == 3
    assert data["presentDays"] == 1
    assert data["lateDays"] == 1
    assert data["absentDays"] == 1
    assert data["totalWorkHours"] == 16.0
    assert data["averageWorkHours"] == 8.0
    assert data["attendanceRate"] == 66.7


def test_status_for_clock_in_boundary():
    assert status_for_clock_in(datetime(2025, 1, 1, 9, 59), 10) == "Present"
    assert status_for_clock_in(datetime(2025, 1, 1, 10, 0), 10) == "Late"


def test_summarize_empty():
    assert summarize([])["attendanceRate"] == 0


def test_unique_row_per_user_and_day(app, login, team, clock):
    c = login(team["employee"])
    c.post("/api/attendance/clock-in")
    with app.app_context():
        assert Attendance.query.filter_by(user_id=team["employee"]).count() == 1


def test_non_integer_employee_filter_is_rejected(login, team):
    resp = login(team["hr"]).get("/api/attendance?employeeId=abc")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "employeeId must be an integer"
