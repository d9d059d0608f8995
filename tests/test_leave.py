from datetime import date

from talenthr.leave.services import inclusive_days


def _type_id(c, code):
    types = c.get("/api/leave-types").get_json()["data"]
    return next(t["id"] for t in types if t["code"] == code)


def _balance(c, code, year=2025, employee_id=None):
    url = f"/api/leaves/balance?year={year}"
    if employee_id:
        url += f"&employeeId={employee_id}"
    rows = c.get(url).get_json()["data"]
    return next(b for b in rows if b["leaveType"]["code"] == code)


def _request(c, code="VL", start="2025-06-02", end="2025-06-04", **extra):
    payload = {"leaveTypeId": _type_id(c, code), "startDate": start, "endDate": end, "reason": "Family trip"}
    payload.update(extra)
    return c.post("/api/leaves", json=payload)


def test_inclusive_days():
    assert inclusive_days(date(2025, 6, 2), date(2025, 6, 2)) == 1
    assert inclusive_days(date(2025, 6, 2), date(2025, 6, 4)) == 3


def test_default_leave_types_are_listed(login, team):
    codes = {t["code"] for t in login(team["employee"]).get("/api/leave-types").get_json()["data"]}
    assert codes == {"SL", "VL", "PL", "CL"}


def test_balances_are_created_from_quota(login, team):
    vl = _balance(login(team["employee"]), "VL")
    assert vl["totalDays"] == 15
    assert vl["availableDays"] == 15
    assert vl["year"] == 2025


def test_request_moves_days_to_pending(login, team):
    c = login(team["employee"])
    resp = _request(c)

    assert resp.status_code == 201
    assert resp.get_json()["data"]["totalDays"] == 3
    assert resp.get_json()["data"]["status"] == "pending"

    vl = _balance(c, "VL")
    assert vl["pendingDays"] == 3
    assert vl["availableDays"] == 12


def test_request_beyond_balance_is_rejected(login, team):
    c = login(team["employee"])
    resp = _request(c, code="PL", start="2025-06-02", end="2025-06-09")

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Insufficient leave balance. Available: 5 days"


def test_explicit_half_day(login, team):
    c = login(team["employee"])
    resp = _request(c, code="SL", start="2025-06-02", end="2025-06-02", totalDays=0.5)
    assert resp.status_code == 201
    assert _balance(c, "SL")["availableDays"] == 9.5


def test_end_before_start_is_rejected(login, team):
    resp = _request(login(team["employee"]), start="2025-06-05", end="2025-06-01")
    assert resp.status_code == 400


def test_foreign_leave_type_is_invalid(factory, login, team):
    other = factory.company(name="Other Co")
    other_user = factory.user(other, "employee", email="e@other.test")
    foreign_type = _type_id(login(other_user), "VL")

    resp = login(team["employee"]).post("/api/leaves", json={
        "leaveTypeId": foreign_type, "startDate": "2025-06-02", "endDate": "2025-06-02", "reason": "x",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid leave type"


def test_manager_approves_team_request(login, team):
    employee = login(team["employee"])
    leave_id = _request(employee).get_json()["data"]["id"]

    resp = login(team["manager"]).put(f"/api/leaves/{leave_id}", json={"action": "approve", "comments": "Enjoy"})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "approved"
    vl = _balance(employee, "VL")
    assert vl["pendingDays"] == 0
    assert vl["usedDays"] == 3
    assert vl["availableDays"] == 12


def test_rejection_releases_pending_days(login, team):
    employee = login(team["employee"])
    leave_id = _request(employee).get_json()["data"]["id"]

    login(team["hr"]).put(f"/api/leaves/{leave_id}", json={"action": "reject"})

    vl = _balance(employee, "VL")
    assert vl["pendingDays"] == 0
    assert vl["usedDays"] == 0
    assert vl["availableDays"] == 15


def test_cancel_releases_pending_days(login, team):
    employee = login(team["employee"])
    leave_id = _request(employee).get_json()["data"]["id"]

    resp = employee.put(f"/api/leaves/{leave_id}", json={"action": "cancel"})

    assert resp.status_code == 200
    assert _balance(employee, "VL")["availableDays"] == 15


def test_decided_request_cannot_be_decided_again(login, team):
    leave_id = _request(login(team["employee"])).get_json()["data"]["id"]
    hr = login(team["hr"])
    hr.put(f"/api/leaves/{leave_id}", json={"action": "approve"})

    resp = hr.put(f"/api/leaves/{leave_id}", json={"action": "reject"})
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Leave request is already approved"


def test_manager_cannot_approve_outside_team(login, team):
    leave_id = _request(login(team["outsider"])).get_json()["data"]["id"]
    resp = login(team["manager"]).put(f"/api/leaves/{leave_id}", json={"action": "approve"})
    assert resp.status_code == 403


def test_employee_cannot_approve(login, team):
    leave_id = _request(login(team["outsider"])).get_json()["data"]["id"]
    resp = login(team["employee"]).put(f"/api/leaves/{leave_id}", json={"action": "approve"})
    assert resp.status_code == 403


def test_only_owner_cancels(login, team):
    leave_id = _request(login(team["employee"])).get_json()["data"]["id"]
    resp = login(team["hr"]).put(f"/api/leaves/{leave_id}", json={"action": "cancel"})
    assert resp.status_code == 403


def test_unknown_action(login, team):
    employee = login(team["employee"])
    leave_id = _request(employee).get_json()["data"]["id"]
    assert employee.put(f"/api/leaves/{leave_id}", json={"action": "archive"}).status_code == 400


def test_list_is_scoped(login, team):
    _request(login(team["employee"]))
    _request(login(team["outsider"]))

    assert len(login(team["employee"]).get("/api/leaves").get_json()["data"]) == 1
    assert len(login(team["manager"]).get("/api/leaves").get_json()["data"]) == 1
    assert len(login(team["hr"]).get("/api/leaves").get_json()["data"]) == 2


def test_outsider_cannot_read_someone_elses_request(login, team):
    leave_id = _request(login(team["employee"])).get_json()["data"]["id"]
    assert login(team["outsider"]).get(f"/api/leaves/{leave_id}").status_code == 403
    assert login(team["manager"]).get(f"/api/leaves/{leave_id}").status_code == 200


def test_balance_of_other_employee_needs_permission(login, team):
    assert login(team["outsider"]).get(
        f"/api/leaves/balance?employeeId={team['employee']}").status_code == 403
    assert _balance(login(team["manager"]), "VL", employee_id=team["employee"])["totalDays"] == 15


def test_create_leave_type_and_duplicate_code(login, team):
    hr = login(team["hr"])
    payload = {"name": "Study Leave", "code": "st", "annualQuota": 3}

    created = hr.post("/api/leave-types", json=payload)
    assert created.status_code == 201
    assert created.get_json()["data"]["code"] == "ST"
    assert created.get_json()["data"]["color"] == "#667eea"

    assert hr.post("/api/leave-types", json=payload).status_code == 409
    assert login(team["employee"]).post("/api/leave-types", json=payload).status_code == 403
