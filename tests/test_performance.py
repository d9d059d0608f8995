def _goal(c, **extra):
    payload = {"title": "Ship onboarding flow", "targetDate": "2025-09-30"}
    payload.update(extra)
    return c.post("/api/goals", json=payload)


def test_employee_creates_own_goal(login, team):
    resp = _goal(login(team["employee"]))

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["userId"] == team["employee"]
    assert data["status"] == "not-started"
    assert data["priority"] == "medium"
    assert data["assignedBy"] is None


def test_progress_drives_status(login, team):
    c = login(team["employee"])
    goal_id = _goal(c).get_json()["data"]["id"]

    partial = c.put(f"/api/goals/{goal_id}", json={"action": "update-progress", "progress": 40})
    assert partial.get_json()["data"]["status"] == "in-progress"

    done = c.put(f"/api/goals/{goal_id}", json={"action": "update-progress", "progress": 150})
    assert done.get_json()["data"]["progress"] == 100
    assert done.get_json()["data"]["status"] == "completed"


def test_full_progress_on_create_completes(login, team):
    resp = _goal(login(team["employee"]), progress=100)
    assert resp.get_json()["data"]["status"] == "completed"


def test_plain_update_with_full_progress_completes(login, team):
    c = login(team["employee"])
    goal_id = _goal(c).get_json()["data"]["id"]
    resp = c.put(f"/api/goals/{goal_id}", json={"progress": 100, "status": "in-progress"})
    assert resp.get_json()["data"]["status"] == "completed"


def test_manager_assigns_goal_to_report(login, team):
    resp = _goal(login(team["manager"]), assignToUserId=team["employee"])

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["userId"] == team["employee"]
    assert data["assignedBy"]["id"] == team["manager"]


def test_manager_cannot_assign_outside_team(login, team):
    assert _goal(login(team["manager"]), assignToUserId=team["outsider"]).status_code == 403


def test_employee_cannot_assign(login, team):
    assert _goal(login(team["employee"]), assignToUserId=team["outsider"]).status_code == 403


def test_goal_listing_is_scoped(login, team):
    _goal(login(team["employee"]))
    _goal(login(team["outsider"]))

    assert len(login(team["employee"]).get("/api/goals").get_json()["data"]) == 1
    assert len(login(team["manager"]).get("/api/goals").get_json()["data"]) == 1
    assert len(login(team["admin"]).get("/api/goals").get_json()["data"]) == 2
    assert login(team["employee"]).get(f"/api/goals?userId={team['outsider']}").status_code == 403


def test_other_employee_cannot_modify_goal(login, team):
    goal_id = _goal(login(team["employee"])).get_json()["data"]["id"]
    outsider = login(team["outsider"])
    assert outsider.put(f"/api/goals/{goal_id}", json={"title": "Mine now"}).status_code == 403
    assert outsider.delete(f"/api/goals/{goal_id}").status_code == 403


def test_owner_deletes_goal(login, team):
    c = login(team["employee"])
    goal_id = _goal(c).get_json()["data"]["id"]
    assert c.delete(f"/api/goals/{goal_id}").status_code == 200
    assert c.get("/api/goals").get_json()["data"] == []


def _review(c, employee_id, **extra):
    payload = {
        "employeeId": employee_id,
        "reviewPeriodStart": "2025-01-01",
        "reviewPeriodEnd": "2025-06-30",
        "overallRating": 4,
        "strengths": "Ownership",
    }
    payload.update(extra)
    return c.post("/api/reviews", json=payload)


def test_manager_reviews_team_member(login, team):
    resp = _review(login(team["manager"]), team["employee"])

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["status"] == "draft"
    assert data["reviewer"]["id"] == team["manager"]


def test_review_rating_must_be_in_range(login, team):
    assert _review(login(team["hr"]), team["employee"], overallRating=6).status_code == 400


def test_employee_cannot_create_review(login, team):
    assert _review(login(team["employee"]), team["outsider"]).status_code == 403


def test_manager_cannot_review_outside_team(login, team):
    assert _review(login(team["manager"]), team["outsider"]).status_code == 403


def test_only_reviewer_updates_and_submits_once(login, team):
    manager = login(team["manager"])
    review_id = _review(manager, team["employee"]).get_json()["data"]["id"]

    assert login(team["hr"]).put(f"/api/reviews/{review_id}", json={"overallRating": 2}).status_code == 403

    updated = manager.put(f"/api/reviews/{review_id}", json={"overallRating": 5, "comments": "Great half"})
    assert updated.get_json()["data"]["overallRating"] == 5

    submitted = manager.put(f"/api/reviews/{review_id}", json={"action": "submit"})
    assert submitted.get_json()["data"]["status"] == "submitted"
    assert submitted.get_json()["data"]["submittedAt"] is not None

    again = manager.put(f"/api/reviews/{review_id}", json={"action": "submit"})
    assert again.status_code == 400
    assert again.get_json()["message"] == "Only draft reviews can be submitted"


def test_employee_sees_only_own_reviews(login, team):
    hr = login(team["hr"])
    _review(hr, team["employee"])
    _review(hr, team["outsider"])

    rows = login(team["employee"]).get("/api/reviews").get_json()["data"]
    assert [r["employee"]["id"] for r in rows] == [team["employee"]]
    assert len(hr.get("/api/reviews").get_json()["data"]) == 2
