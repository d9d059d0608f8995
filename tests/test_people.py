def test_admin_lists_company_users_only(factory, login, team):
    other = factory.company(name="Other Co")
    factory.user(other, "employee", email="stranger@other.test")

    resp = login(team["admin"]).get("/api/users")

    emails = {u["email"] for u in resp.get_json()["data"]}
    assert "stranger@other.test" not in emails
    assert len(emails) == 6


def test_user_search_and_role_filter(login, team):
    c = login(team["hr"])
    assert [u["email"] for u in c.get("/api/users?role=recruiter").get_json()["data"]] == ["recruiter@acme.test"]
    assert len(c.get("/api/users?search=OUTSIDER").get_json()["data"]) == 1


def test_employee_cannot_list_users(login, team):
    assert login(team["employee"]).get("/api/users").status_code == 403


def test_hr_cannot_promote_to_admin(login, team):
    resp = login(team["hr"]).put(f"/api/users/{team['employee']}", json={"role": "company_admin"})
    assert resp.status_code == 403


def test_admin_updates_user(login, team):
    resp = login(team["admin"]).put(f"/api/users/{team['employee']}", json={"name": "Renamed", "role": "manager"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["name"] == "Renamed"
    assert resp.get_json()["data"]["role"] == "manager"


def test_deactivate_user_blocks_login(client, login, team):
    assert login(team["admin"]).delete(f"/api/users/{team['outsider']}").status_code == 200
    resp = client.post("/api/auth/login", json={"email": "outsider@acme.test", "password": "password123"})
    assert resp.status_code == 403


def test_cannot_deactivate_self(login, team):
    assert login(team["admin"]).delete(f"/api/users/{team['admin']}").status_code == 400


def test_profile_roundtrip(login, team):
    c = login(team["employee"])
    resp = c.put("/api/profile", json={
        "name": "Em Ployee",
        "phone": "+1 555 0100",
        "address": {"city": "Lisbon"},
        "emergencyContact": {"name": "Kim", "phone": "+1 555 0199"},
    })
    assert resp.status_code == 200

    data = c.get("/api/profile").get_json()["data"]
    assert data["user"]["name"] == "Em Ployee"
    assert data["employee"]["phone"] == "+1 555 0100"
    assert data["employee"]["address"] == {"city": "Lisbon"}


def test_change_password(client, login, team):
    c = login(team["employee"])
    wrong = c.put("/api/profile/password", json={"currentPassword": "bad-guess", "newPassword": "brandnew123"})
    assert wrong.status_code == 401

    assert c.put("/api/profile/password", json={
        "currentPassword": "password123", "newPassword": "brandnew123",
    }).status_code == 200
    resp = client.post("/api/auth/login", json={"email": "employee@acme.test", "password": "brandnew123"})
    assert resp.status_code == 200


def test_settings_are_admin_only(login, team):
    assert login(team["hr"]).get("/api/settings").status_code == 403

    admin = login(team["admin"])
    resp = admin.put("/api/settings", json={"name": "Acme Holdings", "industry": "Robotics"})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["name"] == "Acme Holdings"
    assert data["industry"] == "Robotics"
    assert data["slug"] == "acme-corp"


def test_settings_name_must_be_unique(factory, login, team):
    factory.company(name="Taken Name")
    resp = login(team["admin"]).put("/api/settings", json={"name": "taken name"})
    assert resp.status_code == 409


def _department_id(c, name="Engineering"):
    return c.post("/api/departments", json={"name": name, "code": "eng"}).get_json()["data"]["id"]


def test_department_crud(login, team):
    hr = login(team["hr"])
    resp = hr.post("/api/departments", json={"name": "Engineering", "code": "eng", "managerId": team["manager"]})
    assert resp.status_code == 201
    dept = resp.get_json()["data"]
    assert dept["code"] == "ENG"
    assert dept["manager"]["id"] == team["manager"]

    assert hr.post("/api/departments", json={"name": "engineering"}).status_code == 409

    child = hr.post("/api/departments", json={"name": "Platform", "parentDepartmentId": dept["id"]})
    assert child.get_json()["data"]["parentDepartment"]["id"] == dept["id"]

    assert hr.put(f"/api/departments/{dept['id']}", json={"parentDepartmentId": dept["id"]}).status_code == 400
    assert hr.delete(f"/api/departments/{dept['id']}").status_code == 400

    child_id = child.get_json()["data"]["id"]
    assert hr.delete(f"/api/departments/{child_id}").status_code == 200
    assert hr.delete(f"/api/departments/{dept['id']}").status_code == 200
    assert hr.get(f"/api/departments/{dept['id']}").get_json()["data"]["status"] == "inactive"


def test_department_with_active_employees_cannot_be_deleted(login, team):
    hr = login(team["hr"])
    dept_id = _department_id(hr)
    employee = hr.get("/api/employees?search=employee@acme.test").get_json()["data"][0]
    hr.put(f"/api/employees/{employee['id']}", json={"departmentId": dept_id})

    resp = hr.delete(f"/api/departments/{dept_id}")
    assert resp.status_code == 400
    assert "1 active employee(s)" in resp.get_json()["message"]

    listed = {d["id"]: d for d in hr.get("/api/departments").get_json()["data"]}
    assert listed[dept_id]["employeeCount"] == 1


def test_employee_cannot_create_department(login, team):
    assert login(team["employee"]).post("/api/departments", json={"name": "Shadow IT"}).status_code == 403


def test_employee_record_lifecycle(factory, login, team):
    uid = factory.user(team["company"], "employee", email="fresh@acme.test", employee=False)
    hr = login(team["hr"])

    resp = hr.post("/api/employees", json={
        "userId": uid, "position": "Analyst", "managerId": team["manager"], "salary": 50000,
    })
    assert resp.status_code == 201
    emp = resp.get_json()["data"]
    assert emp["employeeId"].startswith("ACME-CORP-EMP")
    assert emp["manager"]["id"] == team["manager"]

    assert hr.post("/api/employees", json={"userId": uid}).status_code == 409

    updated = hr.put(f"/api/employees/{emp['id']}", json={"position": "Senior Analyst"})
    assert updated.get_json()["data"]["position"] == "Senior Analyst"

    assert hr.delete(f"/api/employees/{emp['id']}").status_code == 200
    assert hr.get(f"/api/employees/{emp['id']}").get_json()["data"]["status"] == "terminated"


def test_employee_create_validations(factory, login, team):
    hr = login(team["hr"])
    assert hr.post("/api/employees", json={}).get_json()["message"] == "User ID is required"
    assert hr.post("/api/employees", json={"userId": 9999}).status_code == 404

    other = factory.company(name="Other Co")
    stranger = factory.user(other, "employee", email="s@other.test", employee=False)
    resp = hr.post("/api/employees", json={"userId": stranger})
    assert resp.get_json()["message"] == "User does not belong to your company"


def test_manager_lists_only_reports(login, team):
    rows = login(team["manager"]).get("/api/employees").get_json()["data"]
    assert [r["userId"] for r in rows] == [team["employee"]]
    assert login(team["employee"]).get("/api/employees").status_code == 403


def test_employee_views_own_record_only(login, team):
    hr = login(team["hr"])
    rows = {r["userId"]: r["id"] for r in hr.get("/api/employees").get_json()["data"]}

    me = login(team["employee"])
    assert me.get(f"/api/employees/{rows[team['employee']]}").status_code == 200
    assert me.get(f"/api/employees/{rows[team['outsider']]}").status_code == 403
