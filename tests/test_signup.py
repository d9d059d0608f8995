from datetime import timedelta

from talenthr.models import db, OTP, Company, Department, Employee, Invitation, LeaveType, User
from talenthr.utils.helpers import utcnow


def _verified_otp(client, email, purpose="company_admin_signup"):
    sent = client.post("/api/otp/send", json={"email": email, "purpose": purpose})
    assert sent.status_code == 200
    code = sent.get_json()["otp"]
    verified = client.post("/api/otp/verify", json={"email": email, "purpose": purpose, "otp": code})
    assert verified.status_code == 200
    return code


def test_company_admin_signup_bootstraps_company(app, client, outbox):
    _verified_otp(client, "founder@newco.test")
    assert outbox[0]["kind"] == "otp"

    resp = client.post("/api/auth/signup", json={
        "email": "founder@newco.test",
        "password": "supersecret",
        "name": "Founder",
        "role": "company_admin",
        "companyName": "New Co!",
    })

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["user"]["role"] == "company_admin"
    assert body["user"]["company"]["slug"] == "new-co"
    assert body["user"]["employeeId"] == "NEW-CO-EMP001"
    assert client.get_cookie("accessToken") is not None

    with app.app_context():
        company = Company.query.filter_by(slug="new-co").one()
        assert Department.query.filter_by(company_id=company.id).count() == 8
        assert LeaveType.query.filter_by(company_id=company.id).count() == 4
        emp = Employee.query.filter_by(company_id=company.id).one()
        assert emp.position == "Company Administrator"
        # verification is consumed
        assert OTP.query.filter_by(email="founder@newco.test").count() == 0


def test_company_admin_signup_requires_verified_otp(client):
    resp = client.post("/api/auth/signup", json={
        "email": "nobody@newco.test",
        "password": "supersecret",
        "name": "Nobody",
        "role": "company_admin",
        "companyName": "Unverified Ltd",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Email not verified. Please verify your email with OTP first."


def test_company_admin_signup_rejects_stale_verification(app, client):
    _verified_otp(client, "late@newco.test")
    with app.app_context():
        otp = OTP.query.filter_by(email="late@newco.test").one()
        otp.created_at = utcnow() - timedelta(minutes=31)
        db.session.commit()

    resp = client.post("/api/auth/signup", json={
        "email": "late@newco.test",
        "password": "supersecret",
        "name": "Late",
        "role": "company_admin",
        "companyName": "Late Ltd",
    })
    assert resp.status_code == 400
    assert "expired" in resp.get_json()["message"]


def test_company_name_must_be_unique(client, company):
    _verified_otp(client, "copycat@acme.test")
    resp = client.post("/api/auth/signup", json={
        "email": "copycat@acme.test",
        "password": "supersecret",
        "name": "Copy Cat",
        "role": "company_admin",
        "companyName": "acme corp",
    })
    assert resp.status_code == 409


def test_signup_without_company_or_token(client):
    resp = client.post("/api/auth/signup", json={"email": "x@y.test", "password": "supersecret", "name": "X"})
    assert resp.status_code == 400


def _invite(login, inviter_id, email, role="employee"):
    c = login(inviter_id)
    resp = c.post("/api/invitations", json={"email": email, "role": role})
    assert resp.status_code == 201, resp.get_json()
    link = resp.get_json()["invitation"]["link"]
    return link.split("token=", 1)[1]


def test_invitation_signup_joins_company(app, client, login, team):
    token = _invite(login, team["hr"], "newbie@acme.test", role="recruiter")

    resp = client.post("/api/auth/signup", json={
        "token": token,
        "email": "Newbie@acme.test",
        "password": "supersecret",
        "name": "Newbie",
    })

    assert resp.status_code == 201
    user = resp.get_json()["user"]
    assert user["role"] == "recruiter"
    assert user["companyId"] == team["company"]
    assert user["employeeId"].startswith("ACME-CORP-EMP")

    with app.app_context():
        invitation = Invitation.query.filter_by(email="newbie@acme.test").one()
        assert invitation.status == "accepted"
        assert invitation.accepted_by == user["id"]
        assert db.session.get(User, user["id"]).employee_profile is not None


def test_invitation_signup_email_must_match(client, login, team):
    token = _invite(login, team["admin"], "right@acme.test")
    resp = client.post("/api/auth/signup", json={
        "token": token, "email": "wrong@acme.test", "password": "supersecret", "name": "Wrong",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Email does not match invitation"


def test_invitation_token_is_single_use(client, login, team):
    token = _invite(login, team["admin"], "once@acme.test")
    payload = {"token": token, "email": "once@acme.test", "password": "supersecret", "name": "Once"}

    assert client.post("/api/auth/signup", json=payload).status_code == 201
    again = client.post("/api/auth/signup", json=payload)
    assert again.status_code == 400
    assert again.get_json()["message"] == "Invalid or expired invitation link"


def test_expired_invitation_cannot_be_used(app, client, login, team):
    token = _invite(login, team["admin"], "slow@acme.test")
    with app.app_context():
        invitation = Invitation.query.filter_by(email="slow@acme.test").one()
        invitation.expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()

    resp = client.post("/api/auth/signup", json={
        "token": token, "email": "slow@acme.test", "password": "supersecret", "name": "Slow",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invitation link has expired"
    with app.app_context():
        assert Invitation.query.filter_by(email="slow@acme.test").one().status == "expired"


def test_signup_rejects_non_string_password(client, login, team):
    token = _invite(login, team["admin"], "numbers@acme.test")
    resp = client.post("/api/auth/signup", json={
        "token": token, "email": "numbers@acme.test", "password": 12345678, "name": "Numbers",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Password must be a string"


def test_signup_rejects_non_string_token(client):
    resp = client.post("/api/auth/signup", json={
        "token": 42, "email": "numbers@acme.test", "password": "supersecret", "name": "Numbers",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Token must be a string"
