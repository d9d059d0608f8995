from datetime import date

import pytest

from talenthr import create_app
from talenthr.config import TestingConfig
from talenthr.models import db, Company, User, Employee
from talenthr.leave.services import seed_default_leave_types
from talenthr.utils.auth_utils import hash_password
from talenthr.utils.helpers import slugify

PASSWORD = "password123"


@pytest.fixture
def outbox(monkeypatch):
    """Captures outgoing mail instead of talking to SMTP."""
    sent = []

    def fake_otp(to, otp, purpose, minutes):
        sent.append({"kind": "otp", "to": to, "otp": otp, "purpose": purpose})
        return True

    def fake_invitation(to, company_name, inviter_name, role, link, days):
        sent.append({"kind": "invitation", "to": to, "role": role, "link": link})
        return True

    monkeypatch.setattr("talenthr.routes.otp.send_otp_email", fake_otp)
    monkeypatch.setattr("talenthr.routes.invitations.send_invitation_email", fake_invitation)
    return sent


@pytest.fixture
def app(outbox):
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Factory:
    def __init__(self, app):
        self.app = app

    def company(self, name="Acme Corp", status="active", leave_types=True):
        with self.app.app_context():
            company = Company(name=name, slug=slugify(name), status=status)
            db.session.add(company)
            db.session.flush()
            if leave_types:
                seed_default_leave_types(company.id)
            db.session.commit()
            return company.id

    def user(self, company_id, role="employee", email=None, name=None, status="active",
             employee=True, manager_id=None):
        with self.app.app_context():
            email = email or f"{role}.{User.query.count() + 1}@example.com"
            user = User(
                email=email,
                password=hash_password(PASSWORD),
                name=name or role.replace("_", " ").title(),
                role=role,
                company_id=company_id,
                status=status,
            )
            db.session.add(user)
            db.session.flush()
            if employee:
                company = db.session.get(Company, company_id)
                db.session.add(Employee(
                    user_id=user.id,
                    company_id=company_id,
                    employee_code=Employee.next_code(company),
                    hire_date=date(2024, 1, 1),
                    manager_id=manager_id,
                    status="active",
                ))
            db.session.commit()
            return user.id

    def email_of(self, user_id):
        with self.app.app_context():
            return db.session.get(User, user_id).email


@pytest.fixture
def factory(app):
    return Factory(app)


@pytest.fixture
def login(app, factory):
    """Returns a fresh test client carrying the session cookies of the given user."""
    def _login(user_id, password=PASSWORD):
        c = app.test_client()
        resp = c.post("/api/auth/login", json={"email": factory.email_of(user_id), "password": password})
        assert resp.status_code == 200, resp.get_json()
        return c
    return _login


@pytest.fixture
def company(factory):
    return factory.company()


@pytest.fixture
def team(factory, company):
    """One company with a user of every role; the employee reports to the manager."""
    admin = factory.user(company, "company_admin", email="admin@acme.test")
    hr = factory.user(company, "hr_manager", email="hr@acme.test")
    recruiter = factory.user(company, "recruiter", email="recruiter@acme.test")
    manager = factory.user(company, "manager", email="manager@acme.test")
    employee = factory.user(company, "employee", email="employee@acme.test", manager_id=manager)
    outsider = factory.user(company, "employee", email="outsider@acme.test")
    return {
        "company": company,
        "admin": admin,
        "hr": hr,
        "recruiter": recruiter,
        "manager": manager,
        "employee": employee,
        "outsider": outsider,
    }
