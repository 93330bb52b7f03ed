import os
import sys
from datetime import datetime, timedelta

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from flask_login import FlaskLoginClient

from reviewhub import create_app
from reviewhub.extensions import db
from reviewhub.models import (
    AdminGrant, Application, Candidate, Coalition, Organization, Program, User,
)

T1 = datetime(2024, 1, 1, 0, 0, 0)


@pytest.fixture
def app():
    app = create_app('config.TestConfig')
    app.test_client_class = FlaskLoginClient
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()


# one app context per service-level test; HTTP tests let each request push its own
@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app
        db.session.remove()


class FakeClock:
    def __init__(self, now):
        self.now = now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock(T1)
    monkeypatch.setattr('reviewhub.utils.clock.utcnow', lambda: fake.now)
    return fake


class Factory:
    def __init__(self):
        self._n = 0

    def _seq(self):
        self._n += 1
        return self._n

    def _save(self, obj):
        db.session.add(obj)
        db.session.commit()
        return obj

    def user(self, role="user"):
        n = self._seq()
        u = User(email=f"user{n}@example.com", full_name=f"User {n}", role=role)
        u.set_password("password")
        return self._save(u)

    def coalition(self):
        return self._save(Coalition(name=f"Coalition {self._seq()}"))

    def org(self, coalition=None):
        return self._save(Organization(
            name=f"Org {self._seq()}",
            coalition_id=coalition.id if coalition else None,
        ))

    def program(self, org, **kwargs):
        return self._save(Program(organization_id=org.id, name=f"Program {self._seq()}", **kwargs))

    def application(self, program, applicant_name="Ada Lovelace"):
        candidate = Candidate(org_id=program.organization_id, name=applicant_name)
        db.session.add(candidate)
        db.session.flush()
        return self._save(Application(
            org_id=program.organization_id,
            program_id=program.id,
            candidate_id=candidate.id,
        ))

    def grant(self, user, scope_type, scope_id, status="active", role="admin"):
        return self._save(AdminGrant(
            user_id=user.id, role=role, scope_type=scope_type, scope_id=scope_id, status=status,
        ))


@pytest.fixture
def factory(ctx):
    return Factory()
