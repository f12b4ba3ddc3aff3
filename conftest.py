"""Shared pytest fixtures.

Run with: pytest -v
"""
import os

os.environ.setdefault('FLASK_ENV', 'testing')

from datetime import datetime, timedelta, timezone

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config.settings import TestingConfig
from extensions import db
from models import Branch, BranchStaff
from utils import security
from utils.security import PinAttemptTracker


class FakeClock:
    """Controllable UTC clock for the attempt tracker"""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return PinAttemptTracker(clock=clock)


@pytest.fixture
def fast_hashing(monkeypatch):
    """Cheaper bcrypt rounds for route tests"""
    monkeypatch.setattr(security, 'SALT_ROUNDS', 4)


@pytest.fixture
def app(tracker, fast_hashing):
    app = create_app(TestingConfig, pin_tracker=tracker)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded(app):
    """One branch with a manager, an associate and a legacy-PIN associate"""
    branch = Branch(name='Downtown', address='1 Main St')
    other = Branch(name='Uptown', is_active=False)
    db.session.add_all([branch, other])
    db.session.commit()

    manager = BranchStaff(
        branch_id=branch.id,
        first_name='Maya',
        last_name='Reyes',
        email='maya@fitgym.test',
        role='manager',
    )
    manager.set_pin('2580')

    associate = BranchStaff(
        branch_id=branch.id,
        first_name='Sam',
        last_name='Ortiz',
        email='sam@fitgym.test',
        role='associate',
    )
    associate.set_pin('7392')

    legacy = BranchStaff(
        branch_id=branch.id,
        first_name='Lee',
        last_name='Park',
        email='lee@fitgym.test',
        role='senior_staff',
        pin='4826',
    )

    db.session.add_all([manager, associate, legacy])
    db.session.commit()

    return {
        'branch_id': branch.id,
        'inactive_branch_id': other.id,
        'manager_id': manager.id,
        'associate_id': associate.id,
        'legacy_id': legacy.id,
    }


@pytest.fixture
def auth_headers(app, seeded):
    """Build bearer headers for a seeded staff member by key"""

    def _headers(key='manager_id', role=None):
        staff = db.session.get(BranchStaff, seeded[key])
        token = create_access_token(
            identity=staff.id,
            additional_claims={'role': role or staff.role, 'branch_id': staff.branch_id},
        )
        return {'Authorization': f'Bearer {token}'}

    return _headers
