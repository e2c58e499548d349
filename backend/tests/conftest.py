"""
Pytest fixtures for freightdesk backend tests.

Provides test database setup, job factories, and test client.
"""

import pytest
from freightdesk import create_app
from freightdesk.extensions import db
from freightdesk.records import JobRecord


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DOC_NO_WIDTH': 5,
        'PAYMENT_TOLERANCE': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_job(**fields) -> JobRecord:
    """JobRecord from camelCase keys, as the UI sends them."""
    data = {"id": fields.pop("id", ""), "jobCode": fields.pop("jobCode", "JOB-1")}
    data.update(fields)
    return JobRecord.from_dict(data)


def job_payload(job_code: str, **fields) -> dict:
    payload = {"jobCode": job_code, "month": "10", "year": 2023}
    payload.update(fields)
    return payload
