"""
Shared fixtures: application on an in-memory SQLite database,
seeded users of every role and an assignment to grade.
"""
import pytest

from app import create_app
from config import TestConfig
from extensions import db
from models import Assignment, User

USER_CODES = {
    'student': '100001',
    'student2': '100002',
    'teacher': '200001',
    'teacher2': '200002',
    'admin': '000001',
}


@pytest.fixture
def app(tmp_path):
    class Config(TestConfig):
        FEEDBACK_FILES_DIR = str(tmp_path / 'feedback_files')

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        db.session.add_all([
            User(code=USER_CODES['student'], nickname='Student', role='student'),
            User(code=USER_CODES['student2'], nickname='Student 2', role='student'),
            User(code=USER_CODES['teacher'], nickname='Teacher', role='teacher'),
            User(code=USER_CODES['teacher2'], nickname='Teacher 2', role='teacher'),
            User(code=USER_CODES['admin'], nickname='Admin', role='admin'),
        ])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def users(app):
    return {key: User.query.filter_by(code=code).one() for key, code in USER_CODES.items()}


@pytest.fixture
def assignment(app):
    assignment = Assignment(name='Essay 1', course='Writing 101')
    db.session.add(assignment)
    db.session.commit()
    return assignment


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Log the test client in as one of the seeded users."""
    def _login(who):
        response = client.post('/login', data={'code': USER_CODES[who]})
        assert response.status_code == 200
        return client
    return _login
