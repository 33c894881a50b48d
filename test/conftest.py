"""
Pytest configuration and fixtures for testing.

Every test gets a fresh application backed by its own SQLite file, so
tests never see each other's rows.
"""
import os

import pytest

# Set before the package reads its configuration
os.environ.setdefault('SECRET_KEY', 'test-secret-key-for-pytest-only')
os.environ.setdefault('FLASK_ENV', 'testing')

from quizhub import create_app, db  # noqa: E402
from quizhub.auth.models import User  # noqa: E402
from quizhub.auth.utils import hash_password  # noqa: E402
from quizhub.quiz.aggregate_writer import (  # noqa: E402
    OptionEntry,
    QuestionEntry,
    QuizAggregateWriter,
    QuizMeta,
)

PASSWORD = 'password123'

# Two questions with two options each, the first option correct
DEFAULT_QUESTIONS = [
    ('What is 2 + 2?', [('4', True), ('5', False)]),
    ('What is the capital of Norway?', [('Oslo', True), ('Bergen', False)]),
]


@pytest.fixture
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'quizhub-test.db'}",
        'BCRYPT_ROUNDS': 4,
        'QUIZ_REQUIRE_PUBLISHED': False,
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    """Push an application context for tests that call components directly."""
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def other_client(app):
    """A second, independent browser session."""
    return app.test_client()


@pytest.fixture
def users(app):
    """Create two users and return their ids keyed by name."""
    with app.app_context():
        alice = User(email='alice@test.com', full_name='Alice Tester', password_hash=hash_password(PASSWORD))
        bob = User(email='bob@test.com', full_name='Bob Tester', password_hash=hash_password(PASSWORD))
        db.session.add_all([alice, bob])
        db.session.commit()
        return {'alice': alice.id, 'bob': bob.id}


@pytest.fixture
def quiz_factory(app):
    """
    Return a function creating a quiz through the aggregate writer.

    The function returns plain ids:
    {'quiz_id': 1, 'questions': [{'id': 1, 'options': [1, 2], 'correct': 1, 'wrong': 2}, ...]}
    """
    def build(owner_id=None, questions=DEFAULT_QUESTIONS, title='Sample Quiz'):
        entries = [
            QuestionEntry(text=text, options=[OptionEntry(text=o, is_correct=c) for o, c in options])
            for text, options in questions
        ]
        with app.app_context():
            quiz = QuizAggregateWriter().create_quiz(
                QuizMeta(title=title, subject_code='TST100'), entries, owner_id=owner_id
            )
            return {
                'quiz_id': quiz.id,
                'questions': [
                    {
                        'id': q.id,
                        'options': [o.id for o in q.options],
                        'correct': next((o.id for o in q.options if o.is_correct), None),
                        'wrong': next((o.id for o in q.options if not o.is_correct), None),
                    }
                    for q in quiz.questions
                ],
            }
    return build


def _login(client, email, password=PASSWORD):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


@pytest.fixture
def login():
    """Return a helper that logs a test client in and returns the response."""
    return _login


@pytest.fixture
def alice_client(client, users):
    """Test client logged in as alice."""
    response = _login(client, 'alice@test.com')
    assert response.status_code == 200
    return client


@pytest.fixture
def bob_client(other_client, users):
    """Test client logged in as bob."""
    response = _login(other_client, 'bob@test.com')
    assert response.status_code == 200
    return other_client
