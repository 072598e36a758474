import os
import tempfile

import pytest

# settings are read when app is imported; keep logs and data out of the checkout
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="starterpack-logs-")
os.environ["QUIZ_ENV"] = "test"

from app import app as flask_app  # noqa: E402
from questions import TOTAL_QUESTIONS  # noqa: E402
from quiz_state import QuizSession, Screen  # noqa: E402


@pytest.fixture
def app(tmp_path):
    flask_app.config.update(
        TESTING=True,
        RESPONSES_DIR=tmp_path / "responses",
        BACKUP_ENABLED=False,
        BACKUP_DIR=tmp_path / "backups",
        ADMIN_API_KEY="",
        QUIZ_API_URL="",
    )
    yield flask_app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def responses_dir(app):
    return app.config["RESPONSES_DIR"]


@pytest.fixture
def valid_payload():
    return {
        "username": "testuser",
        "answers": [0, 1, 2, 3, 0, 1, 2, 3, 0, 1][:TOTAL_QUESTIONS],
        "items": [f"item-{number}" for number in range(TOTAL_QUESTIONS)],
        "suggestion": "More cats please",
        "personalityType": "C",
        "personalityName": "The Campus Cruiser",
        "personalityScores": {"C": 4, "P": 3, "F": 2, "L": 1},
    }


def play_to_summary(session: QuizSession, option: int = 0) -> QuizSession:
    """Answer every question (and sub-question) with the same option."""
    while session.screen is not Screen.SUMMARY:
        if session.screen in (Screen.QUESTION, Screen.SUB_QUESTION):
            session.select_option(option)
        else:
            session.advance()
    return session
