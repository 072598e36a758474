import httpx
import pytest

from api import process_submission
from conftest import play_to_summary
from errors import InvalidTransition, TransportError
from quiz_state import QuizSession, Screen
from submission import CONNECTION_FAILURE, HttpTransport, LocalTransport, build_payload, submit_quiz


@pytest.fixture
def finished_session():
    session = play_to_summary(QuizSession.start("Mai"))
    session.show_suggestion()
    return session


class RecordingTransport:
    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self.body = {"success": True, "message": "Saved!"} if body is None else body
        self.error = error
        self.payloads = []

    def __call__(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.status, self.body


def test_build_payload(finished_session):
    payload = build_payload(finished_session, "  hi  ")

    assert payload["username"] == "Mai"
    assert payload["answers"] == [0] * 10
    assert payload["items"][0] == "Power Bank"
    assert len(payload["items"]) == 10
    assert payload["suggestion"] == "hi"
    assert payload["personalityType"] == "P"
    assert payload["personalityName"] == "The Power Planner"
    assert payload["personalityScores"] == {"C": 2, "P": 5, "F": 1, "L": 2}


def test_successful_submit_reaches_final(finished_session):
    transport = RecordingTransport()
    outcome = submit_quiz(finished_session, "more benches", transport)

    assert outcome.ok
    assert finished_session.screen is Screen.FINAL
    assert not finished_session.pending
    assert len(transport.payloads) == 1
    assert transport.payloads[0]["suggestion"] == "more benches"


def test_rejected_submit_stays_for_retry(finished_session):
    transport = RecordingTransport(status=400, body={"success": False, "message": "Please provide a username"})
    outcome = submit_quiz(finished_session, "x", transport)

    assert not outcome.ok
    assert "Please provide a username" in outcome.message
    assert finished_session.screen is Screen.SUGGESTION
    assert not finished_session.pending
    assert len(finished_session.selected_answers) == 10
    assert finished_session.suggestion == "x"

    assert submit_quiz(finished_session, "x", RecordingTransport()).ok


def test_connection_failure_has_its_own_message(finished_session):
    outcome = submit_quiz(finished_session, "", RecordingTransport(error=TransportError("down")))

    assert not outcome.ok
    assert outcome.message == CONNECTION_FAILURE
    assert finished_session.screen is Screen.SUGGESTION


def test_submit_while_pending_is_rejected(finished_session):
    finished_session.pending = True
    transport = RecordingTransport()
    with pytest.raises(InvalidTransition):
        submit_quiz(finished_session, "", transport)
    assert transport.payloads == []


def test_submit_before_suggestion_screen_is_rejected():
    session = play_to_summary(QuizSession.start("Mai"))
    with pytest.raises(InvalidTransition):
        submit_quiz(session, "", RecordingTransport())


def test_local_transport_runs_the_pipeline(app, responses_dir, finished_session):
    with app.test_request_context():
        transport = LocalTransport(lambda payload: process_submission(payload, "127.0.0.1"))
        outcome = submit_quiz(finished_session, "", transport)

    assert outcome.ok
    assert len(list(responses_dir.glob("resp_*.json"))) == 1


def _http_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_http_transport_posts_json():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(200, json={"success": True, "message": "ok"})

    transport = HttpTransport("http://quiz.example/", client=_http_client(handler))
    status, body = transport({"username": "Mai"})

    assert status == 200
    assert body["success"] is True
    assert seen["url"] == "http://quiz.example/api/submit"
    assert b'"username"' in seen["body"]


def test_http_transport_passes_error_bodies_through():
    def handler(request):
        return httpx.Response(400, json={"success": False, "message": "Exactly 10 answers are required"})

    status, body = HttpTransport("http://quiz.example", client=_http_client(handler))({})
    assert status == 400
    assert body["message"] == "Exactly 10 answers are required"


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(502, text="<html>Bad gateway</html>"),
        lambda request: httpx.Response(200, json=["not", "an", "object"]),
    ],
)
def test_http_transport_rejects_unusable_bodies(handler):
    with pytest.raises(TransportError):
        HttpTransport("http://quiz.example", client=_http_client(handler))({})


def test_http_transport_wraps_network_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        HttpTransport("http://quiz.example", client=_http_client(handler))({})
