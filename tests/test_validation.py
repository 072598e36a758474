from datetime import datetime, timezone

import pytest

from errors import UserInputError
from validation import (
    clamp_score,
    format_timestamp,
    generate_session_id,
    sanitize_input,
    validate_answer_index,
    validate_submission,
)

NOW = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, max_length, expected",
    [
        ("  hello  ", 200, "hello"),
        ('<script>alert("xss")</script>', 200, "&lt;script&gt;alert(&quot;xss&quot;)&lt;&#x2F;script&gt;"),
        ("Tom & Jerry's `tick`", 200, "Tom &amp; Jerry&#x27;s &#96;tick&#96;"),
        ("back\\slash", 200, "back&#x5C;slash"),
        ("a" * 300, 200, "a" * 200),
        ("abcdef", 3, "abc"),
        ("", 200, ""),
        ("สวัสดี 😺", 200, "สวัสดี 😺"),
        ("plain text 123", 200, "plain text 123"),
        (None, 200, ""),
        (42, 200, ""),
        (["x"], 200, ""),
    ],
)
def test_sanitize_input(value, max_length, expected):
    assert sanitize_input(value, max_length) == expected


def test_sanitize_truncates_after_escaping():
    assert sanitize_input("<<<<", 6) == "&lt;&l"


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 0),
        (3, 3),
        ("2", 2),
        ("1abc", 1),
        (2.7, 2),
        (4, None),
        (-1, None),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        ({}, None),
        ("9" * 5000, None),
        ("\uff12", None),
    ],
)
def test_validate_answer_index(value, expected):
    assert validate_answer_index(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (5, 5),
        (150, 99),
        (-5, 0),
        ("7", 7),
        ("abc", 0),
        (None, 0),
        (3.9, 3),
        ("9" * 5000, 99),
        ("-" + "9" * 5000, 0),
        ("\uff17", 0),
    ],
)
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected


def test_session_ids_are_random_hex():
    first, second = generate_session_id(), generate_session_id()
    assert len(first) == 16
    int(first, 16)
    assert first != second


def test_format_timestamp_uses_configured_zone():
    assert format_timestamp(NOW) == "2026-01-01 07:00:00"
    assert format_timestamp(NOW, "UTC") == "2026-01-01 00:00:00"


def test_valid_submission_becomes_a_record(valid_payload):
    valid_payload["sessionId"] = "client-chosen"
    record = validate_submission(valid_payload, "10.0.0.1", now=NOW)

    assert record.username == "testuser"
    assert record.raw_answers == valid_payload["answers"]
    assert record.answers[0] == "Absolutely not okay"
    assert record.answers[1] == "Take a selfie"
    assert "People watching" in record.answers[3]
    assert record.items == valid_payload["items"]
    assert record.personality_type == "C"
    assert record.personality_scores == {"C": 4, "P": 3, "F": 2, "L": 1}
    assert record.suggestion == "More cats please"
    assert record.timestamp == "2026-01-01 07:00:00"
    assert record.ip == "10.0.0.1"
    assert record.session_id != "client-chosen"
    assert len(record.session_id) == 16


def test_record_dict_uses_wire_names(valid_payload):
    data = validate_submission(valid_payload, None, now=NOW).to_dict()
    assert set(data) == {
        "sessionId",
        "username",
        "answers",
        "rawAnswers",
        "items",
        "personalityType",
        "personalityName",
        "personalityScores",
        "suggestion",
        "timestamp",
        "ip",
    }
    assert data["ip"] == "unknown"


@pytest.mark.parametrize("username", [None, "", "   ", 123, ["bob"]])
def test_username_is_required(valid_payload, username):
    valid_payload["username"] = username
    with pytest.raises(UserInputError) as excinfo:
        validate_submission(valid_payload, "ip")
    assert excinfo.value.message == "Please provide a username"


@pytest.mark.parametrize("answers", [None, "0123", [0, 1, 2], list(range(4)) * 3])
def test_answers_need_exact_count(valid_payload, answers):
    valid_payload["answers"] = answers
    with pytest.raises(UserInputError) as excinfo:
        validate_submission(valid_payload, "ip")
    assert excinfo.value.message == "Exactly 10 answers are required"


def test_first_invalid_answer_is_reported(valid_payload):
    valid_payload["answers"][9] = 99
    with pytest.raises(UserInputError) as excinfo:
        validate_submission(valid_payload, "ip")
    assert "question 10" in excinfo.value.message

    valid_payload["answers"][4] = "x"
    with pytest.raises(UserInputError) as excinfo:
        validate_submission(valid_payload, "ip")
    assert "question 5" in excinfo.value.message


@pytest.mark.parametrize("items", [None, "items", ["only one"]])
def test_items_need_exact_count(valid_payload, items):
    valid_payload["items"] = items
    with pytest.raises(UserInputError) as excinfo:
        validate_submission(valid_payload, "ip")
    assert excinfo.value.message == "Collected items are invalid"


def test_non_object_payload_is_rejected():
    with pytest.raises(UserInputError):
        validate_submission(None, "ip")
    with pytest.raises(UserInputError):
        validate_submission(["username"], "ip")


def test_optional_fields_are_cleaned(valid_payload):
    valid_payload.update(
        username="<b>" + "n" * 40,
        personalityType="Z",
        personalityName="x" * 80,
        personalityScores={"C": 150, "P": -5, "F": "abc", "L": "7"},
        suggestion=None,
    )
    valid_payload["items"][0] = None
    record = validate_submission(valid_payload, "ip", now=NOW)

    assert record.username.startswith("&lt;b&gt;")
    assert len(record.username) == 30
    assert record.personality_type == ""
    assert len(record.personality_name) == 50
    assert record.personality_scores == {"C": 99, "P": 0, "F": 0, "L": 7}
    assert record.suggestion == ""
    assert record.items[0] == ""


def test_scores_default_to_zero(valid_payload):
    valid_payload["personalityScores"] = "lots"
    record = validate_submission(valid_payload, "ip")
    assert record.personality_scores == {"C": 0, "P": 0, "F": 0, "L": 0}


def test_huge_digit_strings_are_handled(valid_payload):
    valid_payload["personalityScores"] = {"C": "9" * 5000, "P": "-" + "9" * 5000}
    record = validate_submission(valid_payload, "ip")
    assert record.personality_scores == {"C": 99, "P": 0, "F": 0, "L": 0}

    valid_payload["answers"][0] = "9" * 5000
    with pytest.raises(UserInputError) as excinfo:
        validate_submission(valid_payload, "ip")
    assert "question 1" in excinfo.value.message
