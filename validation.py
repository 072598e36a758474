"""
Validation and sanitisation of quiz submissions.

``validate_submission`` turns an untrusted JSON body into a
``ResponseRecord``. Validation is fail-fast: the first problem raises
``UserInputError`` with a message meant for the quiz taker.
"""

from __future__ import annotations

import math
import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from errors import UserInputError
from questions import MAX_OPTION_INDEX, QUESTIONS, TRAIT_ORDER, Question, readable_answer

USERNAME_MAX_LENGTH = 30
ITEM_MAX_LENGTH = 100
PERSONALITY_NAME_MAX_LENGTH = 50
SUGGESTION_MAX_LENGTH = 500
DEFAULT_MAX_LENGTH = 200
SCORE_MIN = 0
SCORE_MAX = 99
SESSION_ID_BYTES = 8
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_TIMEZONE = "Asia/Bangkok"

HTML_ESCAPES = {
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
}
# at most nine ASCII digits are read
_LEADING_INT = re.compile(r"^\s*([+-]?\d{1,9})", re.ASCII)


def sanitize_input(value: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Trim, HTML-escape and truncate. Non-strings become an empty string."""
    if not isinstance(value, str):
        return ""
    clean = "".join(HTML_ESCAPES.get(char, char) for char in value.strip())
    return clean[:max_length]


def _leading_int(value: Any) -> Optional[int]:
    # Same reading as a lenient integer parse: "2" -> 2, "2abc" -> 2, 1.5 -> 1
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def validate_answer_index(value: Any, max_index: int = MAX_OPTION_INDEX) -> Optional[int]:
    number = _leading_int(value)
    if number is None or number < 0 or number > max_index:
        return None
    return number


def clamp_score(value: Any) -> int:
    number = _leading_int(value)
    if number is None:
        return 0
    return max(SCORE_MIN, min(SCORE_MAX, number))


def generate_session_id() -> str:
    return secrets.token_hex(SESSION_ID_BYTES)


def format_timestamp(moment: datetime, tz_name: str = DEFAULT_TIMEZONE) -> str:
    return moment.astimezone(ZoneInfo(tz_name)).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class ResponseRecord:
    session_id: str
    username: str
    answers: List[str]
    raw_answers: List[int]
    items: List[str]
    personality_type: str
    personality_name: str
    personality_scores: Dict[str, int]
    suggestion: str
    timestamp: str
    ip: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "username": self.username,
            "answers": list(self.answers),
            "rawAnswers": list(self.raw_answers),
            "items": list(self.items),
            "personalityType": self.personality_type,
            "personalityName": self.personality_name,
            "personalityScores": dict(self.personality_scores),
            "suggestion": self.suggestion,
            "timestamp": self.timestamp,
            "ip": self.ip,
        }


def validate_submission(
    payload: Any,
    ip: Optional[str],
    questions: Sequence[Question] = QUESTIONS,
    now: Optional[datetime] = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> ResponseRecord:
    if not isinstance(payload, dict):
        payload = {}
    total = len(questions)

    username = payload.get("username")
    if not isinstance(username, str) or not username.strip():
        raise UserInputError("Please provide a username")

    answers = payload.get("answers")
    if not isinstance(answers, list) or len(answers) != total:
        raise UserInputError(f"Exactly {total} answers are required")

    raw_answers: List[int] = []
    readable: List[str] = []
    for position, answer in enumerate(answers):
        index = validate_answer_index(answer, MAX_OPTION_INDEX)
        if index is None:
            raise UserInputError(f"Answer to question {position + 1} is invalid")
        raw_answers.append(index)
        readable.append(readable_answer(list(questions), position, index))

    items = payload.get("items")
    if not isinstance(items, list) or len(items) != total:
        raise UserInputError("Collected items are invalid")

    personality_type = payload.get("personalityType")
    valid_keys = [trait.value for trait in TRAIT_ORDER]
    clean_type = personality_type if personality_type in valid_keys else ""

    raw_scores = payload.get("personalityScores")
    if not isinstance(raw_scores, dict):
        raw_scores = {}
    clean_scores = {key: clamp_score(raw_scores.get(key)) for key in valid_keys}

    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    return ResponseRecord(
        session_id=generate_session_id(),
        username=sanitize_input(username, USERNAME_MAX_LENGTH),
        answers=readable,
        raw_answers=raw_answers,
        items=[sanitize_input("" if item is None else str(item), ITEM_MAX_LENGTH) for item in items],
        personality_type=clean_type,
        personality_name=sanitize_input(payload.get("personalityName") or "", PERSONALITY_NAME_MAX_LENGTH),
        personality_scores=clean_scores,
        suggestion=sanitize_input(payload.get("suggestion") or "", SUGGESTION_MAX_LENGTH),
        timestamp=format_timestamp(moment, tz_name),
        ip=ip or "unknown",
        created_at=moment,
    )
