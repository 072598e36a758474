"""
Packaging a finished quiz and sending it to the submission endpoint.

A transport is any callable ``transport(payload) -> (status_code, body)``.
``LocalTransport`` runs the server pipeline in-process; ``HttpTransport``
posts to a remote ``/api/submit`` with httpx. Either one raises
``TransportError`` when no usable response comes back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from errors import TransportError
from logging_setup import with_context
from quiz_state import QuizSession

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Saved! Thanks for playing 🎉"
GENERIC_FAILURE = "Something went wrong, please try again"
CONNECTION_FAILURE = "Could not reach the server, please try again"

Transport = Callable[[Dict[str, Any]], Tuple[int, Dict[str, Any]]]


@dataclass(frozen=True)
class SubmissionOutcome:
    ok: bool
    message: str


def build_payload(session: QuizSession, suggestion: str = "") -> Dict[str, Any]:
    result = session.result
    return {
        "username": session.username,
        "answers": list(session.selected_answers),
        "items": [item.name for item in session.collected_items],
        "suggestion": (suggestion or "").strip(),
        "personalityType": session.personality_key.value,
        "personalityName": result.display_name,
        "personalityScores": {trait.value: count for trait, count in session.trait_scores.items()},
    }


class LocalTransport:
    """Calls the submission pipeline directly (same process as the UI)."""

    def __init__(self, handler: Callable[[Dict[str, Any]], Tuple[int, Dict[str, Any]]]):
        self._handler = handler

    def __call__(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        return self._handler(payload)


class HttpTransport:
    """Posts the payload to ``<base_url>/api/submit``."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.url = base_url.rstrip("/") + "/api/submit"
        self._timeout = timeout
        self._client = client

    def __call__(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        try:
            if self._client is not None:
                response = self._client.post(self.url, json=payload, timeout=self._timeout)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise TransportError(f"Submission request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(f"Submission returned non-JSON ({response.status_code})") from exc
        if not isinstance(body, dict):
            raise TransportError("Submission returned an unexpected body")
        return response.status_code, body


def submit_quiz(session: QuizSession, suggestion: str, transport: Transport) -> SubmissionOutcome:
    """
    Send one submission for a session on the suggestion screen.

    The session is marked pending for the duration of the call so a second
    submit is rejected. On success the session moves to the final screen;
    on any failure it stays where it was, answers intact, ready to retry.
    """
    session.suggestion = (suggestion or "").strip()
    session.begin_submit()
    succeeded = False
    try:
        payload = build_payload(session, session.suggestion)
        try:
            status, body = transport(payload)
        except TransportError as exc:
            logger.warning(with_context("Submission transport failed", user=session.username, error=str(exc)))
            return SubmissionOutcome(False, CONNECTION_FAILURE)

        if body.get("success") is True:
            succeeded = True
            return SubmissionOutcome(True, body.get("message") or SUCCESS_MESSAGE)

        message = body.get("message") or GENERIC_FAILURE
        logger.warning(with_context("Submission rejected", user=session.username, status=status, message=message))
        return SubmissionOutcome(False, f"Something went wrong: {message}")
    finally:
        session.finish_submit(succeeded)

