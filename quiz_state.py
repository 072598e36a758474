"""
Quiz state machine.

One ``QuizSession`` per quiz attempt, created fresh by ``QuizSession.start``
and passed to every transition. The web controller keeps it in the signed
cookie session through ``to_dict``/``from_dict``; nothing here touches
Flask, so the machine can be driven directly in tests.

Screens: COVER -> QUESTION -> (SUB_QUESTION) -> REVEAL -> (QUESTION | SUMMARY)
-> SUGGESTION -> FINAL.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from errors import InvalidTransition, UserInputError
from questions import (
    DEFAULT_REVEAL_SUBTITLE,
    QUESTIONS,
    TRAIT_ORDER,
    Question,
    QuestionKind,
    Reward,
    SubQuestion,
    Trait,
)
from scoring import PersonalityResult, get_result, resolve_personality

USERNAME_MAX_LENGTH = 30


class Screen(str, Enum):
    COVER = "cover"
    QUESTION = "question"
    SUB_QUESTION = "sub_question"
    REVEAL = "reveal"
    SUMMARY = "summary"
    SUGGESTION = "suggestion"
    FINAL = "final"


class QuizSession:
    def __init__(self, username: str, questions: Sequence[Question] = QUESTIONS):
        self.questions = list(questions)
        self.username = username
        self.screen = Screen.QUESTION
        self.current_question = 0
        self.in_sub_question = False
        self.active_sub_question: Optional[SubQuestion] = None
        self.parent_option_index: Optional[int] = None
        self.selected_answers: List[int] = []
        self.collected_items: List[Reward] = []
        self.trait_scores: Dict[Trait, int] = {trait: 0 for trait in TRAIT_ORDER}
        self.last_reward: Optional[Reward] = None
        self.last_option_index: Optional[int] = None
        self.last_reveal_subtitle = DEFAULT_REVEAL_SUBTITLE
        self.suggestion = ""
        self.pending = False
        # (parent option, chosen option) per answered question, used for replay
        self._picks: List[Tuple[Optional[int], int]] = []

    @classmethod
    def start(cls, name: Optional[str], questions: Sequence[Question] = QUESTIONS) -> "QuizSession":
        username = (name or "").strip()
        if not username:
            raise UserInputError("Please enter your name first!")
        return cls(username[:USERNAME_MAX_LENGTH], questions)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def question(self) -> Question:
        return self.questions[self.current_question]

    @property
    def active_options(self) -> Tuple[str, ...]:
        if self.in_sub_question and self.active_sub_question is not None:
            return self.active_sub_question.options
        return self.question.options

    @property
    def is_last_question(self) -> bool:
        return self.current_question >= self.total_questions - 1

    @property
    def progress_label(self) -> str:
        return f"{min(self.current_question + 1, self.total_questions)}/{self.total_questions}"

    @property
    def card_image(self) -> Optional[str]:
        """Card emoji for a shared sub-question, picked by the parent's option."""
        sub = self.active_sub_question
        if not self.in_sub_question or sub is None or self.question.kind is not QuestionKind.SHARED_SUB:
            return None
        if self.parent_option_index is not None and self.parent_option_index < len(sub.images):
            return sub.images[self.parent_option_index]
        return "🐾"

    @property
    def personality_key(self) -> Trait:
        return resolve_personality(self.trait_scores)

    @property
    def result(self) -> PersonalityResult:
        return get_result(self.personality_key)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _require(self, *screens: Screen) -> None:
        if self.screen not in screens:
            allowed = ", ".join(screen.value for screen in screens)
            raise InvalidTransition(f"Action not allowed on {self.screen.value} (expected {allowed})")

    def _clear_sub_question(self) -> None:
        self.in_sub_question = False
        self.active_sub_question = None
        self.parent_option_index = None

    def select_option(self, index: int) -> Optional[Reward]:
        """
        Answer the question on screen.

        Returns ``None`` when the choice opens a sub-question (nothing is
        scored yet), otherwise the reward that was collected.
        """
        self._require(Screen.QUESTION, Screen.SUB_QUESTION)
        options = self.active_options
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(options):
            raise UserInputError(f"Option {index!r} is not available for question {self.current_question + 1}")

        question = self.question
        if not self.in_sub_question and question.kind is not QuestionKind.PLAIN:
            self.parent_option_index = index
            self.active_sub_question = question.sub_question_for(index)
            self.in_sub_question = True
            self.screen = Screen.SUB_QUESTION
            return None

        active = self.active_sub_question if self.in_sub_question else question
        reward = active.rewards[index]

        self._picks.append((self.parent_option_index, index))
        self.selected_answers.append(index)
        self.collected_items.append(reward)

        types = active.types or question.types
        if types:
            self.trait_scores[types[index]] += 1

        self.last_reward = reward
        self.last_option_index = index
        self.last_reveal_subtitle = active.reveal_subtitle or question.reveal_subtitle or DEFAULT_REVEAL_SUBTITLE
        self._clear_sub_question()
        self.screen = Screen.REVEAL
        return reward

    def advance(self) -> Screen:
        self._require(Screen.REVEAL)
        self.current_question += 1
        self._clear_sub_question()
        if self.current_question < self.total_questions:
            self.screen = Screen.QUESTION
        else:
            self.screen = Screen.SUMMARY
        return self.screen

    def show_suggestion(self) -> None:
        self._require(Screen.SUMMARY)
        self.screen = Screen.SUGGESTION

    def begin_submit(self) -> None:
        self._require(Screen.SUGGESTION)
        if self.pending:
            raise InvalidTransition("A submission is already in progress")
        self.pending = True

    def finish_submit(self, succeeded: bool) -> None:
        self.pending = False
        if succeeded:
            self.screen = Screen.FINAL

    # ------------------------------------------------------------------
    # Cookie-session round trip
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "screen": self.screen.value,
            "picks": [[parent, option] for parent, option in self._picks],
            "parent": self.parent_option_index if self.in_sub_question else None,
            "suggestion": self.suggestion,
        }

    @classmethod
    def from_dict(cls, data: dict, questions: Sequence[Question] = QUESTIONS) -> "QuizSession":
        """Rebuild a session by replaying its recorded picks through the transitions."""
        session = cls.start(data.get("username"), questions)
        picks = data.get("picks") or []
        screen = Screen(data.get("screen", Screen.QUESTION.value))

        for position, (parent, option) in enumerate(picks):
            if position:
                session.advance()
            if parent is not None:
                session.select_option(parent)
            session.select_option(option)

        if picks and screen is not Screen.REVEAL:
            session.advance()
        if data.get("parent") is not None:
            session.select_option(data["parent"])
        if screen in (Screen.SUGGESTION, Screen.FINAL):
            session.show_suggestion()
        if screen is Screen.FINAL:
            session.finish_submit(True)
        if screen is not session.screen:
            raise InvalidTransition(f"Stored screen {screen.value} does not match replayed {session.screen.value}")

        session.suggestion = data.get("suggestion") or ""
        return session
