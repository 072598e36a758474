import pytest

from questions import (
    MAX_OPTIONS,
    QUESTIONS,
    TOTAL_QUESTIONS,
    Question,
    QuestionKind,
    Reward,
    SubQuestion,
    Trait,
    is_image_path,
    readable_answer,
)


def _rewards(count):
    return tuple(Reward(f"r{index}", "", "🎁") for index in range(count))


def test_bank_has_ten_questions_in_order():
    assert TOTAL_QUESTIONS == 10
    assert [question.index for question in QUESTIONS] == list(range(TOTAL_QUESTIONS))


@pytest.mark.parametrize("question", QUESTIONS, ids=lambda q: f"q{q.number}")
def test_every_question_is_parallel(question):
    assert 2 <= len(question.options) <= MAX_OPTIONS
    assert len(question.options) == len(question.rewards)
    if question.types:
        assert len(question.types) == len(question.options)
    for sub in question.sub_questions or ((question.sub_question,) if question.sub_question else ()):
        assert len(sub.options) == len(sub.rewards)


def test_question_kinds_are_resolved_once():
    kinds = [question.kind for question in QUESTIONS]
    assert kinds[1] is QuestionKind.SHARED_SUB
    assert kinds[3] is QuestionKind.PER_OPTION_SUB
    assert all(kind is QuestionKind.PLAIN for position, kind in enumerate(kinds) if position not in (1, 3))


def test_sub_question_for_selects_by_parent_index():
    per_option = QUESTIONS[3]
    assert per_option.sub_question_for(2) is per_option.sub_questions[2]

    shared = QUESTIONS[1]
    assert shared.sub_question_for(0) is shared.sub_question_for(3) is shared.sub_question

    assert QUESTIONS[0].sub_question_for(0) is None


def test_mismatched_rewards_are_rejected():
    with pytest.raises(ValueError):
        Question(index=0, text="?", options=("a", "b", "c"), rewards=_rewards(2))


def test_mismatched_types_are_rejected():
    with pytest.raises(ValueError):
        Question(index=0, text="?", options=("a", "b"), rewards=_rewards(2), types=(Trait.C,))


def test_question_cannot_declare_both_sub_question_shapes():
    sub = SubQuestion(text="", prompt="", options=("x", "y"), rewards=_rewards(2))
    with pytest.raises(ValueError):
        Question(
            index=0,
            text="?",
            options=("a", "b"),
            rewards=_rewards(2),
            sub_question=sub,
            sub_questions=(sub, sub),
        )


def test_per_option_sub_questions_must_cover_every_option():
    sub = SubQuestion(text="", prompt="", options=("x", "y"), rewards=_rewards(2))
    with pytest.raises(ValueError):
        Question(index=0, text="?", options=("a", "b", "c"), rewards=_rewards(3), sub_questions=(sub,))


def test_trait_alphabet_is_closed():
    assert [trait.value for trait in Trait] == ["C", "P", "F", "L"]
    with pytest.raises(ValueError):
        Trait("X")


def test_readable_option_uses_the_answered_question():
    assert QUESTIONS[0].readable_option(0) == QUESTIONS[0].options[0]
    assert QUESTIONS[1].readable_option(2) == QUESTIONS[1].sub_question.options[2]

    per_option = QUESTIONS[3].readable_option(1)
    for sub in QUESTIONS[3].sub_questions:
        assert sub.options[1] in per_option


def test_readable_answer_marks_unknown_options():
    assert QUESTIONS[0].readable_option(7) == "Unknown (7)"
    assert readable_answer(QUESTIONS, 42, 1) == "Unknown (1)"


def test_is_image_path():
    assert is_image_path("assets/items/pan.png")
    assert is_image_path("cat.webp")
    assert not is_image_path("🐱")
    assert not is_image_path("")
    assert not is_image_path(None)
