from __future__ import annotations

import logging
from typing import Dict, List, Optional

from flask import Flask, redirect, render_template, request, send_file, session, url_for

from api import api, process_submission
from errors import InvalidTransition, StarterPackError, UserInputError
from logging_setup import configure_logging, with_context
from questions import DEFAULT_OPTION_EMOJIS, DEFAULT_PROMPT, QuestionKind, is_image_path
from quiz_state import QuizSession, Screen
from report import generate_result_card
from settings import settings
from submission import HttpTransport, LocalTransport, submit_quiz

app = Flask(__name__)
settings.apply(app)
app.register_blueprint(api)
configure_logging(app.config["LOG_DIR"])
app.add_template_global(is_image_path, "is_image_path")

logger = logging.getLogger(__name__)

SESSION_KEY = "quiz"
FINAL_PREVIEW_ITEMS = 5

OPTION_COLOR_CLASSES: List[str] = ["opt-color-0", "opt-color-1", "opt-color-2", "opt-color-3"]
REVEAL_GRADIENTS: List[str] = [
    "linear-gradient(180deg, #8b0000 0%, #c62828 35%, #e53935 100%)",
    "linear-gradient(180deg, #0a1660 0%, #1565c0 35%, #1976d2 100%)",
    "linear-gradient(180deg, #1a5c10 0%, #2e7d32 35%, #43a047 100%)",
    "linear-gradient(180deg, #7a6b08 0%, #a89920 40%, #c4b530 100%)",
]

COPY: Dict[str, Dict[str, str]] = {
    "site": {
        "title": "Campus Starter Pack",
        "tagline": "What does your campus life starter pack look like?",
        "footer": "Answers are stored for review by the organisers.",
    },
    "cover": {
        "name_label": "Your name",
        "name_placeholder": "Type your name",
        "start_button": "START",
        "continue_link": "Continue where you left off",
    },
    "reveal": {
        "next_button": "NEXT",
        "last_button": "See my result 🎉",
    },
    "summary": {
        "subtitle": "Your campus life is...",
        "next_button": "Next",
    },
    "suggestion": {
        "title": "Anything you'd like to tell us?",
        "placeholder": "Suggestions, ideas, or just say hi (optional)",
        "submit_button": "Submit",
        "pending": "Sending...",
    },
    "final": {
        "title": "Thanks for playing!",
        "items_collected": "{count} items collected",
        "download_pdf": "Download my starter pack (PDF)",
        "start_over": "Play again",
    },
    "errors": {
        "pdf_not_ready": "Finish the quiz before downloading your starter pack.",
    },
}

SCREEN_TEMPLATES: Dict[Screen, str] = {
    Screen.QUESTION: "question.html",
    Screen.SUB_QUESTION: "question.html",
    Screen.REVEAL: "reveal.html",
    Screen.SUMMARY: "summary.html",
    Screen.SUGGESTION: "suggestion.html",
    Screen.FINAL: "final.html",
}


@app.context_processor
def inject_copy():
    return {"copy": COPY}


def load_quiz() -> Optional[QuizSession]:
    data = session.get(SESSION_KEY)
    if not data:
        return None
    try:
        return QuizSession.from_dict(data)
    except (StarterPackError, ValueError, KeyError, TypeError, IndexError) as exc:
        logger.warning(with_context("Discarded unreadable quiz session", error=str(exc)))
        session.pop(SESSION_KEY, None)
        return None


def save_quiz(quiz: QuizSession) -> None:
    session[SESSION_KEY] = quiz.to_dict()


def get_transport():
    api_url = app.config.get("QUIZ_API_URL")
    if api_url:
        return HttpTransport(api_url, timeout=float(app.config.get("SUBMIT_TIMEOUT", 10)))
    ip = request.remote_addr
    return LocalTransport(lambda payload: process_submission(payload, ip))


def build_question_view(quiz: QuizSession) -> Dict[str, object]:
    question = quiz.question
    sub = quiz.active_sub_question if quiz.in_sub_question else None
    active = sub or question

    text: Optional[str] = question.text
    card_emoji: Optional[str] = None
    if sub is not None:
        if question.kind is QuestionKind.PER_OPTION_SUB and sub.text:
            text = sub.text
        else:
            text = None
            card_emoji = quiz.card_image

    emojis = active.option_emojis or DEFAULT_OPTION_EMOJIS
    options = [
        {
            "index": index,
            "label": label,
            "emoji": emojis[index] if index < len(emojis) else "😊",
            "color_class": OPTION_COLOR_CLASSES[index % len(OPTION_COLOR_CLASSES)],
        }
        for index, label in enumerate(active.options)
    ]
    return {
        "text": text,
        "card_emoji": card_emoji,
        "prompt": active.prompt or DEFAULT_PROMPT,
        "multiline_prompt": sub is not None,
        "options": options,
    }


def render_screen(quiz: QuizSession, error: Optional[str] = None, status: int = 200):
    context = {"quiz": quiz, "error": error}
    if quiz.screen in (Screen.QUESTION, Screen.SUB_QUESTION):
        context["view"] = build_question_view(quiz)
    elif quiz.screen is Screen.REVEAL:
        index = quiz.last_option_index or 0
        context["gradient"] = REVEAL_GRADIENTS[index % len(REVEAL_GRADIENTS)]
    elif quiz.screen in (Screen.SUMMARY, Screen.SUGGESTION, Screen.FINAL):
        context["result"] = quiz.result
        context["preview_items"] = quiz.collected_items[:FINAL_PREVIEW_ITEMS]
    return render_template(SCREEN_TEMPLATES[quiz.screen], **context), status


@app.get("/")
def cover():
    return render_template("cover.html", error=None, in_progress=load_quiz() is not None)


@app.post("/start")
def start():
    try:
        quiz = QuizSession.start(request.form.get("username"))
    except UserInputError as error:
        return render_template("cover.html", error=error.message, in_progress=False), 400
    save_quiz(quiz)
    logger.info(with_context("Quiz started", user=quiz.username))
    return redirect(url_for("quiz_screen"))


@app.get("/quiz")
def quiz_screen():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("cover"))
    return render_screen(quiz)


@app.post("/quiz/answer")
def answer():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("cover"))
    try:
        quiz.select_option(request.form.get("option", type=int))
    except UserInputError as error:
        return render_screen(quiz, error=error.message, status=400)
    except InvalidTransition:
        # stale form, e.g. after the back button
        return redirect(url_for("quiz_screen"))
    save_quiz(quiz)
    return redirect(url_for("quiz_screen"))


@app.post("/quiz/next")
def next_question():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("cover"))
    try:
        quiz.advance()
    except InvalidTransition:
        return redirect(url_for("quiz_screen"))
    if quiz.screen is Screen.SUMMARY:
        logger.info(
            with_context(
                "Quiz completed",
                user=quiz.username,
                scores={trait.value: count for trait, count in quiz.trait_scores.items()},
                result=quiz.personality_key.value,
            )
        )
    save_quiz(quiz)
    return redirect(url_for("quiz_screen"))


@app.post("/quiz/suggest")
def suggest():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("cover"))
    try:
        quiz.show_suggestion()
    except InvalidTransition:
        return redirect(url_for("quiz_screen"))
    save_quiz(quiz)
    return redirect(url_for("quiz_screen"))


@app.post("/quiz/submit")
def submit_answers():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("cover"))
    try:
        outcome = submit_quiz(quiz, request.form.get("suggestion", ""), get_transport())
    except InvalidTransition:
        return redirect(url_for("quiz_screen"))
    save_quiz(quiz)
    if not outcome.ok:
        return render_screen(quiz, error=outcome.message)
    return redirect(url_for("quiz_screen"))


@app.get("/quiz/restart")
def restart():
    session.pop(SESSION_KEY, None)
    return redirect(url_for("cover"))


@app.get("/quiz/card.pdf")
def export_card():
    quiz = load_quiz()
    if quiz is None or quiz.screen is not Screen.FINAL:
        return (COPY["errors"]["pdf_not_ready"], 400)

    pdf_buffer = generate_result_card(
        username=quiz.username,
        result=quiz.result,
        items=quiz.collected_items,
        scores=quiz.trait_scores,
    )
    filename = f"StarterPack_{quiz.personality_key.value}.pdf"
    return send_file(
        pdf_buffer,
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    app.run(debug=True, port=5001)
