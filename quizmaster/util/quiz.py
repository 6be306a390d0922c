"""Quiz file parsing and per-room option shuffling."""

import json
import random
import re
from typing import Any

from pydantic import ValidationError

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.room import Question, Quiz

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


def _invalid_quiz(message: str, **details: Any) -> QuizDomainError:
    return QuizDomainError(
        code=DomainErrorCode.INVALID_QUIZ,
        message=message,
        details=details,
    )


def load_quiz_data(quiz_file: str | bytes | dict[str, Any]) -> dict[str, Any]:
    if isinstance(quiz_file, dict):
        return quiz_file
    try:
        data = json.loads(quiz_file)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise _invalid_quiz("Quiz file is not valid JSON", error=str(exc)) from exc
    if not isinstance(data, dict):
        raise _invalid_quiz("Quiz file must contain a JSON object")
    return data


def parse_quiz(quiz_file: str | bytes | dict[str, Any]) -> Quiz:
    """Validate a quiz file and return it as a ``Quiz``.

    The file needs a non-empty ``questions`` array; each question needs text,
    at least four options and a ``correct`` index inside the option list.
    """
    data = load_quiz_data(quiz_file)
    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        raise _invalid_quiz("Quiz must contain a non-empty 'questions' array")

    try:
        return Quiz.model_validate(data)
    except ValidationError as exc:
        raise _invalid_quiz(
            "Quiz contains malformed questions",
            errors=[
                {"location": list(error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ],
        ) from exc


def extract_quiz(text: str) -> Quiz:
    """Pull a quiz out of free-form model output.

    Tries the whole text as JSON first, then the outermost ``{...}`` block.
    """
    try:
        return parse_quiz(text)
    except QuizDomainError as direct_error:
        match = JSON_OBJECT_PATTERN.search(text or "")
        if match is None:
            raise direct_error
        data = load_quiz_data(match.group(0))
        if "error" in data and "questions" not in data:
            raise _invalid_quiz(str(data["error"])) from direct_error
        return parse_quiz(data)


def shuffle_question(question: Question, rng: random.Random) -> Question:
    order = list(range(len(question.options)))
    for i in range(len(order) - 1, 0, -1):
        j = rng.randint(0, i)
        order[i], order[j] = order[j], order[i]

    return question.model_copy(
        update={
            "options": [question.options[index] for index in order],
            "correct": order.index(question.correct),
        }
    )


def shuffle_quiz(quiz: Quiz, rng: random.Random | None = None) -> Quiz:
    rng = rng or random.Random()
    return quiz.model_copy(
        update={"questions": [shuffle_question(q, rng) for q in quiz.questions]}
    )
