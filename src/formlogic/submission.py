"""
Submission — validating an AnswerSet against a Form and packaging it.

Only visible questions are checked. Visibility is computed per question
from raw answers (see formlogic.evaluator). Among visible questions, every
required one must have a non-empty answer.

Validation never raises. Failures are returned as a ValidationResult that
names EVERY missing question, not just the first.

Accepted answer sets are forwarded as-is: answers belonging to questions
that are currently hidden are NOT scrubbed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from formlogic.evaluator import is_visible, visible_questions
from formlogic.model import Form, Question
from formlogic.serialization import submission_to_dict

logger = logging.getLogger(__name__)


def is_answer_missing(answer: Any) -> bool:
    """None, "" and empty sequences all count as missing."""
    if answer is None or answer == "":
        return True
    if isinstance(answer, (list, tuple)) and len(answer) == 0:
        return True
    return False


@dataclass
class ValidationResult:
    """Outcome of validating an AnswerSet."""

    valid: bool
    missing_keys: List[str] = field(default_factory=list)
    missing_labels: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.valid:
            return ""
        return f"Please fill in required fields: {', '.join(self.missing_labels)}"


@dataclass
class SubmissionResult:
    """
    Validation outcome plus the payload for the persistence layer.

    payload is None when validation failed.
    """

    validation: ValidationResult
    payload: Optional[Dict[str, Any]] = None

    @property
    def accepted(self) -> bool:
        return self.validation.valid


def validate_answers(form: Form, answers: Mapping[str, Any]) -> ValidationResult:
    """
    Check that every visible, required question has an answer.

    Args:
        form: Assembled form
        answers: AnswerSet keyed by question key

    Returns:
        ValidationResult naming all missing questions in form order
    """
    visible = visible_questions(form, answers)
    missing = [
        q for q in visible
        if q.required and is_answer_missing(answers.get(q.question_key))
    ]
    logger.debug(
        "validated answers: %d of %d questions visible, %d missing",
        len(visible),
        len(form.questions),
        len(missing),
    )
    return ValidationResult(
        valid=not missing,
        missing_keys=[q.question_key for q in missing],
        missing_labels=[q.label for q in missing],
    )


def prepare_submission(form: Form, answers: Mapping[str, Any]) -> SubmissionResult:
    """
    Validate `answers` and, if valid, build the submission payload.

    The payload is {"answers": {question_key: value}} with every answer
    carried through unchanged.
    """
    validation = validate_answers(form, answers)
    if not validation.valid:
        logger.warning(
            "submission rejected for form %s: missing %s",
            form.id,
            ", ".join(validation.missing_keys),
        )
        return SubmissionResult(validation=validation)

    logger.info("submission accepted for form %s: %d answers", form.id, len(answers))
    return SubmissionResult(validation=validation, payload=submission_to_dict(answers))


def coerce_answer(question: Question, value: Any) -> Any:
    """
    Shape a raw input value for `question`'s type.

    Multi-valued types take a list of strings. A comma separated string
    is split and trimmed; None becomes an empty list and any other
    scalar a one-element list. Single-valued types take a string; None
    is kept as None.
    """
    if question.type.multi_valued:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set, frozenset)):
            return [str(item) for item in value]
        return [str(value)]

    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


class FormSession:
    """
    One respondent's pass through a Form.

    Holds the AnswerSet and re-runs the evaluator after every change.
    The Form itself is only read.
    """

    def __init__(self, form: Form, answers: Optional[Mapping[str, Any]] = None):
        self.form = form
        self.answers: Dict[str, Any] = dict(answers or {})

    def set_answer(self, question_key: str, value: Any) -> List[Question]:
        """
        Record an answer and return the questions now visible.

        Values for keys the form does not know are stored verbatim.
        """
        question = self.form.get_question(question_key)
        if question is not None:
            value = coerce_answer(question, value)
        self.answers[question_key] = value
        return self.visible_questions()

    def clear_answer(self, question_key: str) -> List[Question]:
        self.answers.pop(question_key, None)
        return self.visible_questions()

    def visible_questions(self) -> List[Question]:
        return visible_questions(self.form, self.answers)

    def is_visible(self, question_key: str) -> bool:
        question = self.form.get_question(question_key)
        if question is None:
            return False
        return is_visible(question.conditional_rules, self.answers)

    def validate(self) -> ValidationResult:
        return validate_answers(self.form, self.answers)

    def submit(self) -> SubmissionResult:
        """
        Validate and package the answers.

        On success the AnswerSet is discarded. On failure it is kept so
        the respondent can complete it.
        """
        result = prepare_submission(self.form, self.answers)
        if result.accepted:
            self.answers = {}
        return result
