"""
Rule Evaluator — decides whether a Question is visible.

This is a pure function over (Rule, AnswerSet). It is re-run for every
question on every answer change, so it must stay cheap: one dictionary
lookup and one comparison per condition.

Evaluation policy:
    - No rule, or a rule without conditions: visible.
    - A condition whose referenced answer is absent, None or "" is False
      under EVERY operator, notEquals included. An unanswered
      prerequisite never satisfies a condition.
    - Unknown operators evaluate False.
    - Unknown logic values combine like AND.

Conditions look at raw answers only. Whether the referenced question is
itself visible, or where it sits in the form, is not considered.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from formlogic.model import Form, Question
from formlogic.rules import Condition, ConditionOperator, LogicOperator, Rule


def _is_unanswered(answer: Any) -> bool:
    return answer is None or answer == ""


def _is_sequence(answer: Any) -> bool:
    return isinstance(answer, (list, tuple))


def _equals(answer: Any, value: Any) -> bool:
    if _is_sequence(answer):
        return value in answer or any(str(item) == str(value) for item in answer)
    return str(answer) == str(value)


def _contains(answer: Any, value: Any) -> bool:
    if _is_sequence(answer):
        haystack = " ".join(str(item) for item in answer)
    else:
        haystack = str(answer)
    return str(value).lower() in haystack.lower()


def _operator_of(condition: Condition) -> Any:
    operator = condition.operator
    if isinstance(operator, ConditionOperator):
        return operator
    try:
        return ConditionOperator(operator)
    except ValueError:
        return operator


def evaluate_condition(condition: Condition, answers: Mapping[str, Any]) -> bool:
    """Evaluate one condition against the answers given so far."""
    if not condition.is_configured:
        return False

    answer = answers.get(condition.question_key)

    if _is_unanswered(answer):
        return False

    operator = _operator_of(condition)
    if operator == ConditionOperator.EQUALS:
        return _equals(answer, condition.value)
    if operator == ConditionOperator.NOT_EQUALS:
        return not _equals(answer, condition.value)
    if operator == ConditionOperator.CONTAINS:
        return _contains(answer, condition.value)

    return False


def is_visible(rule: Optional[Rule], answers: Mapping[str, Any]) -> bool:
    """
    Decide visibility of a question carrying `rule`.

    Args:
        rule: The question's conditional rule, or None
        answers: AnswerSet keyed by question key

    Returns:
        True if the question should be shown
    """
    if rule is None or not rule.conditions:
        return True

    results = (evaluate_condition(c, answers) for c in rule.conditions)

    if rule.logic in (LogicOperator.OR, LogicOperator.OR.value):
        return any(results)
    return all(results)


def is_question_visible(question: Question, answers: Mapping[str, Any]) -> bool:
    return is_visible(question.conditional_rules, answers)


def visible_questions(form: Form, answers: Mapping[str, Any]) -> List[Question]:
    """Questions of `form` visible under `answers`, in form order."""
    return [q for q in form.questions if is_visible(q.conditional_rules, answers)]
