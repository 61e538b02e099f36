"""
Form Analyzer — read-only diagnostics of a Form's visibility rules.

The evaluator deliberately looks at raw answers only. It does not care
whether a referenced question exists, comes later in the form, is the
question itself, or is hidden. Those situations are legal but usually
confusing for respondents, so this module reports them.

IMPORTANT: This module does NOT modify the form and does NOT change how
rules are evaluated. It only produces reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from formlogic.model import Form
from formlogic.rules import ConditionOperator, LogicOperator, parse_logic, parse_operator


Reference = Tuple[str, str]


@dataclass
class FormReport:
    """Analysis report for a form. References are (question, referenced) pairs."""

    form_id: str | None
    total_questions: int = 0
    required_questions: int = 0
    conditional_questions: int = 0
    total_conditions: int = 0

    dangling_references: Set[Reference] = field(default_factory=set)
    self_references: Set[str] = field(default_factory=set)
    forward_references: Set[Reference] = field(default_factory=set)
    chained_references: Set[Reference] = field(default_factory=set)
    unconfigured_conditions: Dict[str, int] = field(default_factory=dict)
    unknown_operators: Set[str] = field(default_factory=set)
    unknown_logic: Set[str] = field(default_factory=set)
    empty_rules: Set[str] = field(default_factory=set)
    duplicate_keys: Set[str] = field(default_factory=set)

    # Warnings and flags
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        if msg not in self.warnings:
            self.warnings.append(msg)


def _format_pairs(pairs: Set[Reference]) -> str:
    return ", ".join(f"{a} -> {b}" for a, b in sorted(pairs))


def analyze_form(form: Form) -> FormReport:
    """
    Inspect every question's rule in `form`.

    Checks for:
    - References to keys no question has
    - Conditions with no question selected yet
    - Questions conditional on themselves
    - Questions conditional on a later question
    - Questions conditional on a question that is itself conditional
    - Unknown operators and logic values
    - Rules with no conditions

    Returns a FormReport with counts and warnings.
    """
    report = FormReport(form_id=form.id)
    report.total_questions = len(form.questions)

    position: Dict[str, int] = {}
    for index, question in enumerate(form.questions):
        if question.question_key in position:
            report.duplicate_keys.add(question.question_key)
        else:
            position[question.question_key] = index

    conditional_keys = {q.question_key for q in form.questions if q.is_conditional}

    for index, question in enumerate(form.questions):
        key = question.question_key
        if question.required:
            report.required_questions += 1

        rule = question.conditional_rules
        if rule is None:
            continue
        if rule.is_empty:
            report.empty_rules.add(key)
            continue

        report.conditional_questions += 1
        report.total_conditions += len(rule.conditions)

        if not isinstance(parse_logic(rule.logic), LogicOperator):
            report.unknown_logic.add(str(rule.logic))

        for condition in rule.conditions:
            if not isinstance(parse_operator(condition.operator), ConditionOperator):
                report.unknown_operators.add(str(condition.operator))

            target = condition.question_key
            if not target:
                report.unconfigured_conditions[key] = report.unconfigured_conditions.get(key, 0) + 1
                continue
            if target == key:
                report.self_references.add(key)
                continue
            if target not in position:
                report.dangling_references.add((key, target))
                continue
            if position[target] > index:
                report.forward_references.add((key, target))
            if target in conditional_keys:
                report.chained_references.add((key, target))

    # =========================================================================
    # WARNING FLAGS
    # =========================================================================

    if report.duplicate_keys:
        report.add_warning(f"Duplicate question keys: {', '.join(sorted(report.duplicate_keys))}")

    if report.dangling_references:
        report.add_warning(
            f"Conditions reference unknown questions (never match): {_format_pairs(report.dangling_references)}"
        )

    if report.unconfigured_conditions:
        report.add_warning(
            f"Conditions without a question selected: {', '.join(sorted(report.unconfigured_conditions))}"
        )

    if report.self_references:
        report.add_warning(
            f"Questions conditional on their own answer: {', '.join(sorted(report.self_references))}"
        )

    if report.forward_references:
        report.add_warning(
            f"Conditions reference later questions: {_format_pairs(report.forward_references)}"
        )

    if report.chained_references:
        report.add_warning(
            f"Conditions reference questions that may be hidden: {_format_pairs(report.chained_references)}"
        )

    if report.unknown_operators:
        report.add_warning(f"Unknown operators (never match): {', '.join(sorted(report.unknown_operators))}")

    if report.unknown_logic:
        report.add_warning(f"Unknown logic (combined as AND): {', '.join(sorted(report.unknown_logic))}")

    if report.empty_rules:
        report.add_warning(f"Rules without conditions: {', '.join(sorted(report.empty_rules))}")

    return report
