"""
Rule Tree for conditional question visibility.

A Rule is a deliberately flat, two-level boolean structure:

    Rule(logic, [Condition, Condition, ...])

One logic operator combines a list of atomic Conditions. Each Condition
compares the answer of another Question (addressed by its question key)
against a literal string value.

ARCHITECTURAL RULE:
    These objects are structure only.
    Evaluation lives in formlogic.evaluator.
    Authoring transitions live in formlogic.authoring.

Rules and Conditions are frozen. Every change produces a new value.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union


class LogicOperator(Enum):
    """
    How the Conditions of a Rule are combined.

    AND is the default. Any logic value that is not one of these members
    (for example, read from a hand-edited form record) is evaluated as AND.
    """

    AND = "AND"
    OR = "OR"


class ConditionOperator(Enum):
    """
    Comparison operators available to a Condition.

    Keep this minimal. The wire value of each member is what gets stored
    in form records.

        equals     - case-sensitive match (element match for list answers)
        notEquals  - negation of equals, for an answer that is present
        contains   - case-insensitive substring match
    """

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"


DEFAULT_LOGIC = LogicOperator.AND
DEFAULT_OPERATOR = ConditionOperator.EQUALS


@dataclass(frozen=True)
class Condition:
    """
    An atomic comparison of another Question's answer against a value.

    Properties:
        question_key:
            Key of the referenced Question in the same Form.
            An empty key means "not yet configured" and never matches.

        operator:
            ConditionOperator, or the raw string of an operator this
            package does not recognise. Unknown operators evaluate False.

        value:
            Literal target value, compared as a string.

    IMPORTANT:
        The referenced key is NOT checked for existence here.
        A dangling reference simply never matches.
    """

    question_key: str = ""
    operator: Union[ConditionOperator, str] = DEFAULT_OPERATOR
    value: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.question_key)


@dataclass(frozen=True)
class Rule:
    """
    Visibility rule attached to a Question.

    A Rule with zero conditions is structurally present but means
    "no restriction": the Question is always visible.

    Properties:
        logic: LogicOperator (or raw unknown string, evaluated as AND)
        conditions: Ordered tuple of Conditions
    """

    logic: Union[LogicOperator, str] = DEFAULT_LOGIC
    conditions: Tuple[Condition, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return len(self.conditions) == 0

    def referenced_keys(self) -> Tuple[str, ...]:
        """Question keys referenced by configured conditions, in order."""
        return tuple(c.question_key for c in self.conditions if c.is_configured)


def parse_logic(value: Union[LogicOperator, str, None]) -> Union[LogicOperator, str]:
    """
    Map a wire value to a LogicOperator.

    None maps to the default. Unrecognised strings are returned unchanged
    so the evaluator can degrade them to AND.
    """
    if value is None or value == "":
        return DEFAULT_LOGIC
    if isinstance(value, LogicOperator):
        return value
    try:
        return LogicOperator(value)
    except ValueError:
        return value


def parse_operator(value: Union[ConditionOperator, str, None]) -> Union[ConditionOperator, str]:
    """
    Map a wire value to a ConditionOperator.

    Unrecognised strings are returned unchanged; they evaluate False.
    """
    if value is None or value == "":
        return DEFAULT_OPERATOR
    if isinstance(value, ConditionOperator):
        return value
    try:
        return ConditionOperator(value)
    except ValueError:
        return value


def wire_value(member: Union[Enum, str]) -> str:
    if isinstance(member, Enum):
        return member.value
    return member
