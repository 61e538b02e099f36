"""
Authoring — operator actions that produce Questions and assemble a Form.

Two layers:

1. Rule transitions (pure functions over Optional[Rule]).

       NoRule (None)  --enable_conditional_logic-->  HasRule(AND, [])
       HasRule        --set_logic / add_condition / update_condition-->  HasRule
       HasRule        --remove_condition (last one)-->  NoRule
       HasRule        --disable_conditional_logic-->  NoRule

   Transitions that are not valid in the current state are ignored: the
   input is returned unchanged. Nothing here raises.

2. FormBuilder, the single owner of one authoring session. It holds the
   field catalogue and the selected questions, applies every change to
   exactly one question, and packages the result into a Form.

There is no terminal state. The machine is re-entrant for the whole
session.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Union

from formlogic.model import (
    Field,
    Form,
    FormLogicError,
    Question,
    question_from_field,
    replace_question,
)
from formlogic.rules import (
    DEFAULT_LOGIC,
    Condition,
    ConditionOperator,
    LogicOperator,
    Rule,
    parse_logic,
    parse_operator,
)

logger = logging.getLogger(__name__)

CONDITION_FIELDS = frozenset({"question_key", "operator", "value"})


class FormAssemblyError(FormLogicError, ValueError):
    """Raised when the selected questions cannot be packaged into a Form."""


# =========================================================================
# RULE TRANSITIONS
# =========================================================================


def enable_conditional_logic(rule: Optional[Rule]) -> Rule:
    if rule is not None:
        return rule
    return Rule(logic=LogicOperator.AND, conditions=())


def disable_conditional_logic(rule: Optional[Rule]) -> None:
    return None


def set_logic(rule: Optional[Rule], logic: Union[LogicOperator, str]) -> Optional[Rule]:
    if rule is None:
        logger.debug("set_logic ignored: no rule")
        return None
    return replace(rule, logic=parse_logic(logic))


def add_condition(rule: Optional[Rule]) -> Optional[Rule]:
    """Append an unconfigured condition (empty key, equals, empty value)."""
    if rule is None:
        logger.debug("add_condition ignored: no rule")
        return None
    blank = Condition(question_key="", operator=ConditionOperator.EQUALS, value="")
    return replace(rule, conditions=rule.conditions + (blank,))


def update_condition(rule: Optional[Rule], index: int, **changes) -> Optional[Rule]:
    """
    Merge `changes` into the condition at `index`.

    Accepted keys are question_key, operator and value. The referenced
    question key is not checked here; a bad reference just never matches.
    Any other key is dropped.
    """
    if rule is None:
        logger.debug("update_condition ignored: no rule")
        return None
    if not 0 <= index < len(rule.conditions):
        logger.debug("update_condition ignored: index %d out of range", index)
        return rule

    unknown = set(changes) - CONDITION_FIELDS
    if unknown:
        logger.debug("update_condition ignoring unknown keys: %s", sorted(unknown))
        changes = {k: v for k, v in changes.items() if k in CONDITION_FIELDS}

    if "operator" in changes:
        changes["operator"] = parse_operator(changes["operator"])

    conditions = tuple(
        replace(c, **changes) if i == index else c
        for i, c in enumerate(rule.conditions)
    )
    return replace(rule, conditions=conditions)


def remove_condition(rule: Optional[Rule], index: int) -> Optional[Rule]:
    """
    Remove the condition at `index`.

    Removing the last remaining condition collapses the rule to None:
    an empty rule is never kept around.
    """
    if rule is None:
        logger.debug("remove_condition ignored: no rule")
        return None
    if not 0 <= index < len(rule.conditions):
        logger.debug("remove_condition ignored: index %d out of range", index)
        return rule
    if len(rule.conditions) <= 1:
        return None

    conditions = tuple(c for i, c in enumerate(rule.conditions) if i != index)
    return replace(rule, conditions=conditions)


def normalize_rule(rule: Optional[Rule]) -> Optional[Rule]:
    """Collapse an empty rule to None and default a missing logic to AND."""
    if rule is None or rule.is_empty:
        return None
    if not rule.logic:
        return replace(rule, logic=DEFAULT_LOGIC)
    return rule


# =========================================================================
# FORM BUILDER
# =========================================================================


class FormBuilder:
    """
    One operator's authoring session.

    Questions are addressed by the id of the source field they were built
    from. A field can be selected at most once, so the id is stable for
    the lifetime of the selection, even when the question key is renamed.

    Not safe for concurrent use; a single active editor is assumed.
    """

    def __init__(
        self,
        fields: Iterable[Field] = (),
        source_base_id: str = "",
        source_table_id: str = "",
    ):
        self.fields: List[Field] = list(fields)
        self.source_base_id = source_base_id
        self.source_table_id = source_table_id
        self.questions: List[Question] = []

    # -- catalogue ---------------------------------------------------------

    def select_base(self, base_id: str) -> None:
        """Choose a base. Resets table, catalogue and selection."""
        self.source_base_id = base_id
        self.source_table_id = ""
        self.fields = []
        self.questions = []

    def select_table(self, table_id: str, fields: Iterable[Field] = ()) -> None:
        """Choose a table and load its fields. Resets the selection."""
        self.source_table_id = table_id
        self.fields = list(fields)
        self.questions = []

    def get_field(self, field_id: str) -> Optional[Field]:
        for candidate in self.fields:
            if candidate.id == field_id:
                return candidate
        return None

    # -- selection ---------------------------------------------------------

    def is_selected(self, field_id: str) -> bool:
        return any(q.source_field_id == field_id for q in self.questions)

    def select_field(self, source: Field) -> Question:
        """
        Add a question for `source` with the default configuration.

        Selecting an already selected field returns the existing question.

        Raises:
            UnsupportedFieldTypeError: If the field type is not supported
        """
        existing = self.question(source.id)
        if existing is not None:
            return existing

        question = question_from_field(source)
        self.questions = self.questions + [question]
        return question

    def deselect_field(self, field_id: str) -> None:
        """
        Drop the question built from `field_id`.

        Conditions in other questions that reference its key are left in
        place and simply stop matching.
        """
        self.questions = [q for q in self.questions if q.source_field_id != field_id]

    def toggle_field(self, source: Field) -> bool:
        """Select or deselect `source`. Returns True if now selected."""
        if self.is_selected(source.id):
            self.deselect_field(source.id)
            return False
        self.select_field(source)
        return True

    def question(self, field_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.source_field_id == field_id:
                return q
        return None

    # -- question configuration -------------------------------------------

    def _update(self, field_id: str, **changes) -> None:
        self.questions = replace_question(self.questions, field_id, **changes)

    def set_label(self, field_id: str, label: str) -> None:
        self._update(field_id, label=label)

    def set_required(self, field_id: str, required: bool) -> None:
        self._update(field_id, required=bool(required))

    def set_question_key(self, field_id: str, question_key: str) -> None:
        self._update(field_id, question_key=question_key)

    def set_options(self, field_id: str, options: Sequence[str]) -> None:
        self._update(field_id, options=list(options))

    # -- conditional rules -------------------------------------------------

    def _apply_rule(self, field_id: str, transition, *args, **kwargs) -> Optional[Rule]:
        current = self.question(field_id)
        if current is None:
            logger.debug("rule change ignored: field %s not selected", field_id)
            return None
        rule = transition(current.conditional_rules, *args, **kwargs)
        self._update(field_id, conditional_rules=rule)
        return rule

    def enable_conditional_logic(self, field_id: str) -> Optional[Rule]:
        return self._apply_rule(field_id, enable_conditional_logic)

    def disable_conditional_logic(self, field_id: str) -> None:
        self._apply_rule(field_id, disable_conditional_logic)

    def set_logic(self, field_id: str, logic: Union[LogicOperator, str]) -> Optional[Rule]:
        return self._apply_rule(field_id, set_logic, logic)

    def add_condition(self, field_id: str) -> Optional[Rule]:
        return self._apply_rule(field_id, add_condition)

    def update_condition(self, field_id: str, index: int, **changes) -> Optional[Rule]:
        return self._apply_rule(field_id, update_condition, index, **changes)

    def remove_condition(self, field_id: str, index: int) -> Optional[Rule]:
        return self._apply_rule(field_id, remove_condition, index)

    def condition_targets(self, field_id: str) -> List[Question]:
        """Questions a condition on `field_id` may reference (all others)."""
        return [q for q in self.questions if q.source_field_id != field_id]

    # -- assembly ------------------------------------------------------------

    def build(self, form_id: Optional[str] = None) -> Form:
        """
        Package the selected questions into a Form.

        Empty rules are normalised to None. Question order is selection
        order.

        Raises:
            FormAssemblyError: If base, table or selection is missing, if a
                question has no key, or if two questions share a key
        """
        if not self.source_base_id or not self.source_table_id or not self.questions:
            raise FormAssemblyError(
                "Please complete all required steps: select base, table, and at least one field"
            )

        blank = [q.source_field_id for q in self.questions if not q.question_key]
        if blank:
            raise FormAssemblyError(f"Questions without a question key: {blank}")

        keys = [q.question_key for q in self.questions]
        if len(keys) != len(set(keys)):
            duplicates = sorted({k for k in keys if keys.count(k) > 1})
            raise FormAssemblyError(f"Duplicate question keys: {duplicates}")

        questions = [
            replace(q, options=list(q.options), conditional_rules=normalize_rule(q.conditional_rules))
            for q in self.questions
        ]

        form = Form(
            id=form_id,
            source_base_id=self.source_base_id,
            source_table_id=self.source_table_id,
            questions=questions,
        )
        logger.info(
            "form assembled: %d questions, %d conditional",
            len(questions),
            sum(1 for q in questions if q.is_conditional),
        )
        return form

    def load(self, form: Form) -> None:
        """Resume authoring from an existing Form."""
        self.source_base_id = form.source_base_id
        self.source_table_id = form.source_table_id
        self.questions = list(form.questions)

