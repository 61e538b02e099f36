"""
Serialization helpers for formlogic objects (Form, Question, Rule, etc.).

Provides JSON/YAML round-trip via an intermediate dict representation that
uses the camelCase record keys exchanged with the persistence layer.
This module intentionally keeps the record structure stable and explicit.

Records written by older builders used airtable-prefixed keys
(airtableFieldId, airtableBaseId, airtableTableId) and _id. These are
accepted on load and never written.
"""
from __future__ import annotations

import json
import warnings
from typing import Any, Dict, Mapping

import yaml

from formlogic.model import FieldType, Form, FormLogicError, Question
from formlogic.rules import (
    Condition,
    ConditionOperator,
    LogicOperator,
    Rule,
    parse_logic,
    parse_operator,
    wire_value,
)


class SerializationError(FormLogicError, ValueError):
    """Raised when a record is missing mandatory keys."""


def _first(d: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in d and d[key] is not None:
            return d[key]
    return default


def condition_to_dict(c: Condition) -> Dict[str, Any]:
    return {"questionKey": c.question_key, "operator": wire_value(c.operator), "value": c.value}


def condition_from_dict(d: Dict[str, Any]) -> Condition:
    operator = parse_operator(d.get("operator"))
    if not isinstance(operator, ConditionOperator):
        warnings.warn(f"Unknown condition operator {operator!r}; condition will never match", UserWarning)
    value = d.get("value")
    return Condition(
        question_key=d.get("questionKey") or "",
        operator=operator,
        value="" if value is None else str(value),
    )


def rule_to_dict(r: Rule | None) -> Dict[str, Any] | None:
    if r is None:
        return None
    return {
        "logic": wire_value(r.logic),
        "conditions": [condition_to_dict(c) for c in r.conditions],
    }


def rule_from_dict(d: Dict[str, Any] | None) -> Rule | None:
    if d is None:
        return None
    logic = parse_logic(d.get("logic"))
    if not isinstance(logic, LogicOperator):
        warnings.warn(f"Unknown rule logic {logic!r}; conditions will be combined with AND", UserWarning)
    conditions = tuple(condition_from_dict(c) for c in d.get("conditions") or [])
    return Rule(logic=logic, conditions=conditions)


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "questionKey": q.question_key,
        "sourceFieldId": q.source_field_id,
        "label": q.label,
        "type": q.type.value,
        "required": q.required,
        "options": list(q.options),
        "conditionalRules": rule_to_dict(q.conditional_rules),
    }


def question_from_dict(d: Dict[str, Any]) -> Question:
    key = d.get("questionKey")
    field_type = FieldType.resolve(d.get("type"))
    if not key:
        raise SerializationError(f"Question record has no questionKey: {d!r}")
    if field_type is None:
        raise SerializationError(f"Question {key!r} has unsupported type {d.get('type')!r}")
    return Question(
        question_key=key,
        source_field_id=_first(d, "sourceFieldId", "airtableFieldId", default=""),
        label=d.get("label", ""),
        type=field_type,
        required=bool(d.get("required", False)),
        options=[str(o) for o in d.get("options") or []],
        conditional_rules=rule_from_dict(d.get("conditionalRules")),
    )


def form_to_dict(f: Form) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "sourceBaseId": f.source_base_id,
        "sourceTableId": f.source_table_id,
        "questions": [question_to_dict(q) for q in f.questions],
    }
    if f.id is not None:
        d["id"] = f.id
    return d


def form_from_dict(d: Dict[str, Any]) -> Form:
    return Form(
        id=_first(d, "id", "_id"),
        source_base_id=_first(d, "sourceBaseId", "airtableBaseId", default=""),
        source_table_id=_first(d, "sourceTableId", "airtableTableId", default=""),
        questions=[question_from_dict(q) for q in d.get("questions", [])],
    )


def submission_to_dict(answers: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "answers": {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in answers.items()
        }
    }


def form_to_json(f: Form) -> str:
    return json.dumps(form_to_dict(f), sort_keys=True)


def form_from_json(s: str) -> Form:
    d = json.loads(s)
    return form_from_dict(d)


def form_to_yaml(f: Form) -> str:
    return yaml.safe_dump(form_to_dict(f), sort_keys=False)


def form_from_yaml(s: str) -> Form:
    d = yaml.safe_load(s)
    return form_from_dict(d)
