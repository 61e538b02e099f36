"""
Core Questionnaire Model Objects

Defines the fundamental data structures of the questionnaire logic model.

These are pure data classes representing:
    - Fields (columns of the external table, read-only input)
    - Questions (questionnaire-facing wrapper around one Field)
    - Forms (ordered container of Questions bound to one table)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about HTTP, storage or rendering
        - Are addressed by stable keys, never by position
        - Are fully serializable
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .rules import Rule


QUESTION_KEY_PREFIX = "field_"


class FormLogicError(Exception):
    """Base class for errors raised by formlogic."""


class UnsupportedFieldTypeError(FormLogicError, ValueError):
    """Raised when a Field's type has no questionnaire counterpart."""


class FieldType(Enum):
    """
    Closed set of question types.

    Each member carries two capability flags, resolved once when a
    Question is built:

        has_options  - choices come from the Field's option list
        multi_valued - the answer is a list of strings, not a string
    """

    SHORT_TEXT = "shortText"
    LONG_TEXT = "longText"
    SINGLE_SELECT = "singleSelect"
    MULTI_SELECT = "multiSelect"
    ATTACHMENT = "attachment"

    @property
    def has_options(self) -> bool:
        return self in (FieldType.SINGLE_SELECT, FieldType.MULTI_SELECT)

    @property
    def multi_valued(self) -> bool:
        return self in (FieldType.MULTI_SELECT, FieldType.ATTACHMENT)

    @classmethod
    def resolve(cls, name: Optional[str]) -> Optional["FieldType"]:
        """
        Resolve a source type name to a FieldType.

        Accepts the canonical names and the spellings used by the table
        API's field catalogue. Returns None for anything else.
        """
        if name is None:
            return None
        if isinstance(name, FieldType):
            return name
        return _FIELD_TYPE_ALIASES.get(name)


_FIELD_TYPE_ALIASES: Dict[str, FieldType] = {
    "shortText": FieldType.SHORT_TEXT,
    "singleLineText": FieldType.SHORT_TEXT,
    "longText": FieldType.LONG_TEXT,
    "multilineText": FieldType.LONG_TEXT,
    "singleSelect": FieldType.SINGLE_SELECT,
    "multiSelect": FieldType.MULTI_SELECT,
    "multipleSelects": FieldType.MULTI_SELECT,
    "attachment": FieldType.ATTACHMENT,
    "multipleAttachments": FieldType.ATTACHMENT,
}


@dataclass(frozen=True)
class Field:
    """
    A column definition from the external table.

    This is read-only input. The package never fetches or stores Fields.

    Properties:
        id: Source field identifier (e.g. "fldA1b2C3")
        name: Column name, used as the default question label
        type: Source type name, as reported by the catalogue
        options: Ordered choice names (select-like types only)
    """

    id: str
    name: str
    type: str
    options: Tuple[str, ...] = ()

    @property
    def field_type(self) -> Optional[FieldType]:
        return FieldType.resolve(self.type)

    @property
    def is_supported(self) -> bool:
        return self.field_type is not None


@dataclass
class Question:
    """
    Represents a single question derived from one source Field.

    Properties:
        question_key:
            Unique identifier within a Form. This is the ONLY key used by
            Conditions and by the AnswerSet. It is independent of the
            source field id and may be renamed during authoring.

        source_field_id:
            Id of the Field this question writes to.

        label:
            Question text shown to respondents.

        type:
            FieldType of the question.

        required:
            Whether a visible instance of this question must be answered.

        options:
            Choices for select types; empty for every other type.

        conditional_rules:
            Optional visibility Rule.
            If None: the question is always visible.
    """

    question_key: str
    source_field_id: str
    label: str
    type: FieldType
    required: bool = False
    options: List[str] = field(default_factory=list)
    conditional_rules: Optional[Rule] = None

    @property
    def is_conditional(self) -> bool:
        return self.conditional_rules is not None and not self.conditional_rules.is_empty


@dataclass
class Form:
    """
    Root container for an assembled questionnaire.

    Order of questions is significant: it is the presentation and
    evaluation order respondents see.

    Once assembled, a Form is treated as read-only by the answer flow.

    INVARIANTS:
        - question_key is unique across questions
        - Conditions reference questions by question_key only
    """

    source_base_id: str
    source_table_id: str
    questions: List[Question] = field(default_factory=list)
    id: Optional[str] = None

    def get_question(self, question_key: str) -> Optional[Question]:
        """
        Retrieve a question by key.

        Args:
            question_key: Question key

        Returns:
            Question object or None if not found
        """
        for question in self.questions:
            if question.question_key == question_key:
                return question
        return None

    def question_keys(self) -> List[str]:
        return [q.question_key for q in self.questions]

    def index_of(self, question_key: str) -> Optional[int]:
        for index, question in enumerate(self.questions):
            if question.question_key == question_key:
                return index
        return None


def question_key_for(field_id: str) -> str:
    """Deterministic default question key for a source field id."""
    return f"{QUESTION_KEY_PREFIX}{field_id}"


def question_from_field(source: Field) -> Question:
    """
    Build a Question from a Field with the default configuration.

    The new question is optional, has no visibility rule, is labelled
    with the field name and carries the field's choices only when its
    type is a select type.

    Raises:
        UnsupportedFieldTypeError: If the field type has no FieldType
    """
    field_type = source.field_type
    if field_type is None:
        raise UnsupportedFieldTypeError(
            f"Field {source.id!r} has unsupported type {source.type!r}"
        )

    options = list(source.options) if field_type.has_options else []

    return Question(
        question_key=question_key_for(source.id),
        source_field_id=source.id,
        label=source.name,
        type=field_type,
        required=False,
        options=options,
        conditional_rules=None,
    )


def replace_question(
    questions: Sequence[Question], source_field_id: str, **changes
) -> List[Question]:
    """
    Return a new question list with one question updated.

    Only the question whose source field id matches is replaced.
    All other questions are carried over untouched.
    """
    return [
        replace(q, **changes) if q.source_field_id == source_field_id else q
        for q in questions
    ]
