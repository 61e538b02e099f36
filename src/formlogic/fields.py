"""
Field catalogue ingestion (Raw Input → Field objects).

Converts field records handed over by the table API collaborator into
Field objects. Nothing here performs I/O.

Accepted record shape:
    {"id": ..., "name": ..., "type": ..., "options": ...}

where options may be any of:
    - a list of strings:                 ["Red", "Blue"]
    - a list of choice records:          [{"name": "Red"}, {"name": "Blue"}]
    - the API's choices envelope:        {"choices": [{"name": "Red"}, ...]}
    - missing / None

Choices are only kept for select types. Types that have no question
counterpart are kept as Fields but filtered by supported_fields().
"""

from typing import Any, Dict, Iterable, List, Tuple

from formlogic.model import Field, FieldType, FormLogicError


class FieldCatalogueError(FormLogicError, ValueError):
    """Raised when a field record cannot be read."""


def _choice_name(choice: Any) -> str:
    if isinstance(choice, dict):
        return str(choice.get("name", ""))
    return str(choice)


def _parse_options(raw: Any) -> Tuple[str, ...]:
    """Normalise the different option shapes to a tuple of choice names."""
    if raw is None:
        return ()
    if isinstance(raw, dict):
        raw = raw.get("choices") or []
    if isinstance(raw, str):
        raise FieldCatalogueError(f"Options must be a list, got string {raw!r}")
    return tuple(name for name in (_choice_name(c) for c in raw) if name)


def field_from_dict(record: Dict[str, Any]) -> Field:
    """
    Build a Field from one catalogue record.

    Raises:
        FieldCatalogueError: If the record has no id or malformed options
    """
    if not isinstance(record, dict):
        raise FieldCatalogueError(f"Field record must be a mapping, got {type(record).__name__}")

    field_id = record.get("id")
    if not field_id:
        raise FieldCatalogueError(f"Field record has no id: {record!r}")

    field_type = str(record.get("type") or "")
    options: Tuple[str, ...] = ()
    resolved = FieldType.resolve(field_type)
    if resolved is not None and resolved.has_options:
        options = _parse_options(record.get("options"))

    return Field(
        id=str(field_id),
        name=str(record.get("name") or field_id),
        type=field_type,
        options=options,
    )


def parse_field_catalogue(records: Iterable[Dict[str, Any]]) -> List[Field]:
    """
    Parse a list of field records, preserving order.

    Raises:
        FieldCatalogueError: On the first malformed record, with its position
    """
    fields = []
    for position, record in enumerate(records):
        try:
            fields.append(field_from_dict(record))
        except FieldCatalogueError as e:
            raise FieldCatalogueError(f"Error parsing field {position}: {str(e)}")
    return fields


def supported_fields(fields: Iterable[Field]) -> List[Field]:
    """Fields whose type maps to a FieldType, in catalogue order."""
    return [f for f in fields if f.is_supported]


__all__ = [
    "FieldCatalogueError",
    "field_from_dict",
    "parse_field_catalogue",
    "supported_fields",
]
