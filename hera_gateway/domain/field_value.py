"""
FieldValue tagged union

A dynamic field holds exactly one of five value kinds. The variant decides
the field_type tag and the single storage slot, so the two can never drift.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from .entities.enums import FieldType


@dataclass(frozen=True)
class Text:
    value: str

    field_type = FieldType.text
    slot = "field_value_text"


@dataclass(frozen=True)
class Number:
    value: float

    field_type = FieldType.number
    slot = "field_value_number"


@dataclass(frozen=True)
class Boolean:
    value: bool

    field_type = FieldType.boolean
    slot = "field_value_boolean"


@dataclass(frozen=True)
class Date:
    value: datetime

    field_type = FieldType.date
    slot = "field_value_date"


@dataclass(frozen=True)
class Json:
    value: Any

    field_type = FieldType.json
    slot = "field_value_json"


FieldValue = Union[Text, Number, Boolean, Date, Json]

_VARIANTS = {variant.field_type: variant for variant in (Text, Number, Boolean, Date, Json)}

VALUE_SLOTS = tuple(variant.slot for variant in _VARIANTS.values())


def _parse_date(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if isinstance(raw, str):
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    raise ValueError(f"cannot interpret {raw!r} as a date")


def _parse_number(raw: Any) -> float:
    # bool is an int subclass; True must not silently become 1.0
    if isinstance(raw, bool):
        raise ValueError(f"cannot interpret {raw!r} as a number")
    try:
        return float(raw)
    except TypeError:
        raise ValueError(f"cannot interpret {raw!r} as a number")


def _parse_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    raise ValueError(f"cannot interpret {raw!r} as a boolean")


def _parse_text(raw: Any) -> str:
    if not isinstance(raw, str):
        raise ValueError(f"cannot interpret {raw!r} as text")
    return raw


_PARSERS = {
    FieldType.text: _parse_text,
    FieldType.number: _parse_number,
    FieldType.boolean: _parse_boolean,
    FieldType.date: _parse_date,
    FieldType.json: lambda raw: raw,
}


def infer_field_type(raw: Any) -> FieldType:
    """Pick a field type for an untyped payload value"""
    if isinstance(raw, bool):
        return FieldType.boolean
    if isinstance(raw, (int, float)):
        return FieldType.number
    if isinstance(raw, (dict, list)):
        return FieldType.json
    return FieldType.text


def field_value_from_raw(raw: Any, declared_type: Optional[str] = None) -> FieldValue:
    """
    Build a FieldValue from a payload value.

    Args:
        raw: Value as received on the wire
        declared_type: Optional field_type from the payload

    Raises:
        ValueError: unknown type, null value, or value not fitting the type
    """
    if raw is None:
        raise ValueError("dynamic field value is required")

    if declared_type is None:
        field_type = infer_field_type(raw)
    else:
        try:
            field_type = FieldType(str(declared_type).lower())
        except ValueError:
            raise ValueError(f"unknown field_type '{declared_type}'")

    parsed = _PARSERS[field_type](raw)
    return _VARIANTS[field_type](parsed)


def to_slots(value: FieldValue) -> Dict[str, Any]:
    """Column values for a DynamicField row: the type tag plus exactly one slot"""
    slots: Dict[str, Any] = {slot: None for slot in VALUE_SLOTS}
    slots[value.slot] = value.value
    slots["field_type"] = value.field_type.value
    return slots


def from_slots(field_type: str, row: Any) -> FieldValue:
    """Rebuild the FieldValue stored on a DynamicField row"""
    variant = _VARIANTS[FieldType(field_type)]
    return variant(getattr(row, variant.slot))


def to_wire(value: FieldValue) -> Any:
    if isinstance(value, Date):
        return value.value.isoformat()
    return value.value
