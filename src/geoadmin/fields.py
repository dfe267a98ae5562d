"""SEO custom field definitions.

Admins register extra SEO attributes at runtime (``/api/seo-custom-fields``).
Each definition is one of three variants; an SEO entry's ``custom`` mapping is
checked against the definitions loaded at submit time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .refs import index_by_id, record_id


@dataclass(frozen=True)
class TextField:
    name: str
    id: str | None = None
    type = "text"


@dataclass(frozen=True)
class NumberField:
    name: str
    id: str | None = None
    type = "number"


@dataclass(frozen=True)
class DropdownField:
    name: str
    source: str
    id: str | None = None
    type = "dropdown"


FieldDefinition = Union[TextField, NumberField, DropdownField]

FIELD_TYPES = ("text", "number", "dropdown")


def parse_definition(raw: Mapping[str, Any]) -> FieldDefinition | None:
    """Build a definition from a registry record; unknown shapes give ``None``."""
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        return None
    kind = str(raw.get("type") or "text").lower()
    fid = record_id(raw)
    if kind == "number":
        return NumberField(name=name, id=fid)
    if kind == "dropdown":
        source = raw.get("dropdownSource") or raw.get("source") or ""
        return DropdownField(name=name, source=str(source), id=fid)
    if kind == "text":
        return TextField(name=name, id=fid)
    return None


def parse_definitions(raw_list: list[Mapping[str, Any]] | None) -> list[FieldDefinition]:
    definitions = []
    for raw in raw_list or []:
        definition = parse_definition(raw)
        if definition is not None:
            definitions.append(definition)
    return definitions


def definition_payload(definition: FieldDefinition) -> dict[str, Any]:
    """Registry payload for POST /api/seo-custom-fields."""
    data: dict[str, Any] = {"name": definition.name, "type": definition.type}
    if isinstance(definition, DropdownField):
        data["dropdownSource"] = definition.source
    return data


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    try:
        number = float(str(value))
    except ValueError:
        return False
    return math.isfinite(number)


def validate_custom_values(
    custom: Mapping[str, Any] | None,
    definitions: list[FieldDefinition],
    sources: Mapping[str, list[Mapping[str, Any]]] | None = None,
) -> str | None:
    """Return an error message for the first invalid custom value, else ``None``.

    Empty values are allowed for every type. Dropdown values are checked
    against the ids of the source collection only when that collection is
    loaded.
    """
    if not custom:
        return None
    by_name = {d.name: d for d in definitions}
    for key, value in custom.items():
        definition = by_name.get(key)
        if definition is None:
            return f'Unknown custom field "{key}".'
        if value in (None, ""):
            continue
        if isinstance(definition, NumberField) and not _is_number(value):
            return f'Custom field "{key}" must be a number.'
        if isinstance(definition, DropdownField):
            options = (sources or {}).get(definition.source)
            if options is not None and str(value) not in index_by_id(options):
                return f'Custom field "{key}" must be one of the {definition.source} options.'
    return None
