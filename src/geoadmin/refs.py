"""Reference normalization for foreign-key fields.

The backend populates some references (``city.country`` comes back as an
embedded object) and leaves others as bare ids (``state.country`` on some
routes). Everything downstream works with ``Ref`` values produced here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union


@dataclass(frozen=True)
class RefId:
    """Reference given as a bare identifier."""

    id: str

    def to_raw(self) -> str:
        return self.id


@dataclass(frozen=True)
class RefEmbedded:
    """Reference given as an embedded record."""

    record: Mapping[str, Any]

    @property
    def id(self) -> str | None:
        return record_id(self.record)

    def to_raw(self) -> dict[str, Any]:
        return dict(self.record)


Ref = Union[RefId, RefEmbedded]


def record_id(record: Mapping[str, Any]) -> str | None:
    """Return the record identifier, accepting both ``id`` and Mongo ``_id``."""
    value = record.get("id")
    if value in (None, ""):
        value = record.get("_id")
    if value in (None, ""):
        return None
    return str(value)


def to_ref(value: Any) -> Ref | None:
    """Normalize a raw reference value. Falsy values become ``None``."""
    if isinstance(value, (RefId, RefEmbedded)):
        return value
    if not value:
        return None
    if isinstance(value, Mapping):
        return RefEmbedded(dict(value))
    return RefId(str(value))


def ref_id(ref: Ref | None) -> str:
    """Id form of a reference for pre-filling forms (``""`` when absent)."""
    if ref is None:
        return ""
    return ref.id or ""


def index_by_id(records: list[Mapping[str, Any]] | None) -> dict[str, Mapping[str, Any]]:
    lookup: dict[str, Mapping[str, Any]] = {}
    for record in records or []:
        rid = record_id(record)
        if rid is not None:
            lookup[rid] = record
    return lookup


def resolve_ref(
    ref: Ref | None,
    lookup: Mapping[str, Mapping[str, Any]] | None = None,
    attr: str = "name",
    placeholder: str = "",
) -> str:
    """Resolve a reference to a display value.

    Embedded records answer directly. Bare ids are looked up in the loaded
    reference collection; an id that is not loaded yet shows as the raw id.
    """
    if ref is None:
        return placeholder
    if isinstance(ref, RefEmbedded):
        value = ref.record.get(attr)
        if value:
            return str(value)
        # Populated record without the attribute, fall back to the lookup.
        rid = ref.id
        if rid and lookup and rid in lookup and lookup[rid].get(attr):
            return str(lookup[rid][attr])
        return placeholder
    found = (lookup or {}).get(ref.id)
    if found is not None and found.get(attr):
        return str(found[attr])
    return ref.id
