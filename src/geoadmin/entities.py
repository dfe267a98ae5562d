"""Entity adapters - the per-collection configuration of the list controller.

An adapter says which endpoint backs the page, which reference fields need
normalizing, how rows are displayed and searched, which reference
collections the form needs, and how the form is validated and turned into a
request payload. The list controller itself is entity-agnostic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from .fields import parse_definitions, validate_custom_values
from .refs import Ref, RefEmbedded, RefId, ref_id, resolve_ref
from .validation import check_location, check_seo, check_slug

Record = dict[str, Any]
Lookups = Mapping[str, Mapping[str, Mapping[str, Any]]]
Getter = Callable[[Mapping[str, Any], Lookups], Any]

NOT_SPECIFIED = "Not specified"

SEO_METADATA_FIELDS = (
    "charset",
    "xUaCompatible",
    "viewport",
    "title",
    "description",
    "keywords",
    "robots",
    "contentLanguage",
    "googleSiteVerification",
    "msValidate",
    "themeColor",
    "mobileWebAppCapable",
    "appleStatusBarStyle",
    "formatDetection",
    "ogLocale",
    "ogTitle",
    "ogDescription",
    "ogType",
    "ogUrl",
    "ogSiteName",
    "twitterCard",
    "twitterSite",
    "twitterTitle",
    "twitterDescription",
    "hreflang",
    "x_default",
    "author_name",
    "excerpt",
    "canonical_url",
    "description_html",
    "rating_value",
    "rating_count",
    "publishedAt",
)


@dataclass(frozen=True)
class Column:
    header: str
    value: Getter


@dataclass(frozen=True)
class CascadeSpec:
    """``child`` options are loaded from ``child_entity`` scoped to ``parent``."""

    parent: str
    child: str
    child_entity: str


@dataclass(frozen=True)
class EntityAdapter:
    key: str
    label: str
    title: str
    columns: tuple[Column, ...]
    search_fields: tuple[Getter, ...]
    form_defaults: Mapping[str, Any] = field(default_factory=dict)
    ref_fields: Mapping[str, str] = field(default_factory=dict)
    auxiliaries: tuple[str, ...] = ()
    cascades: tuple[CascadeSpec, ...] = ()
    validate: Callable[[Mapping[str, Any], Mapping[str, list]], str | None] | None = None
    to_payload: Callable[[Mapping[str, Any]], dict[str, Any]] | None = None
    from_record: Callable[[Mapping[str, Any], Mapping[str, Any]], dict[str, Any]] | None = None
    can_create: bool = True
    can_update: bool = True
    can_delete: bool = True
    plural_noun: str | None = None

    @property
    def plural(self) -> str:
        return self.plural_noun or self.title.lower()

    @property
    def read_only(self) -> bool:
        return not (self.can_create or self.can_update or self.can_delete)

    def blank_form(self) -> dict[str, Any]:
        form = {}
        for key, value in self.form_defaults.items():
            form[key] = dict(value) if isinstance(value, dict) else value
        return form

    def form_for(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Pre-fill a form from a record, turning references into their ids."""
        form = self.blank_form()
        for key in form:
            value = record.get(key)
            if isinstance(value, (RefId, RefEmbedded)):
                form[key] = ref_id(value)
            elif value is not None:
                form[key] = value
        if self.from_record:
            form = self.from_record(record, form)
        return form

    def payload(self, form: Mapping[str, Any]) -> dict[str, Any]:
        if self.to_payload:
            return self.to_payload(form)
        return dict(form)

    def check(self, form: Mapping[str, Any], collections: Mapping[str, list]) -> str | None:
        if self.validate:
            return self.validate(form, collections)
        return None

    def display_row(self, record: Mapping[str, Any], lookups: Lookups) -> list[str]:
        row = []
        for column in self.columns:
            value = column.value(record, lookups)
            row.append("" if value is None else str(value))
        return row


# ============================================================================
# Getters
# ============================================================================


def attr(name: str) -> Getter:
    def _get(record: Mapping[str, Any], lookups: Lookups) -> Any:
        return record.get(name)

    return _get


def ref_name(name: str, entity: str, placeholder: str = "") -> Getter:
    """Display name of a reference field, resolved against the loaded collection."""

    def _get(record: Mapping[str, Any], lookups: Lookups) -> str:
        value: Ref | None = record.get(name)
        return resolve_ref(value, lookups.get(entity), placeholder=placeholder)

    return _get


def ref_search(name: str, entity: str) -> Getter:
    """Like ``ref_name`` but absent references never match a search."""
    getter = ref_name(name, entity)

    def _get(record: Mapping[str, Any], lookups: Lookups) -> str | None:
        return getter(record, lookups) or None

    return _get


# ============================================================================
# Form hooks
# ============================================================================


def _slug_only(form: Mapping[str, Any], collections: Mapping[str, list]) -> str | None:
    return check_slug(form)


def _location_check(form: Mapping[str, Any], collections: Mapping[str, list]) -> str | None:
    return check_location(form)


def _location_payload(form: Mapping[str, Any]) -> dict[str, Any]:
    data = dict(form)
    for key in ("country", "state", "city"):
        data[key] = data.get(key) or None
    return data


def _seo_check(form: Mapping[str, Any], collections: Mapping[str, list]) -> str | None:
    error = check_seo(form)
    if error:
        return error
    definitions = parse_definitions(collections.get("seo-custom-fields"))
    return validate_custom_values(form.get("custom"), definitions, collections)


def _seo_payload(form: Mapping[str, Any]) -> dict[str, Any]:
    data = dict(form)
    if data.get("publishedAt") == "":
        del data["publishedAt"]
    custom = {k: v for k, v in (data.get("custom") or {}).items() if v not in (None, "")}
    data["custom"] = custom
    return data


def _seo_from_record(record: Mapping[str, Any], form: dict[str, Any]) -> dict[str, Any]:
    published = record.get("publishedAt")
    form["publishedAt"] = published[:16] if isinstance(published, str) else ""
    form["custom"] = dict(record.get("custom") or {})
    return form


# ============================================================================
# Adapters
# ============================================================================

COUNTRIES = EntityAdapter(
    key="countries",
    label="country",
    title="Countries",
    columns=(Column("Country", attr("name")), Column("Code", attr("code"))),
    search_fields=(attr("name"), attr("code")),
    form_defaults={"name": "", "code": ""},
)

STATES = EntityAdapter(
    key="states",
    label="state",
    title="States",
    columns=(
        Column("State", attr("name")),
        Column("Code", attr("code")),
        Column("Country", ref_name("country", "countries")),
    ),
    search_fields=(attr("name"), attr("code"), ref_search("country", "countries")),
    form_defaults={"name": "", "code": "", "country": ""},
    ref_fields={"country": "countries"},
    auxiliaries=("countries",),
)

CITIES = EntityAdapter(
    key="cities",
    label="city",
    title="Cities",
    columns=(
        Column("City", attr("name")),
        Column("State", ref_name("state", "states")),
        Column("Country", ref_name("country", "countries")),
    ),
    search_fields=(
        attr("name"),
        ref_search("state", "states"),
        ref_search("country", "countries"),
    ),
    form_defaults={"name": "", "country": "", "state": ""},
    ref_fields={"country": "countries", "state": "states"},
    auxiliaries=("countries",),
    cascades=(CascadeSpec(parent="country", child="state", child_entity="states"),),
)

LOCATIONS = EntityAdapter(
    key="locations",
    label="location",
    title="Locations",
    columns=(
        Column("Name", attr("name")),
        Column("Slug", attr("slug")),
        Column("City", ref_name("city", "cities", NOT_SPECIFIED)),
        Column("State", ref_name("state", "states", NOT_SPECIFIED)),
        Column("Country", ref_name("country", "countries", NOT_SPECIFIED)),
    ),
    search_fields=(
        attr("name"),
        attr("slug"),
        ref_search("city", "cities"),
        ref_search("state", "states"),
        ref_search("country", "countries"),
    ),
    form_defaults={"name": "", "slug": "", "country": "", "state": "", "city": ""},
    ref_fields={"country": "countries", "state": "states", "city": "cities"},
    auxiliaries=("countries", "states", "cities"),
    validate=_location_check,
    to_payload=_location_payload,
)

PRODUCTS = EntityAdapter(
    key="products",
    label="product",
    title="Products",
    columns=(
        Column("Name", attr("name")),
        Column("Description", attr("description")),
        Column("Slug", attr("slug")),
    ),
    search_fields=(attr("name"), attr("description"), attr("slug")),
    form_defaults={"name": "", "description": "", "slug": ""},
    validate=_slug_only,
)

SEOS = EntityAdapter(
    key="seos",
    label="SEO entry",
    title="SEO Entries",
    columns=(
        Column("SKU", attr("sku")),
        Column("Slug", attr("slug")),
        Column("Location", ref_name("locationId", "locations")),
        Column("Product", ref_name("productId", "products")),
    ),
    search_fields=(
        attr("sku"),
        attr("slug"),
        attr("title"),
        ref_search("locationId", "locations"),
        ref_search("productId", "products"),
    ),
    form_defaults={
        "sku": "",
        "slug": "",
        "locationId": "",
        "productId": "",
        **{name: "" for name in SEO_METADATA_FIELDS},
        "mobileWebAppCapable": False,
        "custom": {},
    },
    ref_fields={"locationId": "locations", "productId": "products"},
    auxiliaries=("products", "locations", "seo-custom-fields"),
    validate=_seo_check,
    to_payload=_seo_payload,
    from_record=_seo_from_record,
    plural_noun="SEO entries",
)

INQUIRIES = EntityAdapter(
    key="inquiries",
    label="inquiry",
    title="Inquiries",
    columns=(
        Column("Name", attr("name")),
        Column("Email", attr("email")),
        Column("Phone", attr("phone")),
        Column("Message", attr("message")),
        Column("Created At", attr("createdAt")),
    ),
    search_fields=(attr("name"), attr("email"), attr("phone"), attr("message")),
    form_defaults={"name": "", "email": "", "phone": "", "message": ""},
    can_create=False,
)

EMPLOYEES = EntityAdapter(
    key="employees",
    label="employee",
    title="Employees",
    columns=(Column("Name", attr("name")), Column("Employee ID", attr("id"))),
    search_fields=(attr("name"), attr("id")),
    can_create=False,
    can_update=False,
    can_delete=False,
)

ADAPTERS: dict[str, EntityAdapter] = {
    adapter.key: adapter
    for adapter in (COUNTRIES, STATES, CITIES, LOCATIONS, PRODUCTS, SEOS, INQUIRIES, EMPLOYEES)
}

# Collections that are loaded as references but have no page of their own.
REFERENCE_LABELS = {"seo-custom-fields": ("custom field", "custom fields")}


def get_adapter(key: str) -> EntityAdapter:
    try:
        return ADAPTERS[key]
    except KeyError:
        raise KeyError(f"Unknown entity: {key}") from None


def ref_fields_for(key: str) -> Mapping[str, str]:
    adapter = ADAPTERS.get(key)
    return adapter.ref_fields if adapter else {}


def plural_label(key: str) -> str:
    if key in REFERENCE_LABELS:
        return REFERENCE_LABELS[key][1]
    adapter = ADAPTERS.get(key)
    return adapter.plural if adapter else key
