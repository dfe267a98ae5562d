"""Client-side form checks run before a mutation is staged."""

from __future__ import annotations

import re
from typing import Any, Mapping

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

SLUG_MESSAGE = (
    "Slug can only contain lowercase letters, numbers, and hyphens. "
    "No spaces or other characters allowed."
)
LOCATION_MESSAGE = "At least one of country, state, or city must be specified"
SEO_REQUIRED_MESSAGE = "SKU, Slug, LocationId, and ProductId are required."


def is_valid_slug(slug: Any) -> bool:
    return isinstance(slug, str) and SLUG_PATTERN.fullmatch(slug) is not None


def check_slug(form: Mapping[str, Any]) -> str | None:
    if not is_valid_slug(form.get("slug")):
        return SLUG_MESSAGE
    return None


def check_location(form: Mapping[str, Any]) -> str | None:
    error = check_slug(form)
    if error:
        return error
    if not (form.get("country") or form.get("state") or form.get("city")):
        return LOCATION_MESSAGE
    return None


def check_seo(form: Mapping[str, Any]) -> str | None:
    error = check_slug(form)
    if error:
        return error
    if not all(form.get(key) for key in ("sku", "slug", "locationId", "productId")):
        return SEO_REQUIRED_MESSAGE
    return None
