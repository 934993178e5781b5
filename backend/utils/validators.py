"""
Input normalization helpers shared by services and routers.
"""
import re
import unicodedata

from fastapi import Path

from domain.constants import CATALOG_ALL_SLUG, CATALOG_FEATURED_SLUG
from domain.errors import ValidationError

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
_PHONE_ALLOWED = re.compile(r"^\+?[0-9][0-9 ()-]{5,30}$")


def slugify(value: str) -> str:
    """'Hair Care & More' -> 'hair-care-more'."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _SLUG_STRIP.sub("-", normalized.lower()).strip("-")


def validate_slug(slug: str) -> str:
    """
    Normalize a category slug and reject empty or reserved values.

    'all' and 'featured' are pseudo-categories in the storefront listing.
    """
    cleaned = slugify(slug or "")
    if not cleaned:
        raise ValidationError("Slug must contain letters or digits", field="slug")
    if cleaned in (CATALOG_ALL_SLUG, CATALOG_FEATURED_SLUG):
        raise ValidationError(f"'{cleaned}' is reserved", field="slug")
    return cleaned


def validate_phone(phone: str) -> str:
    phone = (phone or "").strip()
    if not phone:
        raise ValidationError("Phone number is required", field="phone")
    if not _PHONE_ALLOWED.match(phone):
        raise ValidationError("Phone number format is invalid", field="phone")
    return phone


def slug_path(slug: str = Path(..., min_length=1, max_length=120, description="Category slug")) -> str:
    """FastAPI dependency for category slug path parameters."""
    return slug.strip().lower()


def contains_pattern(term: str) -> str:
    """
    Lowercased ``%term%`` for a LIKE match with ``escape="\\"``.

    ``%`` and ``_`` typed by the user match literally.
    """
    escaped = term.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
