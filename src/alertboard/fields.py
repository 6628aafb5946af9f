"""Field identifiers and the value getter used for grouping.

A field id is either a static alert attribute (``status``, ``alertName``,
``type``, ...) or a tag dimension written ``tag:<name>``. The getter is
total: anything blank, missing or unclassifiable comes back as the
unknown sentinel, so all such records share one bucket.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from .models import UNKNOWN, Alert

ValueGetter = Callable[[Alert, str], str]

TAG_FIELD_PREFIX = "tag:"
# Spelling used by saved views from older clients
LEGACY_TAG_FIELD_PREFIX = "tagKey:"

FIELD_LABELS: dict[str, str] = {
    "type": "Type",
    "alertName": "Alert Name",
    "status": "Status",
    "summary": "Summary",
    "owner": "Owner",
    "startsAt": "Started At",
    "tag": "Tag",
}

# Static field ids -> Alert attribute names
_ATTRIBUTE_FIELDS = {
    "alertName": "name",
    "startsAt": "starts_at",
    "updatedAt": "updated_at",
    "isDismissed": "is_dismissed",
}


def tag_field(tag_key: str) -> str:
    """Field id addressing the tag *tag_key*."""
    return f"{TAG_FIELD_PREFIX}{tag_key}"


def is_tag_field(field_id: str) -> bool:
    return field_id.startswith(TAG_FIELD_PREFIX) or field_id.startswith(LEGACY_TAG_FIELD_PREFIX)


def extract_tag_key(field_id: str) -> Optional[str]:
    """Tag name addressed by *field_id*, or None for static fields."""
    for prefix in (TAG_FIELD_PREFIX, LEGACY_TAG_FIELD_PREFIX):
        if field_id.startswith(prefix):
            return field_id[len(prefix):] or None
    return None


def normalize_group_value(value: Any, unknown: str = UNKNOWN) -> str:
    """Trim and lowercase a raw value; blanks become *unknown*."""
    if value is None:
        return unknown
    normalized = str(value).strip().lower()
    return normalized or unknown


def get_alert_value(alert: Alert, field_id: str, unknown: str = UNKNOWN) -> str:
    """Default value getter.

    ``status`` folds the dismissed flag in, so dismissed alerts group
    together whatever their upstream status says.
    """
    tag_key = extract_tag_key(field_id)
    if tag_key is not None:
        return normalize_group_value(alert.tags.get(tag_key), unknown)
    if is_tag_field(field_id):
        return unknown

    if field_id == "status":
        if alert.is_dismissed:
            return "dismissed"
        return normalize_group_value(alert.status, unknown)
    if field_id == "alertName":
        return str(alert.name).strip() or unknown

    attribute = _ATTRIBUTE_FIELDS.get(field_id, field_id)
    if attribute.startswith("_"):
        return unknown
    if attribute in Alert.__dataclass_fields__ and attribute not in ("tags", "extra"):
        return normalize_group_value(getattr(alert, attribute), unknown)
    return normalize_group_value(alert.extra.get(field_id), unknown)


def make_value_getter(unknown: str = UNKNOWN) -> ValueGetter:
    """Value getter bound to a custom unknown sentinel.

    The returned callable is a fresh object, so callers should create it
    once and reuse it: grouping caches key on getter identity.
    """

    def getter(alert: Alert, field_id: str) -> str:
        return get_alert_value(alert, field_id, unknown)

    return getter


def field_label(field_id: str, column_labels: Optional[Mapping[str, str]] = None) -> str:
    """Human label for a field id (tag fields show their tag name)."""
    if column_labels and field_id in column_labels:
        return column_labels[field_id]
    tag_key = extract_tag_key(field_id)
    if tag_key is not None:
        return tag_key
    return FIELD_LABELS.get(field_id, field_id)
