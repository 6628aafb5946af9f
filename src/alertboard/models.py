"""Data models for Alertboard.

Three layers, each derived from the previous one and never mutated:

  Records:    ``Alert``, owned by the record source
  Group tree: ``Group`` / ``Leaf`` (a ``GroupNode``), built by the grouping engine
  Flat rows:  ``GroupRow`` / ``LeafRow`` (a ``FlatGroupItem``), built by the flattener
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

UNKNOWN = "Unknown"

# Joins escaped path segments into a group key
KEY_SEPARATOR = "/"

# Free-text fields; numbers sent for these are kept as their string form
_TEXT_FIELDS = ("status", "starts_at", "summary", "type", "tag", "owner", "updated_at", "alert_url", "runbook_url")


# ── Records ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Alert:
    """A single alert as delivered by the record source.

    ``tags`` is an open-ended key -> value map; ``tag`` is the legacy
    single-tag string some integrations still send.
    """

    id: str
    name: str
    status: str = ""
    is_dismissed: bool = False
    tags: Mapping[str, str] = field(default_factory=dict)
    starts_at: str = ""
    summary: Optional[str] = None
    type: str = ""
    tag: str = ""
    owner: Optional[str] = None
    updated_at: str = ""
    alert_url: str = ""
    runbook_url: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    # Wire names (camelCase, as served by the alerts API) -> field names
    _WIRE_FIELDS = {
        "id": "id",
        "alertName": "name",
        "status": "status",
        "isDismissed": "is_dismissed",
        "tags": "tags",
        "startsAt": "starts_at",
        "summary": "summary",
        "type": "type",
        "tag": "tag",
        "owner": "owner",
        "ownerId": "owner",
        "updatedAt": "updated_at",
        "alertUrl": "alert_url",
        "runbookUrl": "runbook_url",
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Alert":
        """Build an alert from an API payload; unknown keys land in ``extra``."""
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            name = cls._WIRE_FIELDS.get(key)
            if name is None and key in cls.__dataclass_fields__ and not key.startswith("_"):
                name = key
            if name is None or name == "extra":
                extra[key] = value
            else:
                kwargs[name] = value

        tags = kwargs.get("tags") or {}
        kwargs["tags"] = {str(k): str(v) for k, v in tags.items() if v is not None} if isinstance(tags, Mapping) else {}
        kwargs["id"] = str(kwargs.get("id", ""))
        kwargs["name"] = str(kwargs.get("name") or "")
        kwargs["is_dismissed"] = bool(kwargs.get("is_dismissed", False))
        for text_field in _TEXT_FIELDS:
            if kwargs.get(text_field) is None:
                kwargs.pop(text_field, None)
            else:
                kwargs[text_field] = str(kwargs[text_field])
        return cls(**kwargs, extra=extra)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the camelCase wire format."""
        return {
            "id": self.id,
            "alertName": self.name,
            "status": self.status,
            "isDismissed": self.is_dismissed,
            "tags": dict(self.tags),
            "startsAt": self.starts_at,
            "summary": self.summary,
            "type": self.type,
            "tag": self.tag,
            "owner": self.owner,
            "updatedAt": self.updated_at,
            "alertUrl": self.alert_url,
            "runbookUrl": self.runbook_url,
            **dict(self.extra),
        }


# ── Group tree ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Leaf:
    """Terminal tree node wrapping one record."""

    record: Alert

    @property
    def count(self) -> int:
        return 1


@dataclass(frozen=True)
class Group:
    """Aggregating tree node.

    ``key`` is the path from the root, so equal values under different
    parents never collide. ``count`` is the number of descendant leaves.
    """

    key: str
    field: str
    value: str
    count: int
    children: Tuple["GroupNode", ...]
    level: int


GroupNode = Union[Group, Leaf]


# ── Flat rows ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class GroupRow:
    """Summary row for one group in the flattened table."""

    key: str
    field: str
    value: str
    count: int
    level: int
    is_expanded: bool

    @property
    def row_key(self) -> str:
        return f"group:{self.key}"


@dataclass(frozen=True)
class LeafRow:
    """One alert row; ``level`` is its nesting depth for indentation."""

    record: Alert
    level: int = 0

    @property
    def row_key(self) -> str:
        return f"alert:{self.record.id}"


FlatGroupItem = Union[GroupRow, LeafRow]


def escape_key_segment(value: str) -> str:
    """Escape a group value so it can't be mistaken for a path separator."""
    return value.replace("\\", "\\\\").replace(KEY_SEPARATOR, "\\" + KEY_SEPARATOR)


def join_key(parent_key: Optional[str], value: str) -> str:
    """Build a child group key from its parent key and raw value."""
    segment = escape_key_segment(value)
    if not parent_key:
        return segment
    return f"{parent_key}{KEY_SEPARATOR}{segment}"
