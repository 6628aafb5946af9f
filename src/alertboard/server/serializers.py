"""API serialization: view outputs -> JSON-ready dicts.

Every transformation for the frontend contract happens here:
- Coordinates are emitted as given by the layout (already rounded)
- Percentages are 0-100 with one decimal
- Row and rectangle payloads carry stable keys for client-side diffing
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..models import Alert, GroupRow, LeafRow
from ..treemap import Breadcrumb, PositionedNode, TreemapLayout
from ..views import TableWindow


def serialize_alert(alert: Alert) -> dict[str, Any]:
    return alert.to_dict()


def serialize_row(row: GroupRow | LeafRow) -> dict[str, Any]:
    if isinstance(row, GroupRow):
        return {
            "type": "group",
            "key": row.key,
            "field": row.field,
            "value": row.value,
            "count": row.count,
            "level": row.level,
            "isExpanded": row.is_expanded,
        }
    return {"type": "leaf", "level": row.level, "alert": serialize_alert(row.record)}


def serialize_window(window: TableWindow) -> dict[str, Any]:
    """Visible rows with their offsets, the sticky header stack and extents."""
    return {
        "rows": [
            {
                "index": item.item.index,
                "key": item.item.key,
                "start": item.item.start,
                "size": item.item.size,
                **serialize_row(item.row),
            }
            for item in window.rows
        ],
        "stickyHeaders": [serialize_row(header) for header in window.sticky_headers],
        "totalSize": window.total_size,
        "rowCount": window.row_count,
        "anchorIndex": window.anchor_index,
        "scrollOffset": window.scroll_offset,
    }


def serialize_rect(rect: PositionedNode) -> dict[str, Any]:
    node = rect.node
    data: dict[str, Any] = {
        "index": rect.index,
        "parent": rect.parent,
        "depth": rect.depth,
        "kind": rect.kind,
        "key": node.key,
        "name": rect.name,
        "value": rect.value,
        "count": node.count,
        "x": rect.x,
        "y": rect.y,
        "width": rect.width,
        "height": rect.height,
        "percentage": round(rect.percentage, 1),
        "labels": {
            "header": rect.labels.header,
            "name": rect.labels.name,
            "icon": rect.labels.icon,
            "percentage": rect.labels.percentage,
            "count": rect.labels.count,
            "overflowCount": rect.labels.overflow_count,
        },
    }
    if rect.header_height:
        data["headerHeight"] = rect.header_height
    if node.payload is not None:
        data["alertId"] = node.payload.id
        data["status"] = "dismissed" if node.payload.is_dismissed else node.payload.status
    if node.is_overflow:
        data["hiddenAlertIds"] = [alert.id for alert in node.overflow_payload]
    return data


def serialize_breadcrumbs(breadcrumbs: Sequence[Breadcrumb]) -> list[dict[str, Any]]:
    return [{"index": i, "name": crumb.name, "key": crumb.node.key} for i, crumb in enumerate(breadcrumbs)]


def serialize_layout(
    layout: TreemapLayout,
    breadcrumbs: Sequence[Breadcrumb] = (),
    share_of_root: Optional[float] = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "status": layout.status,
        "width": layout.width,
        "height": layout.height,
        "totalValue": layout.total_value,
        "rects": [serialize_rect(rect) for rect in layout.nodes],
        "breadcrumbs": serialize_breadcrumbs(breadcrumbs),
    }
    if share_of_root is not None:
        data["shareOfRoot"] = round(share_of_root, 1)
    return data
