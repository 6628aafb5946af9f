"""Starlette ASGI application for the live dashboard."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..exceptions import FeedError
from ..treemap.navigation import OVERFLOW, SELECT
from .serializers import serialize_alert, serialize_breadcrumbs, serialize_layout, serialize_window
from .state import ServerState

logger = logging.getLogger(__name__)


class _BadRequest(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _float_param(request: Request, name: str, default: Optional[float] = None) -> Optional[float]:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise _BadRequest(f"{name} must be a number")


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise _BadRequest("body must be JSON")
    if not isinstance(body, dict):
        raise _BadRequest("body must be a JSON object")
    return body


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


def create_app(state: ServerState) -> Starlette:
    """Build the Starlette application wired to *state*."""

    async def api_state(request: Request) -> JSONResponse:
        return JSONResponse(state.summary())

    async def api_table(request: Request) -> JSONResponse:
        """Visible table rows. GET /api/table?scroll=&height="""
        try:
            scroll = _float_param(request, "scroll")
            height = _float_param(request, "height")
        except _BadRequest as e:
            return _error(e.message)
        with state.views():
            window = state.table.window(scroll, height)
            return JSONResponse(serialize_window(window))

    async def api_group_by(request: Request) -> JSONResponse:
        """Set table grouping. POST /api/group-by {"fields": [...]}"""
        try:
            body = await _json_body(request)
        except _BadRequest as e:
            return _error(e.message)
        fields = body.get("fields")
        if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
            return _error("fields must be a list of strings")
        target = body.get("view", "table")
        with state.views():
            if target == "heatmap":
                state.heatmap.set_group_by(fields)
            elif target == "table":
                state.table.set_group_by(fields)
            else:
                return _error("view must be table or heatmap")
        state.publish()
        return JSONResponse({"groupBy": fields, "view": target})

    async def api_toggle(request: Request) -> JSONResponse:
        """Expand or collapse one group. POST /api/toggle {"key": ...}"""
        try:
            body = await _json_body(request)
        except _BadRequest as e:
            return _error(e.message)
        key = body.get("key")
        if not isinstance(key, str):
            return _error("key must be a string")
        with state.views():
            state.table.toggle_group(key)
            expanded = key in state.table.expanded_keys
        state.publish()
        return JSONResponse({"key": key, "isExpanded": expanded})

    async def api_sort(request: Request) -> JSONResponse:
        """Sort the table. POST /api/sort {"field": ..., "direction"?: asc|desc}"""
        try:
            body = await _json_body(request)
        except _BadRequest as e:
            return _error(e.message)
        field = body.get("field")
        direction = body.get("direction")
        if not isinstance(field, str):
            return _error("field must be a string")
        if direction not in (None, "asc", "desc"):
            return _error("direction must be asc or desc")
        with state.views():
            state.table.set_sort(field, direction)
            sort_field, sort_direction = state.table.sort
        state.publish()
        return JSONResponse({"field": sort_field, "direction": sort_direction})

    async def api_search(request: Request) -> JSONResponse:
        """Filter the table. POST /api/search {"term": ...}"""
        try:
            body = await _json_body(request)
        except _BadRequest as e:
            return _error(e.message)
        term = body.get("term", "")
        if not isinstance(term, str):
            return _error("term must be a string")
        with state.views():
            state.table.set_search(term)
            matches = len(state.table.visible_alerts())
        state.publish()
        return JSONResponse({"term": term, "matches": matches})

    async def api_heatmap(request: Request) -> JSONResponse:
        """Treemap rectangles. GET /api/heatmap?width=&height="""
        try:
            width = _float_param(request, "width")
            height = _float_param(request, "height")
        except _BadRequest as e:
            return _error(e.message)
        with state.views():
            heatmap = state.heatmap
            if width is not None or height is not None:
                current_width, current_height = heatmap.size
                heatmap.resize(
                    width if width is not None else current_width,
                    height if height is not None else current_height,
                )
                heatmap.flush_resize()
            layout = heatmap.layout()
            return JSONResponse(serialize_layout(layout, heatmap.breadcrumbs, heatmap.share_of_root()))

    async def api_zoom(request: Request) -> JSONResponse:
        """Navigate the treemap.

        POST /api/zoom with one of::

            {"action": "click", "index": 3}  or  {"action": "click", "x": .., "y": ..}
            {"action": "wheel", "index": 3, "deltaY": -100, "modifier": true}
            {"action": "goto", "index": 0}   (-1 = root)
            {"action": "out"}
            {"action": "path", "keys": ["firing", "firing/prod"]}
        """
        try:
            body = await _json_body(request)
        except _BadRequest as e:
            return _error(e.message)
        action = body.get("action", "click")
        response: dict[str, Any] = {"action": action}

        with state.views():
            heatmap = state.heatmap
            if action in ("click", "wheel"):
                if "index" in body:
                    target: Any = body["index"]
                    if not isinstance(target, int):
                        return _error("index must be an integer")
                elif "x" in body and "y" in body:
                    try:
                        target = (float(body["x"]), float(body["y"]))
                    except (TypeError, ValueError):
                        return _error("x and y must be numbers")
                else:
                    target = None

                if action == "click":
                    result = heatmap.click(target)
                    response["result"] = result.action
                    if result.action == SELECT and result.node is not None and result.node.payload is not None:
                        response["alert"] = serialize_alert(result.node.payload)
                    elif result.action == OVERFLOW and result.node is not None:
                        response["alerts"] = [serialize_alert(a) for a in result.node.overflow_payload]
                else:
                    try:
                        delta_y = float(body.get("deltaY", 0))
                    except (TypeError, ValueError):
                        return _error("deltaY must be a number")
                    heatmap.wheel(target, delta_y, bool(body.get("modifier", False)))
            elif action == "goto":
                index = body.get("index")
                if not isinstance(index, int):
                    return _error("index must be an integer")
                heatmap.go_to(index)
            elif action == "out":
                heatmap.zoom_out()
            elif action == "path":
                keys = body.get("keys")
                if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
                    return _error("keys must be a list of strings")
                heatmap.zoom_to_path(keys)
            else:
                return _error(f"unknown action: {action}")

            response["breadcrumbs"] = serialize_breadcrumbs(heatmap.breadcrumbs)
            response["zoomPath"] = list(heatmap.zoom_path)

        state.send_event("zoom", breadcrumbs=response["breadcrumbs"])
        return JSONResponse(response)

    async def api_alert(request: Request) -> JSONResponse:
        """One alert by id. GET /api/alerts/{alert_id}"""
        alert_id = request.path_params["alert_id"]
        with state.views():
            alert = state.table.select(alert_id)
        if alert is None:
            return _error("alert not found", status_code=404)
        return JSONResponse(serialize_alert(alert))

    async def api_refresh(request: Request) -> JSONResponse:
        """Fetch the record set now. POST /api/refresh"""
        try:
            applied = await run_in_threadpool(state.feed.refresh)
        except FeedError as e:
            state.send_event("refresh_failed", message=str(e), retryable=e.retryable)
            return JSONResponse(e.to_dict(), status_code=503 if e.retryable else 502)
        return JSONResponse(
            {
                "status": "applied" if applied else "stale",
                "sequence": state.feed.snapshot.sequence,
                "alertCount": len(state.feed.alerts),
            }
        )

    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=32)
        state.add_listener(queue, asyncio.get_running_loop())
        disconnected = asyncio.ensure_future(_wait_for_disconnect(websocket))
        try:
            await websocket.send_json({"type": "complete", "state": state.summary()})

            while not disconnected.done():
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {getter, disconnected}, timeout=60, return_when=asyncio.FIRST_COMPLETED
                )
                if getter in done:
                    await websocket.send_json(getter.result())
                    continue
                getter.cancel()
                if not done:
                    # Keep the connection alive
                    await websocket.send_json({"type": "ping"})
        except (WebSocketDisconnect, asyncio.CancelledError):
            pass
        finally:
            disconnected.cancel()
            state.remove_listener(queue)

    routes = [
        Route("/api/state", api_state),
        Route("/api/table", api_table),
        Route("/api/group-by", api_group_by, methods=["POST"]),
        Route("/api/toggle", api_toggle, methods=["POST"]),
        Route("/api/sort", api_sort, methods=["POST"]),
        Route("/api/search", api_search, methods=["POST"]),
        Route("/api/heatmap", api_heatmap),
        Route("/api/zoom", api_zoom, methods=["POST"]),
        Route("/api/alerts/{alert_id}", api_alert),
        Route("/api/refresh", api_refresh, methods=["POST"]),
        WebSocketRoute("/ws", websocket_endpoint),
    ]

    return Starlette(routes=routes)
