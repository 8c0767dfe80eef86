"""Rollup table API endpoints.

Every endpoint answers with the full table payload for the caller's browsing
session, so the front end can re-render from a single response.
"""

import json
import math
from typing import Any

from aiohttp import web

from rollview.app_keys import session_config_key, tables_key
from rollview.core.columns import ColumnGroup
from rollview.core.table import RollupTable
from rollview.core.types import RowId


def create_table_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/table", get_table),
        web.post("/api/table/sort", post_sort),
        web.post("/api/table/toggle", post_toggle),
        web.post("/api/table/groups", post_group),
        web.put("/api/table/scroll", put_scroll),
        web.post("/api/table/rows/{id}/click", post_row_click),
    ]


async def get_table(request: web.Request) -> web.Response:
    session_id, table = _session_table(request)
    return _table_response(request, session_id, table)


async def post_sort(request: web.Request) -> web.Response:
    body = await _read_json(request)
    column = body.get("column")
    if not isinstance(column, str):
        raise _bad_request("column must be a string")

    session_id, table = _session_table(request)
    try:
        table.click_header(column)
    except ValueError as e:
        raise _bad_request(str(e)) from e
    return _table_response(request, session_id, table)


async def post_toggle(request: web.Request) -> web.Response:
    body = await _read_json(request)
    row_id = body.get("id")
    if not isinstance(row_id, str) or not row_id:
        raise _bad_request("id must be a non-empty string")

    session_id, table = _session_table(request)
    if RowId(row_id) not in table.index:
        return _row_not_found(request, session_id, row_id)

    table.toggle_row(RowId(row_id))
    return _table_response(request, session_id, table)


async def post_group(request: web.Request) -> web.Response:
    body = await _read_json(request)
    try:
        group = ColumnGroup(body.get("group"))
    except ValueError as e:
        valid = ", ".join(g.value for g in ColumnGroup)
        raise _bad_request(f"group must be one of {valid}") from e

    session_id, table = _session_table(request)
    table.toggle_group(group)
    return _table_response(request, session_id, table)


async def put_scroll(request: web.Request) -> web.Response:
    body = await _read_json(request)
    offset = body.get("offset")
    if isinstance(offset, bool) or not isinstance(offset, int | float):
        raise _bad_request("offset must be a number")
    if not math.isfinite(offset):
        raise _bad_request("offset must be a finite number")

    session_id, table = _session_table(request)
    table.set_scroll(int(offset))
    return _table_response(request, session_id, table)


async def post_row_click(request: web.Request) -> web.Response:
    row_id = RowId(request.match_info["id"])
    session_id, table = _session_table(request)

    row = table.click_row(row_id)
    if row is None:
        return _row_not_found(request, session_id, row_id)

    response = web.json_response({"row": row.to_dict()})
    _set_session_cookie(request, response, session_id)
    return response


def _session_table(request: web.Request) -> tuple[str, RollupTable]:
    cookie_name = request.app[session_config_key].cookie_name
    return request.app[tables_key].get(request.cookies.get(cookie_name))


def _row_not_found(request: web.Request, session_id: str, row_id: str) -> web.Response:
    response = web.json_response(
        {"error": "Row not found", "id": row_id},
        status=404,
    )
    _set_session_cookie(request, response, session_id)
    return response


def _table_response(
    request: web.Request,
    session_id: str,
    table: RollupTable,
) -> web.Response:
    response = web.json_response(table.to_dict())
    _set_session_cookie(request, response, session_id)
    return response


def _set_session_cookie(
    request: web.Request,
    response: web.Response,
    session_id: str,
) -> None:
    cookie_name = request.app[session_config_key].cookie_name
    if request.cookies.get(cookie_name) != session_id:
        response.set_cookie(cookie_name, session_id, httponly=True, samesite="Lax")


async def _read_json(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise _bad_request("request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise _bad_request("request body must be a JSON object")
    return body


def _bad_request(message: str) -> web.HTTPBadRequest:
    return web.HTTPBadRequest(
        text=json.dumps({"error": message}),
        content_type="application/json",
    )
