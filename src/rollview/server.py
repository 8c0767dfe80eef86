"""aiohttp server for Rollview.

Application factory and route registration for standalone server mode.
"""

import logging

from aiohttp import web
from aiohttp.typedefs import Handler

from rollview.api.table import create_table_routes
from rollview.app_keys import session_config_key, tables_key
from rollview.config import Config
from rollview.core.rows import Row, RowFormatError
from rollview.core.session import SessionRegistry
from rollview.core.source import RowSource
from rollview.core.table import RowClickHandler, TableRegistry

logger = logging.getLogger(__name__)


def log_row_click(row: Row) -> None:
    """Default row click handler."""
    logger.info(f"Row clicked: {row.level} {row.id} ({row.name})")


@web.middleware
async def row_format_errors(
    request: web.Request,
    handler: Handler,
) -> web.StreamResponse:
    """Report a broken row snapshot as a 502 instead of a bare 500."""
    try:
        return await handler(request)
    except RowFormatError as e:
        logger.error(f"Invalid row snapshot: {e}")
        return web.json_response(
            {"error": "Invalid row snapshot", "detail": str(e)},
            status=502,
        )


def create_app(
    config: Config,
    *,
    on_row_click: RowClickHandler | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        on_row_click: Row click handler (default: log the click)

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[row_format_errors])

    sessions = SessionRegistry(
        idle_timeout=config.session.idle_timeout,
        max_bytes=config.session.max_bytes,
    )
    source = RowSource(config.data.rows_file)

    app[tables_key] = TableRegistry(
        sessions,
        source,
        on_row_click=on_row_click or log_row_click,
    )
    app[session_config_key] = config.session

    app.router.add_routes(create_table_routes())

    return app


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    web.run_app(app, host=config.server.host, port=config.server.port)
