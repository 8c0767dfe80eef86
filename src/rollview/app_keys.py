"""Application keys for type-safe app configuration access."""

from aiohttp import web

from rollview.config import SessionConfig
from rollview.core.table import TableRegistry

tables_key = web.AppKey("tables", TableRegistry)
session_config_key = web.AppKey("session_config", SessionConfig)
