"""Configuration management for Rollview.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "rollview.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class DataConfig:
    """Row snapshot configuration."""

    rows_file: Path = field(default_factory=lambda: Path("rows.json"))


@dataclass
class SessionConfig:
    """Browsing session configuration."""

    cookie_name: str = "rollview_session"
    idle_timeout: float = 1800.0
    max_bytes: int | None = 5 * 1024 * 1024


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    data: DataConfig
    session: SessionConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for rollview.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        return cls(
            server=ServerConfig(),
            data=DataConfig(),
            session=SessionConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            data=cls._parse_data(data.get("data"), config_dir),
            session=cls._parse_session(data.get("session")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_data(cls, data: object, config_dir: Path) -> DataConfig:
        """Parse data configuration section.

        Args:
            data: Raw data section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            DataConfig instance
        """
        if data is None:
            return DataConfig(rows_file=config_dir / "rows.json")

        if not isinstance(data, dict):
            raise ValueError("data section must be a dictionary")

        rows_file = data.get("rows_file", "rows.json")
        if not isinstance(rows_file, str):
            raise ValueError("data.rows_file must be a string")

        return DataConfig(rows_file=config_dir / rows_file)

    @classmethod
    def _parse_session(cls, data: object) -> SessionConfig:
        """Parse session configuration section.

        Args:
            data: Raw session section data

        Returns:
            SessionConfig instance
        """
        if data is None:
            return SessionConfig()

        if not isinstance(data, dict):
            raise ValueError("session section must be a dictionary")

        defaults = SessionConfig()

        cookie_name = data.get("cookie_name", defaults.cookie_name)
        if not isinstance(cookie_name, str) or not cookie_name:
            raise ValueError("session.cookie_name must be a non-empty string")

        idle_timeout = data.get("idle_timeout", defaults.idle_timeout)
        if isinstance(idle_timeout, bool) or not isinstance(idle_timeout, int | float):
            raise ValueError("session.idle_timeout must be a number")
        if idle_timeout <= 0:
            raise ValueError("session.idle_timeout must be positive")

        max_bytes = data.get("max_bytes", defaults.max_bytes)
        if isinstance(max_bytes, bool) or not isinstance(max_bytes, int):
            raise ValueError("session.max_bytes must be an integer")
        if max_bytes <= 0:
            raise ValueError("session.max_bytes must be positive")

        return SessionConfig(
            cookie_name=cookie_name,
            idle_timeout=float(idle_timeout),
            max_bytes=max_bytes,
        )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        rows_file: Path | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. This follows
        the immutable pattern - the original Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            rows_file: Override data.rows_file

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        data = self.data
        if rows_file is not None:
            data = replace(self.data, rows_file=rows_file)

        return replace(self, server=server, data=data)
