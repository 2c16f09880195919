"""Configuration loader for the statement site."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .formatters import DEFAULT_DATE_FORMAT, DEFAULT_TIMEZONE, DisplayConfig, StatementFormatter
from .routes import RouteCodec


class SiteConfig:
    """Central configuration container for the statement site.

    Values come from ``config/statements.yaml`` when present; every setting
    has a default, so a missing file yields a working configuration.
    """

    DEFAULT_CONFIG_PATH = Path("config/statements.yaml")
    DEFAULT_DATA_PATH = "data/statements.json"

    ENV_OVERRIDES = {
        "STATEMENTS_DATA_PATH": ("data", "path"),
        "STATEMENTS_SITE_URL": ("site", "site_url"),
        "STATEMENTS_TIMEZONE": ("display", "timezone"),
    }

    def __init__(self, config_path: Optional[Path | str] = None) -> None:
        path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        if not path.is_absolute():
            path = Path.cwd() / path
        self.config_path = path
        self._data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {"site": {}, "display": {}, "data": {}}
        with open(self.config_path, "r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    @classmethod
    def from_env(cls, config_path: Optional[Path | str] = None) -> "SiteConfig":
        """Load the YAML file, then apply environment variable overrides."""
        config = cls(config_path or os.environ.get("STATEMENTS_CONFIG"))
        for env_name, (section, key) in cls.ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config._data.setdefault(section, {})[key] = value
        return config

    def get(self, section: str, key: str, default: Any = None) -> Any:
        return (self._data.get(section) or {}).get(key, default)

    @property
    def data_path(self) -> Path:
        return Path(self.get("data", "path", self.DEFAULT_DATA_PATH))

    @property
    def site_url(self) -> Optional[str]:
        return self.get("site", "site_url")

    @property
    def sanitize_html_bodies(self) -> bool:
        return bool(self.get("data", "sanitize_html_bodies", False))

    def display_config(self) -> DisplayConfig:
        return DisplayConfig(
            date_format=self.get("display", "date_format", DEFAULT_DATE_FORMAT),
            timezone=self.get("display", "timezone", DEFAULT_TIMEZONE),
        )

    def route_codec(self) -> RouteCodec:
        return RouteCodec(
            page_path=self.get("site", "page_path", RouteCodec.DEFAULT_PAGE_PATH),
            query_param=self.get("site", "query_param", RouteCodec.DEFAULT_QUERY_PARAM),
            hash_prefix=self.get("site", "hash_prefix", RouteCodec.DEFAULT_HASH_PREFIX),
        )

    def formatter(self) -> StatementFormatter:
        return StatementFormatter(routes=self.route_codec(), config=self.display_config())
