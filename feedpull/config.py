"""Settings loaded from YAML with environment overrides."""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from feedpull.fetch import DEFAULT_TIMEOUT, USER_AGENT, Opener, open_url

CONFIG_PATH = Path("config/settings.yaml")


@dataclass
class Settings:
    feeds: list[str] = field(default_factory=list)
    max_items_per_url: int = 0
    http_timeout: int = DEFAULT_TIMEOUT
    user_agent: str = USER_AGENT

    def opener(self) -> Opener:
        return functools.partial(open_url, timeout=self.http_timeout, user_agent=self.user_agent)


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def load_settings(config_path: Path = CONFIG_PATH) -> Settings:
    settings = Settings()
    if config_path.exists():
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        settings.feeds = [str(url) for url in data.get("feeds") or []]
        settings.max_items_per_url = _as_int(data.get("max_items_per_url"), settings.max_items_per_url)
        settings.http_timeout = _as_int(data.get("http_timeout"), settings.http_timeout)
        settings.user_agent = data.get("user_agent") or settings.user_agent

    settings.max_items_per_url = _read_int_env("FEEDPULL_MAX_ITEMS", settings.max_items_per_url)
    settings.http_timeout = _read_int_env("FEEDPULL_HTTP_TIMEOUT", settings.http_timeout)
    settings.user_agent = os.getenv("FEEDPULL_USER_AGENT") or settings.user_agent
    return settings
