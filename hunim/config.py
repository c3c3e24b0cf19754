from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path

import yaml

from .errors import ConfigError

CONFIG_NAME = "hunim.toml"
DEFAULT_LANGUAGE = "en-us"


@dataclass(frozen=True)
class SiteConfig:
    base_url: str
    language_code: str = DEFAULT_LANGUAGE
    title: str = ""


def load_config(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Config file is not valid UTF-8: {path}") from exc
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            data = {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def site_config(data: dict) -> SiteConfig:
    base_url = data.get("baseURL")
    if not isinstance(base_url, str) or not base_url:
        raise ConfigError("baseURL is required")
    if not base_url.endswith("/"):
        raise ConfigError("baseURL must end with /")
    language = data.get("languageCode", DEFAULT_LANGUAGE)
    title = data.get("title", "")
    return SiteConfig(base_url=base_url, language_code=str(language), title=str(title))


def read_site_config(root: Path, name: str = CONFIG_NAME) -> SiteConfig:
    return site_config(load_config(root / name))
