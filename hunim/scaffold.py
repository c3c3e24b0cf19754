from __future__ import annotations

import shutil
from pathlib import Path

from .config import CONFIG_NAME
from .context import COMPONENTS_DIR, SOURCE_DIR, TEMPLATES_DIR
from .errors import ConfigError
from .render import write_text

INDEX_PAGE = """<!DOCTYPE html>
<html lang="en-us">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{name}</title>
</head>
<body>
  <h1>Hello World!</h1>
</body>
</html>
"""

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="{{ .Lang }}">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ .Title }}</title>{{ .MetaTags }}
</head>
<body>
{{ .Content }}
{{ .Reload }}
</body>
</html>
"""


def new_site(parent: Path, name: str) -> Path:
    if not name:
        raise ConfigError("You must provide a site name")
    site = parent / name
    if site.exists():
        raise ConfigError(f"Directory already exists: {site}")
    write_text(
        site / CONFIG_NAME,
        f"baseURL = 'https://{name}.com/'\nlanguageCode = 'en-us'\ntitle = '{name}'\n",
    )
    (site / COMPONENTS_DIR).mkdir()
    write_text(site / TEMPLATES_DIR / "default.html", DEFAULT_TEMPLATE)
    write_text(site / SOURCE_DIR / "index.html", INDEX_PAGE.format(name=name))
    return site


def health_report(root: Path, config_name: str = CONFIG_NAME) -> list[tuple[str, bool, str]]:
    pandoc = shutil.which("pandoc") is not None
    rsync = shutil.which("rsync") is not None
    config = (root / config_name).exists()
    return [
        ("Can convert html/components to html", True, "yes"),
        ("Can convert markdown to html", True, "embedded renderer"),
        ("Can convert markdown with pandoc", pandoc, "pandoc found" if pandoc else "pandoc not found"),
        ("Can upload to server", rsync, "rsync found" if rsync else "rsync not found"),
        (f"{config_name} found", config, "true" if config else "false"),
    ]
