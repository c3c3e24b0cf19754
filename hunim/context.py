from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from .cache import load_components, load_templates
from .config import SiteConfig

SOURCE_DIR = "src"
OUTPUT_DIR = "public"
TEMPLATES_DIR = "templates"
COMPONENTS_DIR = "components"


@dataclass(frozen=True)
class BuildContext:
    """Everything one build reads but never mutates.

    The template and component caches are loaded once per build and exposed
    read-only; a later build creates a fresh context.
    """

    root: Path
    config: SiteConfig
    templates: Mapping[str, str]
    components: Mapping[str, str]
    build_drafts: bool = False
    reload: bool = False

    @classmethod
    def create(
        cls, root: Path, config: SiteConfig, build_drafts: bool = False, reload: bool = False
    ) -> "BuildContext":
        return cls(
            root=root,
            config=config,
            templates=MappingProxyType(load_templates(root / TEMPLATES_DIR)),
            components=MappingProxyType(load_components(root / COMPONENTS_DIR)),
            build_drafts=build_drafts,
            reload=reload,
        )

    @property
    def source_dir(self) -> Path:
        return self.root / SOURCE_DIR

    @property
    def output_dir(self) -> Path:
        return self.root / OUTPUT_DIR

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def lang(self) -> str:
        return self.config.language_code
