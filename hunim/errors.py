from __future__ import annotations

from pathlib import Path
from typing import Optional


class HunimError(Exception):
    """Base class for every fatal build error."""


class ConfigError(HunimError):
    pass


class SourceTreeError(HunimError):
    pass


class ParseError(HunimError):
    """Malformed frontmatter, component invocation or date.

    The message is prefixed with ``file:line:col`` when a location is known.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line: Optional[int] = None,
        col: Optional[int] = None,
    ) -> None:
        self.message = message
        self.source = source
        self.line = line
        self.col = col
        location = ""
        if source:
            location = source
            if line is not None:
                location += f":{line}"
                if col is not None:
                    location += f":{col}"
        super().__init__(f"{location} {message}" if location else message)


class ComponentSyntaxError(ParseError):
    pass


class RendererError(HunimError):
    def __init__(self, source: Path | str, detail: str = "") -> None:
        self.source = str(source)
        message = f"Renderer failed for file {self.source}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class TemplateMissingError(HunimError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template file not found in cache: {name}")
