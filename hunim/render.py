from __future__ import annotations

import re
from pathlib import Path
from typing import Mapping, Optional

from .errors import ComponentSyntaxError, ParseError

CLOSE_MARKER = " }}"
ARG_PLACEHOLDER = "{{{{ ${index} }}}}"
HREF_RELATIVE_RE = re.compile(r'href="\./')


def _location(content: str, index: int) -> tuple[int, int]:
    line = content.count("\n", 0, index) + 1
    col = index - content.rfind("\n", 0, index)
    return line, col


def parse_args(raw: str) -> list[str]:
    return [part for part in raw.strip().split('"') if part.strip()]


def expand_component(content: str, name: str, body: str, source: Optional[str] = None) -> str:
    """Replace every ``{{ name "a" "b" }}`` invocation with ``body``.

    ``{{ $1 }}``, ``{{ $2 }}``... in the body take the positional arguments.
    Scanning resumes after the spliced text, so the body is never searched
    again for ``name``.
    """
    opener = "{{ " + name
    start = 0
    while True:
        open_idx = content.find(opener, start)
        if open_idx == -1:
            return content
        args_idx = open_idx + len(opener)
        if not content.startswith(" ", args_idx):
            start = args_idx
            continue
        close_idx = content.find(CLOSE_MARKER, args_idx)
        if close_idx == -1:
            line, col = _location(content, open_idx)
            raise ComponentSyntaxError(f"Unclosed template for {name}", source, line, col)

        replaced = body
        for index, arg in enumerate(parse_args(content[args_idx:close_idx]), start=1):
            replaced = replaced.replace(ARG_PLACEHOLDER.format(index=index), arg)

        content = content[:open_idx] + replaced + content[close_idx + len(CLOSE_MARKER) :]
        start = open_idx + len(replaced)


def expand_components(
    content: str, components: Mapping[str, str], source: Optional[str] = None
) -> str:
    """Expand every component, repeating passes until nothing changes.

    Without a cycle each pass resolves at least one level of nesting, so a
    change after ``len(components) + 1`` passes means components invoke
    each other in a loop.
    """
    for _ in range(len(components) + 1):
        expanded = content
        for name in sorted(components):
            expanded = expand_component(expanded, name, components[name], source)
        if expanded == content:
            return content
        content = expanded
    raise ComponentSyntaxError("Component expansion does not terminate (cyclic components)", source)


def render_template(template: str, context: Mapping[str, str]) -> str:
    output = template
    for key, value in context.items():
        output = output.replace(f"{{{{ .{key} }}}}", value)
    return output


def rewrite_relative_links(html_text: str, directory: str) -> str:
    return HREF_RELATIVE_RE.sub(lambda _: f'href="{directory}', html_text)


def read_text(path: Path, encoding: str = "utf-8") -> str:
    try:
        return path.read_text(encoding=encoding)
    except UnicodeDecodeError as exc:
        raise ParseError(f"Not valid UTF-8 ({exc.reason} at byte {exc.start})", path.as_posix()) from exc


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
