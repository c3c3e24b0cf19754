from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .render import read_text


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [path for path in root.rglob("*") if path.is_file()]


def _cache_entries(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        (path for path in directory.iterdir() if path.is_file() and not path.name.startswith(".")),
        key=lambda p: p.name,
    )


def load_templates(directory: Path) -> dict[str, str]:
    return {path.name: read_text(path) for path in _cache_entries(directory)}


def load_components(directory: Path) -> dict[str, str]:
    return {path.stem: read_text(path).strip() for path in _cache_entries(directory)}


def latest_mtime(roots: Iterable[Path]) -> float:
    """Newest modification time under ``roots``; unreadable entries are skipped."""
    latest = 0.0
    for root in roots:
        try:
            paths = list_files(root)
        except OSError:
            continue
        for path in paths:
            try:
                mtime = path.stat().st_mtime
            except OSError:
                continue
            if mtime > latest:
                latest = mtime
    return latest
