from __future__ import annotations

import shutil
from pathlib import Path

from .errors import SourceTreeError

SKIPPED_EXTENSIONS = {".avif", ".webp", ".png", ".jpeg", ".jpg", ".svg"}
SKIPPED_NAMES = {".DS_Store"}


def should_process_file(path: Path) -> bool:
    if path.name in SKIPPED_NAMES:
        return False
    return path.suffix.lower() not in SKIPPED_EXTENSIONS


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise SourceTreeError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise SourceTreeError("Refusing to clean output directory outside project root.")
    shutil.rmtree(output_dir)


def copy_source_tree(source_dir: Path, output_dir: Path) -> None:
    if not source_dir.is_dir():
        raise SourceTreeError(f"Expected a src directory: {source_dir}")
    try:
        shutil.copytree(source_dir, output_dir)
    except OSError as exc:
        raise SourceTreeError(f"Could not copy {source_dir} to {output_dir}: {exc}") from exc
