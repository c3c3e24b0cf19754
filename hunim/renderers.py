"""Markdown renderers and the fan-out/fan-in around them.

Every render is started before any is awaited: ``pandoc`` jobs become
subprocesses, the rest are submitted to a thread pool running
Python-Markdown. Results are joined in job order, never completion order.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence

import markdown

from .content import ConversionJob
from .errors import RendererError

PANDOC = "pandoc"
PANDOC_ARGS = ["--from", "markdown", "--to", "html5"]
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]
MARKDOWN_EXTENSION_CONFIGS = {"codehilite": {"guess_lang": False}}


def render_markdown(text: str) -> str:
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
    )
    return md.convert(text)


class RenderHandle:
    def __init__(
        self,
        job: ConversionJob,
        process: Optional[subprocess.Popen] = None,
        output_file: Optional[Path] = None,
        future: Optional[Future] = None,
    ) -> None:
        self.job = job
        self.process = process
        self.output_file = output_file
        self.future = future

    def result(self) -> str:
        if self.future is not None:
            return self.future.result()
        exit_code = self.process.wait()
        if exit_code != 0:
            raise RendererError(self.job.source_path, f"{PANDOC} exited with status {exit_code}")
        return self.output_file.read_text(encoding="utf-8")

    def cancel(self) -> None:
        if self.future is not None:
            self.future.cancel()
        elif self.process.poll() is None:
            self.process.kill()
            self.process.wait()


def start_pandoc(job: ConversionJob, workdir: Path, index: int) -> RenderHandle:
    input_file = workdir / f"input_{index}.md"
    output_file = workdir / f"output_{index}.html"
    input_file.write_text(job.body, encoding="utf-8")
    try:
        process = subprocess.Popen(
            [PANDOC, *PANDOC_ARGS, "-o", str(output_file), str(input_file)],
            stdin=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise RendererError(job.source_path, str(exc)) from exc
    return RenderHandle(job, process=process, output_file=output_file)


def dispatch(
    jobs: Sequence[ConversionJob], workdir: Path, executor: ThreadPoolExecutor
) -> list[RenderHandle]:
    handles: list[RenderHandle] = []
    try:
        for index, job in enumerate(jobs):
            if job.renderer == PANDOC:
                handles.append(start_pandoc(job, workdir, index))
            else:
                handles.append(RenderHandle(job, future=executor.submit(render_markdown, job.body)))
    except RendererError:
        for handle in handles:
            handle.cancel()
        raise
    return handles


def collect(handles: Sequence[RenderHandle]) -> list[tuple[ConversionJob, str]]:
    results = []
    for position, handle in enumerate(handles):
        try:
            results.append((handle.job, handle.result()))
        except BaseException:
            for pending in handles[position + 1 :]:
                pending.cancel()
            raise
    return results


def render_all(jobs: Sequence[ConversionJob], workers: int = 0) -> list[tuple[ConversionJob, str]]:
    if workers <= 0:
        workers = os.cpu_count() or 1
    workers = max(1, min(workers, 32))
    with tempfile.TemporaryDirectory(prefix="hunim_") as tmp:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return collect(dispatch(jobs, Path(tmp), executor))
