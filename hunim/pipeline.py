from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .config import CONFIG_NAME, read_site_config
from .content import ConversionJob, canonical_url, feed_entry, is_draft, sort_feed_entries
from .context import BuildContext
from .errors import SourceTreeError
from .frontmatter import Frontmatter, read_document, read_frontmatter
from .pages import ROBOTS_NOINDEX, build_rss, build_sitemap, write_page
from .render import expand_components, read_text, write_text
from .renderers import render_all
from .utils import clean_output_dir, copy_source_tree, should_process_file

FEED_TYPE = "feed"
INDEX_MD = "index.md"
INDEX_HTML = "index.html"


@dataclass
class BuildResult:
    sitemap_urls: list[str] = field(default_factory=list)
    feeds: list[Path] = field(default_factory=list)
    converted: int = 0

    def add_url(self, url: str) -> None:
        if url and url not in self.sitemap_urls:
            self.sitemap_urls.append(url)


def _entries(directory: Path) -> list[Path]:
    return sorted(directory.iterdir(), key=lambda p: p.name)


def write_feed(feed_dir: Path, frontmatter: Frontmatter, context: BuildContext) -> Path:
    posts = []
    for path in sorted(feed_dir.glob("*.md"), key=lambda p: p.name):
        if path.name == INDEX_MD:
            continue
        post_frontmatter = read_frontmatter(path)
        if is_draft(post_frontmatter) and not context.build_drafts:
            continue
        posts.append(feed_entry(path, post_frontmatter, context.base_url, context.output_dir))
    output_path = build_rss(feed_dir, frontmatter, sort_feed_entries(posts), context)
    print(f"Generated RSS feed at: {output_path}")
    return output_path


def collect_jobs(
    directory: Path,
    context: BuildContext,
    is_feed: bool = False,
    jobs: list[ConversionJob] | None = None,
    feeds: list[Path] | None = None,
) -> tuple[list[ConversionJob], list[Path]]:
    """Walk ``directory`` in name order and gather one job per Markdown file.

    A subdirectory whose ``index.md`` declares ``type: feed`` has its RSS
    feed written before its own children are visited. Skipped drafts are
    removed from the output tree.
    """
    jobs = [] if jobs is None else jobs
    feeds = [] if feeds is None else feeds
    for path in _entries(directory):
        if path.is_file() and path.suffix == ".md":
            frontmatter, body = read_document(path)
            if is_draft(frontmatter) and not context.build_drafts:
                path.unlink()
                continue
            member = is_feed and path.name != INDEX_MD
            jobs.append(
                ConversionJob(
                    source_path=path,
                    output_path=path.with_suffix(".html"),
                    frontmatter=frontmatter,
                    body=body,
                    is_feed_member=member,
                    feed_dir=directory if member else None,
                )
            )
        elif path.is_dir():
            index_path = path / INDEX_MD
            child_is_feed = False
            if index_path.is_file():
                index_frontmatter = read_frontmatter(index_path)
                if index_frontmatter.get("type") == FEED_TYPE:
                    child_is_feed = True
                    feeds.append(write_feed(path, index_frontmatter, context))
            collect_jobs(path, context, child_is_feed, jobs, feeds)
    return jobs, feeds


def process_static_file(path: Path, context: BuildContext) -> str:
    """Expand components in one HTML file; return its sitemap URL or ""."""
    if path.suffix.lower() != ".html" or not should_process_file(path):
        return ""
    content = expand_components(read_text(path), context.components, path.as_posix())
    if path.name != INDEX_HTML:
        write_text(path.with_suffix(""), content)
        path.unlink()
        return ""
    write_text(path, content)
    if ROBOTS_NOINDEX in content:
        return ""
    return canonical_url(context.base_url, path, context.output_dir)


def process_static_tree(directory: Path, context: BuildContext, result: BuildResult) -> None:
    for path in _entries(directory):
        if path.is_dir():
            process_static_tree(path, context, result)
        elif path.is_file():
            result.add_url(process_static_file(path, context))


def build_site(
    root: Path,
    *,
    build_drafts: bool = False,
    reload: bool = False,
    workers: int = 0,
    config_name: str = CONFIG_NAME,
) -> BuildResult:
    root = Path(root)
    config = read_site_config(root, config_name)
    context = BuildContext.create(root, config, build_drafts=build_drafts, reload=reload)
    if not context.source_dir.is_dir():
        raise SourceTreeError(f"Expected a src directory: {context.source_dir}")

    clean_output_dir(context.output_dir, root)
    copy_source_tree(context.source_dir, context.output_dir)

    result = BuildResult()
    jobs, result.feeds = collect_jobs(context.output_dir, context)
    print(f"Converting {len(jobs)} markdown files...")
    for job, html_content in render_all(jobs, workers):
        result.add_url(write_page(job, html_content, context))
        result.converted += 1

    process_static_tree(context.output_dir, context, result)
    sitemap_path = build_sitemap(context.output_dir, result.sitemap_urls)
    print(f"Generated sitemap at: {sitemap_path}")
    print("done building")
    return result
