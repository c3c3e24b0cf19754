from __future__ import annotations

import html
from pathlib import Path
from typing import Sequence

from .content import (
    ConversionJob,
    FeedEntry,
    canonical_url,
    display_date,
    index_directory,
    is_no_index,
)
from .context import BuildContext
from .errors import TemplateMissingError
from .frontmatter import Frontmatter
from .render import render_template, rewrite_relative_links, write_text

DEFAULT_TEMPLATE = "default.html"
LIST_TEMPLATE_SUFFIX = "_list.html"
ROBOTS_NOINDEX = '<meta name="robots" content="noindex">'
FEED_NAME = "index.xml"
SITEMAP_NAME = "sitemap.xml"

RELOAD_SCRIPT = """<script>var bfr = '';
  setInterval(function () {
      fetch(window.location).then((response) => {
          return response.text();
      }).then(r => {
          if (bfr != '' && bfr != r) {
              setTimeout(function() {
                  window.location.reload();
              }, 1000);
          }
          else {
              bfr = r;
          }
      });
  }, 1000);</script>"""


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def resolve_template(job: ConversionJob, context: BuildContext) -> str:
    name = job.frontmatter.get("template")
    if not name:
        implicit = ""
        if job.feed_dir is not None:
            implicit = job.feed_dir.name + LIST_TEMPLATE_SUFFIX
        name = implicit if implicit in context.templates else DEFAULT_TEMPLATE
    if name not in context.templates:
        raise TemplateMissingError(name)
    return name


def build_meta_tags(frontmatter: Frontmatter, url: str) -> str:
    desc = frontmatter.get("desc")
    no_index = is_no_index(frontmatter)
    tags = []
    if not no_index and "title" in frontmatter:
        tags.append(f'<meta property="og:title" content="{_attr(frontmatter["title"])}">')
    if desc and not no_index:
        tags.append(f'<meta name="description" content="{_attr(desc)}">')
    if no_index:
        tags.append(ROBOTS_NOINDEX)
    else:
        tags.append(f'<link rel="canonical" href="{_attr(url)}">')
        tags.append(f'<meta property="og:url" content="{_attr(url)}">')
    return "".join(f"\n  {tag}" for tag in tags)


def page_context(
    job: ConversionJob, content: str, meta_tags: str, context: BuildContext
) -> dict[str, str]:
    frontmatter = job.frontmatter
    values = {}
    if "title" in frontmatter:
        values["Title"] = frontmatter["title"]
    if job.is_feed_member and "date" in frontmatter:
        values["Date"] = display_date(frontmatter["date"], job.source_path.as_posix())
        if "author" in frontmatter:
            values["Author"] = frontmatter["author"]
    values["Content"] = content
    values["Lang"] = context.lang
    values["MetaTags"] = meta_tags
    values["Reload"] = RELOAD_SCRIPT if context.reload else ""
    return values


def render_page(job: ConversionJob, html_content: str, context: BuildContext) -> tuple[str, str]:
    """Return the finished document and its sitemap URL ("" for no-index pages)."""
    template_name = resolve_template(job, context)
    if job.output_path.name == "index.html":
        html_content = rewrite_relative_links(
            html_content, index_directory(job.output_path, context.output_dir)
        )
    url = canonical_url(context.base_url, job.output_path, context.output_dir)
    if is_no_index(job.frontmatter):
        url = ""
    meta_tags = build_meta_tags(job.frontmatter, url)
    values = page_context(job, html_content, meta_tags, context)
    return render_template(context.templates[template_name], values), url


def write_page(job: ConversionJob, html_content: str, context: BuildContext) -> str:
    document, url = render_page(job, html_content, context)
    write_text(job.output_path, document)
    job.source_path.unlink()
    return url


def build_rss(
    feed_dir: Path, frontmatter: Frontmatter, posts: Sequence[FeedEntry], context: BuildContext
) -> Path:
    title = frontmatter.get("title", "RSS Feed")
    desc = frontmatter.get("desc", "My RSS Feed")
    items = []
    for post in posts:
        items.append(
            "\n".join(
                [
                    "    <item>",
                    f"      <title>{html.escape(post.title)}</title>",
                    f"      <link>{html.escape(post.canonical_url)}</link>",
                    f"      <pubDate>{html.escape(post.published_raw)}</pubDate>",
                    f"      <description>{html.escape(post.description)}</description>",
                    "    </item>",
                ]
            )
        )
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss xmlns:atom="http://www.w3.org/2005/Atom" version="2.0">',
        "  <channel>",
        f"    <title>{html.escape(title)}</title>",
        f"    <link>{html.escape(context.base_url)}</link>",
        f"    <description>{html.escape(desc)}</description>",
        f"    <language>{html.escape(context.lang)}</language>",
    ]
    lines.extend(items)
    lines.extend(["  </channel>", "</rss>"])
    output_path = feed_dir / FEED_NAME
    write_text(output_path, "\n".join(lines))
    return output_path


def build_sitemap(output_dir: Path, urls: Sequence[str]) -> Path:
    items = []
    for url in urls:
        items.append("\n".join(["  <url>", f"    <loc>{html.escape(url)}</loc>", "  </url>"]))
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *items,
            "</urlset>",
        ]
    )
    output_path = output_dir / SITEMAP_NAME
    write_text(output_path, sitemap)
    return output_path
