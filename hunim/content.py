from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .errors import ParseError
from .frontmatter import Frontmatter

RFC822_FMT = "%a, %d %b %Y %H:%M:%S"
DISPLAY_DATE_FMT = "%d %b %Y"
NUMERIC_ZONE_RE = re.compile(r"(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})")
NO_INDEX = "no-index"

# Hours east of UTC.
ZONE_OFFSETS = {
    "UTC": 0,
    "GMT": 0,
    "EDT": -4,
    "EST": -5,
    "CDT": -5,
    "CST": -6,
    "MDT": -6,
    "MST": -7,
    "PDT": -7,
    "PST": -8,
    "AKDT": -8,
    "AKST": -9,
    "HST": -10,
}


def parse_zone(zone: str, source: Optional[str] = None) -> dt.timezone:
    if zone in ZONE_OFFSETS:
        return dt.timezone(dt.timedelta(hours=ZONE_OFFSETS[zone]))
    match = NUMERIC_ZONE_RE.fullmatch(zone)
    if match:
        offset = dt.timedelta(hours=int(match.group("hours")), minutes=int(match.group("minutes")))
        return dt.timezone(-offset if match.group("sign") == "-" else offset)
    raise ParseError(f"Unknown time zone: {zone}", source)


def parse_date(value: str, source: Optional[str] = None) -> dt.datetime:
    """Parse ``Mon, 01 Jan 2024 00:00:00 UTC`` into an aware UTC datetime."""
    head, _, zone = value.strip().rpartition(" ")
    try:
        wall = dt.datetime.strptime(head, RFC822_FMT)
    except ValueError as exc:
        raise ParseError(f"Invalid date: {value!r}", source) from exc
    return wall.replace(tzinfo=parse_zone(zone, source)).astimezone(dt.timezone.utc)


def display_date(value: str, source: Optional[str] = None) -> str:
    parts = value.split()
    try:
        day = dt.datetime.strptime(" ".join(parts[1:4]), DISPLAY_DATE_FMT)
    except ValueError as exc:
        raise ParseError(f"Invalid date: {value!r}", source) from exc
    return f"{day:%B} {day.day}, {day.year}"


def is_no_index(frontmatter: Frontmatter) -> bool:
    return frontmatter.get("desc") == NO_INDEX


def is_draft(frontmatter: Frontmatter) -> bool:
    return frontmatter.get("draft", "false") == "true"


def canonical_path(output_path: Path, output_dir: Path) -> str:
    rel = output_path.relative_to(output_dir).as_posix()
    if rel == "index.html":
        return ""
    if rel.endswith("/index.html"):
        return rel[: -len("index.html")]
    if rel.endswith(".html"):
        return rel[: -len(".html")]
    return rel


def canonical_url(base_url: str, output_path: Path, output_dir: Path) -> str:
    return base_url + canonical_path(output_path, output_dir)


def index_directory(output_path: Path, output_dir: Path) -> str:
    parent = output_path.relative_to(output_dir).parent.as_posix()
    return "/" if parent == "." else f"/{parent}/"


@dataclass(frozen=True)
class ConversionJob:
    source_path: Path
    output_path: Path
    frontmatter: Frontmatter
    body: str
    is_feed_member: bool = False
    feed_dir: Optional[Path] = None

    @property
    def renderer(self) -> str:
        return self.frontmatter.get("renderer")


@dataclass(frozen=True)
class FeedEntry:
    title: str
    canonical_url: str
    source_path: Path
    published_raw: str
    published: dt.datetime
    description: str


def feed_entry(path: Path, frontmatter: Frontmatter, base_url: str, output_dir: Path) -> FeedEntry:
    source = path.as_posix()
    published_raw = frontmatter.get("date")
    if not published_raw:
        raise ParseError("Feed post has no date", source)
    link = base_url + path.relative_to(output_dir).with_suffix("").as_posix()
    desc = frontmatter.get("desc")
    return FeedEntry(
        title=frontmatter.get("title"),
        canonical_url=link,
        source_path=path,
        published_raw=published_raw,
        published=parse_date(published_raw, source),
        description=desc if desc and desc != NO_INDEX else link,
    )


def sort_feed_entries(entries: Iterable[FeedEntry]) -> list[FeedEntry]:
    return sorted(entries, key=lambda entry: entry.published, reverse=True)
