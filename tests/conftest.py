"""Shared fixtures: a small but complete site on disk."""

from pathlib import Path

import pytest

DEFAULT_TEMPLATE = (
    '<html lang="{{ .Lang }}"><head><title>{{ .Title }}</title>{{ .MetaTags }}</head>'
    "<body>{{ .Content }}{{ .Reload }}</body></html>"
)
BLOG_LIST_TEMPLATE = (
    "<article><h1>{{ .Title }}</h1><time>{{ .Date }}</time><p>{{ .Author }}</p>"
    "{{ .Content }}</article>{{ .MetaTags }}"
)


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def page(body: str = "", **meta: str) -> str:
    header = "".join(f"{key}: {value}\n" for key, value in meta.items())
    return f"---\n{header}---\n{body}"


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "site"
    write(root / "hunim.toml", "baseURL = 'https://example.com/'\nlanguageCode = 'en-us'\ntitle = 'Example'\n")
    write(root / "templates" / "default.html", DEFAULT_TEMPLATE)
    write(root / "templates" / "blog_list.html", BLOG_LIST_TEMPLATE)
    write(root / "components" / "button.html", "<a>{{ $1 }}</a>\n")
    write(root / "components" / ".hidden", "ignored")
    write(root / "src" / "index.html", '<!DOCTYPE html><html><body>{{ button "Click" }}</body></html>')
    write(root / "src" / "about.md", page("# About\n\nHello there.\n", title="About", desc="About me"))
    write(root / "src" / "secret.md", page("Hidden.\n", title="Secret", desc="no-index"))
    write(root / "src" / "draft.md", page("Soon.\n", title="Draft", draft="true"))
    write(
        root / "src" / "blog" / "index.md",
        page("[first](./post-a)\n", title="Blog", desc="Posts", type="feed"),
    )
    write(
        root / "src" / "blog" / "post-a.md",
        page("First post.\n", title="Post A", date="Mon, 01 Jan 2024 00:00:00 UTC", desc="First", author="Ann"),
    )
    write(
        root / "src" / "blog" / "post-b.md",
        page("Second post.\n", title="Post B", date="Wed, 01 Jan 2025 00:00:00 UTC"),
    )
    write(
        root / "src" / "blog" / "post-c.md",
        page("Third post.\n", title="Post C", date="Sat, 01 Jun 2024 00:00:00 UTC"),
    )
    write(root / "src" / "img" / "logo.png", "not really a png")
    return root
