import asyncio
import os
import time

import pytest

from hunim import cache
from hunim.server import DevServer, guess_mime_type, resolve_request_path

from conftest import write


async def fetch(port, target, method="GET"):
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(f"{method} {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("latin-1"))
    await writer.drain()
    data = await reader.read()
    writer.close()
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split()[1])
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return status, headers, body


def serve_requests(root, requests):
    async def scenario():
        server = DevServer(root, lambda: None, port=0, watch=False)
        listener = await server.start()
        try:
            return [await fetch(server.port, target, method) for method, target in requests]
        finally:
            listener.close()
            await listener.wait_closed()

    return asyncio.run(scenario())


def make_output(tmp_path):
    public = tmp_path / "public"
    write(public / "index.html", "<!DOCTYPE html><p>home</p>")
    write(public / "blog" / "index.html", "<p>blog</p>")
    write(public / "about", "<!DOCTYPE html><p>about</p>")
    write(public / "style.css", "body {}")
    write(public / "blob", "\x00\x01data")
    return public


def test_guess_mime_type(tmp_path):
    public = make_output(tmp_path)
    assert guess_mime_type(public / "index.html") == "text/html; charset=utf-8"
    assert guess_mime_type(public / "style.css") == "text/css; charset=utf-8"
    assert guess_mime_type(public / "about") == "text/html; charset=utf-8"
    assert guess_mime_type(public / "blob") == "application/octet-stream"
    assert guess_mime_type(public / "image.png") == "image/png"


def test_resolve_request_path(tmp_path):
    public = make_output(tmp_path)
    assert resolve_request_path(public, "/") == public / "index.html"
    assert resolve_request_path(public, "/blog") == public / "blog" / "index.html"
    assert resolve_request_path(public, "/blog/") == public / "blog" / "index.html"
    assert resolve_request_path(public, "/about?x=1") == public / "about"
    assert resolve_request_path(public, "/a%20b.html") == public / "a b.html"
    assert resolve_request_path(public, "/../secret") is None
    assert resolve_request_path(public, "/%2e%2e/secret") is None


def test_serves_files_over_http(tmp_path):
    make_output(tmp_path)
    responses = serve_requests(
        tmp_path,
        [
            ("GET", "/"),
            ("GET", "/blog/"),
            ("GET", "/about"),
            ("GET", "/missing"),
            ("GET", "/../etc/passwd"),
            ("HEAD", "/style.css"),
            ("POST", "/"),
        ],
    )
    root, blog, about, missing, forbidden, head, post = responses
    assert root[0] == 200
    assert root[1]["Content-Type"] == "text/html; charset=utf-8"
    assert root[2] == b"<!DOCTYPE html><p>home</p>"
    assert blog[2] == b"<p>blog</p>"
    assert about[1]["Content-Type"] == "text/html; charset=utf-8"
    assert missing[0] == 404
    assert forbidden[0] == 403
    assert head[0] == 200
    assert head[1]["Content-Length"] == str(len("body {}"))
    assert head[2] == b""
    assert post[0] == 405


def test_change_detection_triggers_rebuild(tmp_path):
    source = write(tmp_path / "src" / "index.html", "<p>v1</p>")
    calls = []
    server = DevServer(tmp_path, lambda: calls.append("built"), watch=False)

    async def scenario():
        server.last_mtime = 0.0
        first = await server.check_for_changes()
        unchanged = await server.check_for_changes()
        future = time.time() + 10
        os.utime(source, (future, future))
        changed = await server.check_for_changes()
        return first, unchanged, changed

    assert asyncio.run(scenario()) == (True, False, True)
    assert calls == ["built", "built"]
    assert server.last_mtime >= time.time() + 5


def test_template_changes_are_watched(tmp_path):
    write(tmp_path / "src" / "index.html", "<p>v1</p>")
    template = write(tmp_path / "templates" / "default.html", "{{ .Content }}")
    calls = []
    server = DevServer(tmp_path, lambda: calls.append("built"), watch=False)

    async def scenario():
        server.last_mtime = max(p.stat().st_mtime for p in (tmp_path / "src" / "index.html", template))
        future = time.time() + 10
        os.utime(template, (future, future))
        return await server.check_for_changes()

    assert asyncio.run(scenario()) is True
    assert calls == ["built"]


def test_failed_rebuild_does_not_stop_loop(tmp_path, capsys):
    write(tmp_path / "src" / "index.html", "<p>v1</p>")

    def broken():
        raise RuntimeError("boom")

    server = DevServer(tmp_path, broken, watch=False)
    assert asyncio.run(server.check_for_changes()) is True
    assert "Build failed: boom" in capsys.readouterr().err
    assert asyncio.run(server.check_for_changes()) is False


class StopWatching(Exception):
    pass


class UnreadablePath:
    def stat(self):
        raise PermissionError("denied")


def test_latest_mtime_skips_unreadable_entries(tmp_path, monkeypatch):
    readable = write(tmp_path / "src" / "index.html", "<p>v1</p>")
    os.utime(readable, (1000, 1000))

    def files(root):
        if root.name == "templates":
            raise OSError("directory vanished")
        if root.name == "components":
            return [UnreadablePath()]
        return [readable]

    monkeypatch.setattr(cache, "list_files", files)
    roots = [tmp_path / "src", tmp_path / "templates", tmp_path / "components"]
    assert cache.latest_mtime(roots) == 1000


def test_watch_loop_survives_filesystem_errors(tmp_path, capsys):
    server = DevServer(tmp_path, lambda: None, interval=0, watch=True)
    calls = []

    async def flaky_check():
        calls.append(1)
        if len(calls) == 1:
            raise PermissionError("denied")
        if len(calls) == 3:
            raise StopWatching
        return False

    server.check_for_changes = flaky_check
    with pytest.raises(StopWatching):
        asyncio.run(server.watch_loop())
    assert len(calls) == 3
    assert "Watch failed: denied" in capsys.readouterr().err
