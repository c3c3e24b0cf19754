"""Development server: static files from ``public/`` plus a rebuild loop.

Both run on one asyncio event loop. The watch task polls source
modification times and runs the rebuild in the default executor, so requests
keep being served from the previous output while a build is in progress.
"""

from __future__ import annotations

import asyncio
import mimetypes
import sys
from http import HTTPStatus
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlsplit

from .cache import latest_mtime
from .context import COMPONENTS_DIR, OUTPUT_DIR, SOURCE_DIR, TEMPLATES_DIR

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
POLL_INTERVAL = 1.0
HTML_TYPE = "text/html; charset=utf-8"
BINARY_TYPE = "application/octet-stream"
HTML_PREFIXES = ("<!DOCTYPE html", "<html")


def guess_mime_type(path: Path) -> str:
    if not path.suffix:
        try:
            with path.open("rb") as handle:
                head = handle.read(64).decode("utf-8", errors="ignore")
        except OSError:
            return BINARY_TYPE
        return HTML_TYPE if head.startswith(HTML_PREFIXES) else BINARY_TYPE
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None:
        return BINARY_TYPE
    if mime_type.startswith("text/") or mime_type in {"application/javascript", "application/json", "application/xml"}:
        return f"{mime_type}; charset=utf-8"
    return mime_type


def resolve_request_path(output_dir: Path, target: str) -> Optional[Path]:
    """Map a request target to a file under ``output_dir``; None means forbidden."""
    path = unquote(urlsplit(target).path)
    if ".." in path.split("/"):
        return None
    if path in ("", "/"):
        path = "/index.html"
    file_path = output_dir / path.lstrip("/")
    if file_path.is_dir():
        file_path = file_path / "index.html"
    return file_path


class DevServer:
    def __init__(
        self,
        root: Path,
        rebuild: Callable[[], object],
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        interval: float = POLL_INTERVAL,
        watch: bool = True,
    ) -> None:
        self.root = Path(root)
        self.output_dir = self.root / OUTPUT_DIR
        self.rebuild = rebuild
        self.host = host
        self.port = port
        self.interval = interval
        self.watch = watch
        self.last_mtime = 0.0
        self._server: Optional[asyncio.AbstractServer] = None

    @property
    def watched_roots(self) -> list[Path]:
        return [self.root / name for name in (SOURCE_DIR, TEMPLATES_DIR, COMPONENTS_DIR)]

    def respond(self, method: str, target: str) -> tuple[HTTPStatus, str, bytes]:
        if method not in ("GET", "HEAD"):
            return HTTPStatus.METHOD_NOT_ALLOWED, "text/plain", b"405 Method Not Allowed"
        file_path = resolve_request_path(self.output_dir, target)
        if file_path is None:
            return HTTPStatus.FORBIDDEN, "text/plain", b"403 Forbidden"
        if not file_path.is_file():
            return HTTPStatus.NOT_FOUND, "text/plain", b"404 Not Found"
        try:
            body = file_path.read_bytes()
        except OSError:
            return HTTPStatus.INTERNAL_SERVER_ERROR, "text/plain", b"500 Internal Server Error"
        return HTTPStatus.OK, guess_mime_type(file_path), body

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            request_line = (await reader.readline()).decode("latin-1").strip()
            while True:
                header = await reader.readline()
                if header in (b"\r\n", b"\n", b""):
                    break
            parts = request_line.split()
            if len(parts) < 2:
                status, content_type, body = HTTPStatus.BAD_REQUEST, "text/plain", b"400 Bad Request"
                method, target = "", ""
            else:
                method, target = parts[0], parts[1]
                status, content_type, body = self.respond(method, target)
            head = (
                f"HTTP/1.1 {status.value} {status.phrase}\r\n"
                f"Content-Type: {content_type}\r\n"
                f"Content-Length: {len(body)}\r\n"
                "Cache-Control: no-store\r\n"
                "Connection: close\r\n\r\n"
            )
            writer.write(head.encode("latin-1"))
            if method != "HEAD":
                writer.write(body)
            await writer.drain()
            print(f"{method} {target} -> {status.value}")
        except ConnectionError:
            pass
        finally:
            writer.close()

    def rebuild_safely(self) -> bool:
        print("Rebuilding site...")
        try:
            self.rebuild()
        except Exception as exc:
            print(f"Build failed: {exc}", file=sys.stderr)
            return False
        return True

    async def check_for_changes(self) -> bool:
        current = latest_mtime(self.watched_roots)
        if current <= self.last_mtime:
            return False
        self.last_mtime = current
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.rebuild_safely)
        return True

    async def watch_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.check_for_changes()
            except OSError as exc:
                print(f"Watch failed: {exc}", file=sys.stderr)

    async def start(self) -> asyncio.AbstractServer:
        self.last_mtime = latest_mtime(self.watched_roots)
        self._server = await asyncio.start_server(self.handle, self.host, self.port)
        self.port = self._server.sockets[0].getsockname()[1]
        return self._server

    async def serve_forever(self) -> None:
        server = await self.start()
        print(f"Server running at http://{self.host}:{self.port}/")
        if self.watch:
            print("Watching for file changes...")
        print("Press Ctrl+C to stop")
        watcher = asyncio.create_task(self.watch_loop()) if self.watch else None
        try:
            async with server:
                await server.serve_forever()
        finally:
            if watcher is not None:
                watcher.cancel()


def run_server(
    root: Path,
    rebuild: Callable[[], object],
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    watch: bool = True,
    interval: float = POLL_INTERVAL,
) -> None:
    server = DevServer(root, rebuild, host=host, port=port, interval=interval, watch=watch)
    # Errors in the first build are fatal; later rebuilds only report them.
    rebuild()
    asyncio.run(server.serve_forever())
