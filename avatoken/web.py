# avatoken/web.py
"""
Minimal web form: paste an image URL, get the token PNG back.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from io import BytesIO
from typing import Any, Dict, Type
from urllib.parse import parse_qs

import requests

from .batch import resolve_color
from .process import make_token
from .sources import DecodeError, UnsupportedImageError, fetch_image, output_name

log = logging.getLogger(__name__)

PAGE_TPL = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p style="color: #b00020">{message}</p>
<form method="post" action="/">
  <p><label>Image URL (PNG or JPEG)<br><input type="url" name="url" size="60" required></label></p>
  <p><label>Border color <input type="text" name="color" placeholder="#RRGGBB or empty for auto"></label></p>
  <p>Output: {scale}x{scale} px, border {border_width:g} px</p>
  <p><button type="submit">Make token</button></p>
</form>
</body>
</html>
"""

# largest form body we read
MAX_FORM_BYTES = 16 * 1024


@dataclass(frozen=True)
class PageTemplate:
    """The form page, built once at startup and shared read-only by every request."""
    title: str
    scale: int
    border_width: float

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], title: str = "Token maker") -> "PageTemplate":
        return cls(title=title, scale=cfg["render"]["scale"], border_width=cfg["render"]["border_width"])

    def render(self, message: str = "") -> bytes:
        return PAGE_TPL.format(
            title=html.escape(self.title),
            message=html.escape(message),
            scale=self.scale,
            border_width=self.border_width,
        ).encode("utf-8")


def make_handler(template: PageTemplate, cfg: Dict[str, Any]) -> Type[BaseHTTPRequestHandler]:
    """Request handler class bound to a shared template and a resolved config."""

    class TokenHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            if self.path.split("?")[0] != "/":
                self.send_error(404, "Not Found")
                return
            self._send_page(200, "")

        def do_POST(self):
            if self.path.split("?")[0] != "/":
                self.send_error(404, "Not Found")
                return

            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                length = -1
            if length < 0:
                self.close_connection = True
                self._send_page(400, "Bad Content-Length")
                return
            if length > MAX_FORM_BYTES:
                # body left unread, so the connection cannot be reused
                self.close_connection = True
                self._send_page(413, "Form too large")
                return
            form = parse_qs(self.rfile.read(length).decode("utf-8", errors="replace"))
            url = (form.get("url") or [""])[0].strip()
            color = (form.get("color") or [""])[0]
            if not url:
                self._send_page(400, "Please provide an image URL")
                return

            try:
                image, name = fetch_image(url, timeout=cfg["download"]["timeout"])
            except (requests.RequestException, UnsupportedImageError, DecodeError) as e:
                log.warning("Rejected %s: %s", url, e)
                self._send_page(400, str(e))
                return

            try:
                token = make_token(
                    image,
                    scale=cfg["render"]["scale"],
                    border_width=cfg["render"]["border_width"],
                    color=resolve_color(color.strip() or cfg["render"]["color"]),
                    brightness=cfg["tint"]["brightness"],
                    contrast=cfg["tint"]["contrast"],
                )
            except Exception as e:
                log.error("Failed processing %s: %s", url, e)
                self._send_page(500, f"Processing failed: {e}")
                return

            buf = BytesIO()
            token.save(buf, format="PNG")
            body = buf.getvalue()
            filename = output_name(name, prefix=cfg["output"]["prefix"], strip=cfg["output"]["strip"])

            self.send_response(200)
            self.send_header("Content-Type", "image/png")
            self.send_header("Content-Length", str(len(body)))
            self.send_header("Content-Disposition", f'attachment; filename="{filename}"')
            self.end_headers()
            self.wfile.write(body)
            log.info("Served %s for %s", filename, url)

        def _send_page(self, status: int, message: str) -> None:
            body = template.render(message)
            self.send_response(status)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            if self.close_connection:
                self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            log.debug("%s - %s", self.address_string(), format % args)

    return TokenHandler


def create_server(cfg: Dict[str, Any]) -> HTTPServer:
    template = PageTemplate.from_config(cfg)
    handler = make_handler(template, cfg)
    return HTTPServer((cfg["server"]["host"], cfg["server"]["port"]), handler)


def serve(cfg: Dict[str, Any]) -> None:
    server = create_server(cfg)
    host, port = server.server_address[:2]
    log.info("Serving on http://%s:%d/ (Ctrl+C to stop)", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        server.server_close()
