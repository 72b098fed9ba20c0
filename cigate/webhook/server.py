"""Webhook and public log HTTP server.

Routes:
- POST <webhook_path>: GitHub deliveries (signature checked, then routed)
- GET /health
- GET /buildkite_public_log?<url>, GET /buildkite_public_artifact?<url>
- GET /<static file> from public_html
"""

import json
import logging
import mimetypes
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Dict
from urllib.parse import parse_qs, urlsplit

from cigate.config import AppConfig
from cigate.errors import UpstreamError
from cigate.public_log.urls import PUBLIC_ARTIFACT_PATH, PUBLIC_LOG_PATH
from cigate.public_log.views import PublicLogViews, ViewResponse
from cigate.webhook.handlers import EventRouter
from cigate.webhook.signature import verify_signature

LOG = logging.getLogger("cigate.webhook.server")

STATIC_DIR = Path(__file__).resolve().parent.parent / "public_log" / "public_html"


def _static_file(path: str) -> Path | None:
    """Resolve a request path inside STATIC_DIR; None if outside or missing."""
    name = path.lstrip("/")
    if not name:
        return None
    candidate = (STATIC_DIR / name).resolve()
    if STATIC_DIR not in candidate.parents or not candidate.is_file():
        return None
    return candidate


class WebhookHandler(BaseHTTPRequestHandler):
    """Handle GitHub webhooks, health check and public log pages."""

    config: AppConfig
    router: EventRouter
    views: PublicLogViews

    def _send(
        self,
        status: int,
        body: bytes = b"",
        content_type: str = "text/plain; charset=utf-8",
        headers: Dict[str, str] | None = None,
    ) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        for key, value in (headers or {}).items():
            self.send_header(key, value)
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _send_json(self, status: int, data: Dict[str, Any]) -> None:
        self._send(status, json.dumps(data).encode(), "application/json")

    def _send_view(self, response: ViewResponse) -> None:
        headers = {"Location": response.location} if response.location else None
        self._send(response.status, response.body.encode("utf-8"), response.content_type, headers)

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        if parts.path == "/health":
            self._send_json(200, {"status": "ok", "service": "cigate"})
            return
        if parts.path == PUBLIC_LOG_PATH:
            self._handle_view(self.views.build_log, parts.query)
            return
        if parts.path == PUBLIC_ARTIFACT_PATH:
            self._handle_view(self.views.artifact, parts.query)
            return
        static = _static_file(parts.path)
        if static is not None:
            content_type = mimetypes.guess_type(static.name)[0] or "application/octet-stream"
            self._send(200, static.read_bytes(), content_type)
            return
        self._send(404, b"Not found\n")

    def do_POST(self) -> None:
        if urlsplit(self.path).path == self.config.github.webhook_path:
            self._handle_github_webhook()
            return
        self._send(404, b"Not found\n")

    def _handle_view(self, view: Any, query: str) -> None:
        try:
            response = view(query)
        except UpstreamError as e:
            LOG.error("Buildkite request failed for %s: %s", self.path, e)
            self._send(502, b"Upstream error\n")
            return
        except ValueError:
            LOG.exception("Failed to render %s", self.path)
            self._send(500, b"Internal error\n")
            return
        self._send_view(response)

    def _parse_webhook_body(self, body: bytes) -> Dict[str, Any]:
        """Parse webhook body as JSON.

        Supports raw JSON and application/x-www-form-urlencoded (payload=...).
        """
        if not body:
            return {}
        content_type = self.headers.get("Content-Type", "")
        if "application/x-www-form-urlencoded" in content_type:
            parsed = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)
            raw = (parsed.get("payload") or [None])[0]
            if raw is None:
                return {}
            return json.loads(raw)
        return json.loads(body.decode("utf-8"))

    def _handle_github_webhook(self) -> None:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length) if length else b""
        event = self.headers.get("X-GitHub-Event", "")
        delivery = self.headers.get("X-GitHub-Delivery", "")

        if not verify_signature(
            self.config.github.webhook_secret,
            body,
            self.headers.get("X-Hub-Signature-256"),
            self.headers.get("X-Hub-Signature"),
        ):
            LOG.warning("Rejected webhook %s %s: bad signature", event, delivery)
            self._send_json(401, {"error": "invalid signature"})
            return

        try:
            payload = self._parse_webhook_body(body)
        except (ValueError, UnicodeDecodeError):
            LOG.warning("Invalid webhook JSON in %s %s", event, delivery)
            LOG.debug("Payload: %s", body.decode("utf-8", errors="replace"))
            self._send_json(400, {"error": "invalid JSON"})
            return
        if not isinstance(payload, dict):
            self._send_json(400, {"error": "payload must be an object"})
            return

        LOG.debug("Webhook %s %s payload: %s", event, delivery, payload)
        self.router.handle(event, payload, delivery)
        self._send_json(200, {"received": True})

    def log_message(self, format: str, *args: Any) -> None:
        LOG.debug(format, *args)


def make_server(config: AppConfig, router: EventRouter, views: PublicLogViews) -> ThreadingHTTPServer:
    """Create the HTTP server bound to config.server.host/port."""
    handler = type(
        "BoundWebhookHandler",
        (WebhookHandler,),
        {"config": config, "router": router, "views": views},
    )
    server = ThreadingHTTPServer((config.server.host, config.server.port), handler)
    server.daemon_threads = True
    return server


def run_webhook_server(config: AppConfig, router: EventRouter, views: PublicLogViews) -> None:
    """Run HTTP server for webhooks, public logs and health check."""
    server = make_server(config, router, views)
    LOG.info("Listening on %s:%s", config.server.host, config.server.port)
    try:
        server.serve_forever()
    finally:
        server.server_close()
