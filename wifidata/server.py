"""
Simple HTTP server for the WiFi point API.

Serves :class:`~wifidata.api.WifiPointApi` over the standard library's
threading HTTP server. Only GET is routed.
"""

from __future__ import annotations

from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import json
import logging
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from .api import WifiPointApi, error_body

logger = logging.getLogger(__name__)


class WifiPointHandler(BaseHTTPRequestHandler):
    """HTTP request handler delegating to a WifiPointApi."""

    # Set by make_server
    api: Optional[WifiPointApi] = None

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        params = parse_qs(parts.query, keep_blank_values=True)
        response = self.api.dispatch(parts.path, params)
        self._send_json(response.status, response.body)

    def do_POST(self) -> None:
        self._method_not_allowed()

    def do_PUT(self) -> None:
        self._method_not_allowed()

    def do_DELETE(self) -> None:
        self._method_not_allowed()

    def _method_not_allowed(self) -> None:
        status = int(HTTPStatus.METHOD_NOT_ALLOWED)
        path = urlsplit(self.path).path
        self._send_json(status, error_body(status, "Only GET is supported", path))

    def _send_json(self, status: int, body: Any) -> None:
        payload = json.dumps(body, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("server.request %s", format % args)


def make_server(api: WifiPointApi, host: str = "127.0.0.1", port: int = 8080) -> ThreadingHTTPServer:
    """Build (but do not start) a server bound to ``host:port``."""

    handler = type("BoundWifiPointHandler", (WifiPointHandler,), {"api": api})
    return ThreadingHTTPServer((host, port), handler)


def serve(api: WifiPointApi, host: str = "127.0.0.1", port: int = 8080) -> None:
    """Serve until interrupted."""

    httpd = make_server(api, host, port)
    logger.info("server.started url=http://%s:%s", host, httpd.server_address[1])
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("server.stopped")
    finally:
        httpd.server_close()
