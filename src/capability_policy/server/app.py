"""HTTP server for capability-policy using stdlib http.server.

Routes:
    GET    /health                          — health check
    GET    /projects/{id}/policy            — stored policy plus per-role preview
    PUT    /projects/{id}/policy            — partial policy update
    PUT    /projects/{id}/integration       — mark the data liaison integration installed
    POST   /capabilities/discover           — capabilities visible to a caller
    POST   /capabilities/authorize          — authorize one capability for a caller

Usage:
    python -m capability_policy.server.app --port 8080
    python -m capability_policy.server.app --host 127.0.0.1 --port 9000
"""
from __future__ import annotations

import argparse
import json
import logging
import re
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer

from capability_policy.server import routes

logger = logging.getLogger(__name__)

# URL patterns for /projects/{id}/policy and /projects/{id}/integration
_POLICY_PATTERN = re.compile(r"^/projects/([^/]+)/policy$")
_INTEGRATION_PATTERN = re.compile(r"^/projects/([^/]+)/integration$")


class CapabilityPolicyHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the capability-policy server.

    All request bodies and responses use JSON.
    """

    def log_message(self, format: str, *args: object) -> None:
        """Override to route access logs through the Python logging system."""
        logger.debug(format, *args)

    # ── GET ───────────────────────────────────────────────────────────────────

    def do_GET(self) -> None:
        """Handle all GET requests by routing on the URL path."""
        path = self._path()

        if path == "/health":
            self._send_json(*routes.handle_health())
            return

        match = _POLICY_PATTERN.match(path)
        if match:
            self._send_json(*routes.handle_get_policy(match.group(1)))
            return

        self._send_json(404, {"error": "Not found", "detail": f"No route for GET {path}"})

    # ── POST ──────────────────────────────────────────────────────────────────

    def do_POST(self) -> None:
        """Handle all POST requests by routing on the URL path."""
        path = self._path()

        body = self._read_json_body()
        if body is None:
            return

        if path == "/capabilities/discover":
            self._send_json(*routes.handle_discover(body))
        elif path == "/capabilities/authorize":
            self._send_json(*routes.handle_authorize(body))
        else:
            self._send_json(
                404, {"error": "Not found", "detail": f"No route for POST {path}"}
            )

    # ── PUT ───────────────────────────────────────────────────────────────────

    def do_PUT(self) -> None:
        """Handle all PUT requests by routing on the URL path."""
        path = self._path()

        body = self._read_json_body()
        if body is None:
            return

        match = _POLICY_PATTERN.match(path)
        if match:
            self._send_json(*routes.handle_update_policy(match.group(1), body))
            return

        match = _INTEGRATION_PATTERN.match(path)
        if match:
            self._send_json(*routes.handle_set_integration(match.group(1), body))
            return

        self._send_json(404, {"error": "Not found", "detail": f"No route for PUT {path}"})

    # ── DELETE ────────────────────────────────────────────────────────────────

    def do_DELETE(self) -> None:
        """Handle all DELETE requests."""
        path = self._path()
        self._send_json(
            405,
            {"error": "Method not allowed", "detail": f"DELETE not supported on {path}"},
        )

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _path(self) -> str:
        return urllib.parse.urlparse(self.path).path.rstrip("/")

    def _send_json(self, status: int, data: dict[str, object]) -> None:
        """Serialize *data* to JSON and send an HTTP response with *status*."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> dict[str, object] | None:
        """Read and parse the JSON request body.

        Returns None (and sends a 400 error response) if parsing fails.
        """
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length == 0:
            return {}

        raw = self.rfile.read(content_length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._send_json(400, {"error": "Invalid JSON", "detail": str(exc)})
            return None
        if not isinstance(parsed, dict):
            self._send_json(400, {"error": "Invalid JSON", "detail": "Body must be an object."})
            return None
        return parsed


def create_server(host: str = "0.0.0.0", port: int = 8080) -> HTTPServer:
    """Create (but do not start) the capability-policy HTTP server.

    Parameters
    ----------
    host:
        Bind address (default ``"0.0.0.0"`` — all interfaces).
    port:
        TCP port to listen on (default 8080).

    Returns
    -------
    HTTPServer
        A configured server instance ready to call ``serve_forever()`` on.
    """
    server = HTTPServer((host, port), CapabilityPolicyHandler)
    logger.info("capability-policy server created at http://%s:%d", host, port)
    return server


def run_server(host: str = "0.0.0.0", port: int = 8080) -> None:
    """Create and run the capability-policy HTTP server (blocking)."""
    server = create_server(host=host, port=port)
    logger.info("Serving capability-policy on http://%s:%d — press Ctrl-C to stop", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down capability-policy server.")
    finally:
        server.server_close()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="capability-policy HTTP server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8080, help="TCP port")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level))
    run_server(host=args.host, port=args.port)
