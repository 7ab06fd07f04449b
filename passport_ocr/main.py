"""Web UI for passport OCR.

A Flask app serving one page: drop passport photos, let Gemini read them one at
a time, review the fields in a table and export everything to Excel. The server
listens on a browser-safe port (default 8000).
"""
from __future__ import annotations

import io
import logging
import os
import socket
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import Flask, current_app, jsonify, render_template_string, request, send_file
from werkzeug.exceptions import HTTPException

from . import __version__
from .errors import BatchRejected, ExportError
from .export import XLSX_MIMETYPE, export_workbook
from .extraction import build_client, extract_passport, resolve_model
from .models import STATUS_SUCCESS, FileRecord, ImageUpload
from .page import PAGE_TEMPLATE
from .processing import Extractor, FileQueue, accept_batch, rejection_notice
from .render import render_table_body
from .settings import Settings, SettingsStore, api_key_warning

log = logging.getLogger(__name__)

STATE_KEY = "passport_ocr"
DEFAULT_PORT = 8000
PORT_SCAN_SPAN = 50


@dataclass
class AppState:
    store: SettingsStore
    settings: Settings
    model: str
    queue: Optional[FileQueue] = None
    _client: Any = None
    _client_key: str = ""
    _client_lock: threading.Lock = field(default_factory=threading.Lock)

    def gemini_client(self) -> Any:
        api_key = self.settings.api_key
        with self._client_lock:
            if self._client is None or self._client_key != api_key:
                self._client = build_client(api_key)
                self._client_key = api_key
            return self._client


def _log_outcome(record: FileRecord) -> None:
    if record.status == STATUS_SUCCESS:
        log.info("Extracted: %s", record.data.get("passportNo") or record.file_name)
    else:
        log.warning("Failed: %s (%s)", record.file_name, record.error)


def _default_extractor(state: AppState) -> Extractor:
    def extractor(upload: ImageUpload) -> Dict[str, str]:
        return extract_passport(upload, state.gemini_client(), model=state.model)

    return extractor


def create_app(
    config_dir: Optional[Path] = None,
    extractor_factory: Optional[Callable[[AppState], Extractor]] = None,
) -> Flask:
    app = Flask(__name__)
    store = SettingsStore(config_dir)
    state = AppState(store=store, settings=store.load(), model=resolve_model())
    state.queue = FileQueue((extractor_factory or _default_extractor)(state), listener=_log_outcome)
    app.extensions[STATE_KEY] = state

    _register_routes(app)
    return app


def get_state() -> AppState:
    return current_app.extensions[STATE_KEY]


def _uploads_from_request() -> List[ImageUpload]:
    uploads: List[ImageUpload] = []
    for storage in request.files.getlist("files"):
        if not storage or not storage.filename:
            continue
        uploads.append(
            ImageUpload(
                file_name=storage.filename,
                mime_type=storage.mimetype or "",
                data=storage.read(),
            )
        )
    return uploads


def _files_payload(state: AppState) -> Dict[str, object]:
    records = state.queue.records()
    return {
        "files": [record.to_dict() for record in records],
        "count": len(records),
        "busy": state.queue.busy,
        "html": render_table_body(records),
    }


# ---------- API routes ----------


def _register_routes(app: Flask) -> None:
    @app.route("/api/settings", methods=["GET", "POST"])
    def api_settings() -> Tuple[Any, int]:
        state = get_state()
        if request.method == "GET":
            return jsonify(
                {
                    "apiKeyPresent": bool(state.settings.api_key),
                    "settingsPath": str(state.store.path),
                    "model": state.model,
                }
            ), 200

        data = request.get_json(silent=True) or {}
        api_key = str(data.get("apiKey") or "").strip()
        if not api_key:
            return jsonify({"error": "Please enter your API key"}), 400

        state.settings = Settings(api_key=api_key)
        path = state.store.save(state.settings)
        log.info("Settings saved to %s", path)
        payload: Dict[str, object] = {
            "message": "Settings saved! Ready to scan.",
            "apiKeyPresent": True,
        }
        warning = api_key_warning(api_key)
        if warning:
            payload["warning"] = warning
        return jsonify(payload), 200

    @app.route("/api/upload", methods=["POST"])
    def api_upload() -> Tuple[Any, int]:
        state = get_state()
        uploads = _uploads_from_request()
        try:
            accepted, rejected = accept_batch(uploads, state.settings.api_key)
        except BatchRejected as exc:
            return jsonify({"error": str(exc), "needsSettings": exc.needs_settings}), 400

        created = state.queue.submit(accepted)
        payload: Dict[str, object] = {
            "accepted": [record.to_dict() for record in created],
            "rejected": rejected,
            "message": f"Processing {len(created)} file(s)...",
        }
        notice = rejection_notice(rejected)
        if notice:
            payload["warning"] = notice
        return jsonify(payload), 202

    @app.route("/api/files")
    def api_files() -> Tuple[Any, int]:
        return jsonify(_files_payload(get_state())), 200

    @app.route("/api/export")
    def api_export() -> Any:
        state = get_state()
        try:
            filename, content = export_workbook(state.queue.records())
        except ExportError as exc:
            log.error("Export error: %s", exc)
            return jsonify({"error": f"Export failed: {exc}"}), 400

        return send_file(
            io.BytesIO(content),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=filename,
        )

    @app.route("/api/reset", methods=["POST"])
    def api_reset() -> Tuple[Any, int]:
        cleared = get_state().queue.reset()
        return jsonify({"message": "All data cleared", "cleared": cleared}), 200

    @app.route("/api/status")
    def api_status() -> Tuple[Any, int]:
        state = get_state()
        return jsonify(
            {
                "version": __version__,
                "model": state.model,
                "busy": state.queue.busy,
                "count": len(state.queue),
            }
        ), 200

    @app.route("/")
    def index() -> str:
        state = get_state()
        return render_template_string(
            PAGE_TEMPLATE,
            has_api_key=bool(state.settings.api_key),
            model=state.model,
            version=__version__,
        )

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception) -> Any:
        if isinstance(exc, HTTPException):
            return exc
        log.exception("Unhandled error: %s", exc)
        return jsonify({"error": str(exc) or "Unexpected error"}), 500


# ---------- App entry ----------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# Ports Chromium refuses with ERR_UNSAFE_PORT (X11 and IRC ranges).
_BLOCKED_PORTS = frozenset(range(6000, 6064)) | frozenset(range(6665, 6670))


def _is_unsafe_browser_port(port: int) -> bool:
    """Return True if the upload page could not be opened on *port* in Chrome/Edge."""
    return not 0 < port <= 65535 or port in _BLOCKED_PORTS


def _is_port_available(host: str, port: int) -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
        return True
    except OSError:
        return False


def _default_port() -> int:
    raw = os.environ.get("PASSPORT_OCR_PORT") or os.environ.get("PORT")
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring non-numeric port %r, using %s", raw, DEFAULT_PORT)
        return DEFAULT_PORT


def _next_free_port(host: str, busy_port: int) -> int:
    """First browser-safe free port after *busy_port*, or 0 to let the OS pick."""
    for candidate in range(busy_port + 1, busy_port + PORT_SCAN_SPAN + 1):
        if not _is_unsafe_browser_port(candidate) and _is_port_available(host, candidate):
            return candidate
    return 0


def _choose_bind(host: str, requested_port: int) -> Tuple[str, int, Optional[str]]:
    """Return (host, port, warning) for serving the upload page."""
    notes: List[str] = []
    port = requested_port
    if _is_unsafe_browser_port(port):
        notes.append(f"Port {port} is blocked by Chrome/Edge (ERR_UNSAFE_PORT); using {DEFAULT_PORT}.")
        port = DEFAULT_PORT

    if not _is_port_available(host, port):
        replacement = _next_free_port(host, port)
        if replacement:
            notes.append(f"Port {port} is in use; using {replacement}.")
        else:
            notes.append(f"No free port near {port}; letting the OS assign one.")
        port = replacement

    return host, port, " ".join(notes) or None


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Passport OCR web app powered by Gemini.")
    parser.add_argument(
        "--host",
        default=os.environ.get("PASSPORT_OCR_HOST", "127.0.0.1"),
        help="Bind host (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_default_port(),
        help=f"Bind port (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--public",
        action="store_true",
        help="Alias for --host 0.0.0.0 (useful for LAN access)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding passportOcrSettings.json",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    host = "0.0.0.0" if args.public else args.host
    host, port, warning = _choose_bind(host, args.port)
    if warning:
        log.warning(warning)

    app = create_app(config_dir=args.config_dir)
    log.info("Passport OCR v%s using %s on http://%s:%s", __version__, resolve_model(), host, port)
    app.run(host=host, port=port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
