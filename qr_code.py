"""
qr_code.py

QR codes for the phone controller page.

Purpose
- Build the controller URL from config (http://<lan-ip>:<port>/)
- Encode it as an SVG QR code in memory
- Render the SVG into a QImage for the idle card in main_window.py

Standalone usage
python qr_code.py

Prints the controller URL and the SVG size as JSON.
"""

from __future__ import annotations

import io
import json
import socket
from typing import Tuple
from urllib.parse import urlparse

import qrcode
import qrcode.image.svg
from qrcode.constants import ERROR_CORRECT_M

from PyQt6.QtCore import QByteArray, Qt
from PyQt6.QtGui import QImage, QPainter

from config import AppConfig, get_config


_DEFAULT_FILL_COLOR = "#050313"
_DEFAULT_BACKGROUND_COLOR = "#F3F0FC"


def _best_effort_local_ip() -> str:
    """LAN address of the default route, or 127.0.0.1. Nothing is sent."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            # UDP connect only selects a route; 192.0.2.1 is TEST-NET-1.
            probe.connect(("192.0.2.1", 9))
            address = probe.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    return str(address) if address else "127.0.0.1"


def build_control_url(app_config: AppConfig) -> str:
    """
    Controller URL for the configured web server.

    A wildcard bind host (0.0.0.0) is replaced with the LAN IP so phones can reach it.
    """
    host_text = (app_config.web_server.host or "").strip() or "127.0.0.1"
    if host_text == "0.0.0.0":
        host_text = _best_effort_local_ip()
    return f"http://{host_text}:{int(app_config.web_server.port)}/"


def _require_http_url(url: str) -> str:
    candidate = (url or "").strip()
    if urlparse(candidate).scheme not in ("http", "https"):
        raise ValueError(f"Not an http(s) URL: {candidate!r}")
    return candidate


def generate_qr_svg_bytes(
    url: str,
    *,
    fill_color: str = _DEFAULT_FILL_COLOR,
    background_color: str = _DEFAULT_BACKGROUND_COLOR,
    box_size: int = 10,
    border: int = 2,
) -> bytes:
    encoder = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=max(1, int(box_size)), border=max(0, int(border)))
    encoder.add_data(_require_http_url(url))
    encoder.make(fit=True)

    svg_output = io.BytesIO()
    encoder.make_image(
        image_factory=qrcode.image.svg.SvgPathImage,
        fill_color=fill_color,
        back_color=background_color,
    ).save(svg_output)
    return svg_output.getvalue()


def _render_svg_bytes_to_qimage(svg_bytes: bytes, target_size_px: int) -> QImage:
    from PyQt6.QtSvg import QSvgRenderer

    renderer = QSvgRenderer(QByteArray(svg_bytes))
    if not renderer.isValid():
        raise RuntimeError("QSvgRenderer could not parse the SVG data")

    image = QImage(target_size_px, target_size_px, QImage.Format.Format_ARGB32)
    image.fill(Qt.GlobalColor.transparent)

    painter = QPainter(image)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    renderer.render(painter)
    painter.end()
    return image


def generate_qr_qimage(url: str, *, target_size_px: int) -> QImage:
    svg_bytes = generate_qr_svg_bytes(url)
    return _render_svg_bytes_to_qimage(svg_bytes, int(max(32, target_size_px)))


def generate_control_qr_qimage(app_config: AppConfig, *, target_size_px: int) -> Tuple[str, QImage]:
    """Generate the controller QR as (url, qimage)."""
    url = build_control_url(app_config)
    return url, generate_qr_qimage(url, target_size_px=target_size_px)


def main() -> int:
    app_config, _config_path = get_config()
    url = build_control_url(app_config)
    svg_bytes = generate_qr_svg_bytes(url)
    print(json.dumps({"ok": True, "url": url, "svg_bytes": len(svg_bytes)}, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
