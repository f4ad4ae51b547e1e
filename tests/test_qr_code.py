import pytest

pytest.importorskip("PyQt6.QtGui")
pytest.importorskip("qrcode")

import config
import qr_code


def _config_with_host(host, port=5178):
    return config.AppConfig.model_validate({"web_server": {"host": host, "port": port}})


def test_explicit_host_is_used_verbatim():
    assert qr_code.build_control_url(_config_with_host("192.168.1.20", 6001)) == "http://192.168.1.20:6001/"


def test_wildcard_host_is_replaced_with_lan_address(monkeypatch):
    monkeypatch.setattr(qr_code, "_best_effort_local_ip", lambda: "10.0.0.7")
    assert qr_code.build_control_url(_config_with_host("0.0.0.0")) == "http://10.0.0.7:5178/"


def test_svg_is_generated_for_http_urls():
    svg_bytes = qr_code.generate_qr_svg_bytes("http://10.0.0.7:5178/")
    assert b"<svg" in svg_bytes


@pytest.mark.parametrize("url", ["", "ftp://example.org/", "10.0.0.7:5178"])
def test_non_http_urls_are_rejected(url):
    with pytest.raises(ValueError):
        qr_code.generate_qr_svg_bytes(url)
