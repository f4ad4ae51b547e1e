# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the app.
# - Defines where bundled web assets live relative to the project root.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - No Qt usage. Return pathlib.Path only.
# - User data (high score) lives under platformdirs, see score_store.py.
#
########################
# Interfaces:
# Public functions:
# - app_root_dir() -> pathlib.Path
# - assets_dir() -> pathlib.Path
#
# Outputs:
# - Paths used by web_server.py and control_api.py.
#
########################

from __future__ import annotations

from pathlib import Path


def app_root_dir() -> Path:
    """Return the directory holding the TapDance modules."""
    return Path(__file__).resolve().parent


def assets_dir() -> Path:
    """Return the bundled web assets directory (controller page)."""
    return app_root_dir() / "assets"
