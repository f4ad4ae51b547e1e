"""
tapdance.py

Real entrypoint that launches the full application.

Integration
- Configures logging and loads config
- Creates QApplication, MainWindow and GameController
- Starts the phone controller web server (ControlApiBridge) unless --no-web
- Shows the controller QR code on the idle card

Headless modes
- --print-config prints the effective configuration as JSON
- --simulate SECONDS plays one session on the virtual clock with the autoplay bot and prints JSON
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from config import get_config, to_json
from logging_setup import setup_logging


logger = logging.getLogger("tapdance")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    argument_parser = argparse.ArgumentParser(description="TapDance rhythm game")
    argument_parser.add_argument("--no-web", action="store_true", help="Do not start the phone controller web server.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    argument_parser.add_argument("--seed", type=int, default=None, help="Seed for the note lane generator.")
    argument_parser.add_argument(
        "--simulate",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Run one headless session of SECONDS with the autoplay bot and print the result as JSON.",
    )
    argument_parser.add_argument(
        "--accuracy",
        type=float,
        default=0.85,
        help="Hit probability of the autoplay bot used by --simulate (0..1).",
    )
    argument_parser.add_argument("--difficulty", default=None, help="easy, medium or hard (--simulate only).")
    argument_parser.add_argument("--print-config", action="store_true", help="Print the effective config and exit.")
    argument_parser.add_argument("--web-debug", action="store_true", help="Enable Flask debug mode.")
    argument_parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    argument_parser.add_argument("--debug", action="store_true", help="Log debug detail (judgements, silent misses).")
    return argument_parser.parse_args(argv)


def _run_simulation(parsed_args: argparse.Namespace) -> int:
    import simulation

    app_config, _config_path = get_config()
    try:
        result = simulation.run_simulation(
            app_config,
            seconds=int(parsed_args.simulate),
            accuracy=float(parsed_args.accuracy),
            seed=parsed_args.seed,
            tier=parsed_args.difficulty,
        )
    except ValueError as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False))
        return 2

    payload = {"ok": True}
    payload.update(result.to_dict())
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _run_desktop(parsed_args: argparse.Namespace) -> int:
    from PyQt6.QtWidgets import QApplication

    import control_api
    import game_controller
    import main_window
    import overlay_renderer
    import paths
    import qr_code

    app_config, config_path = get_config()
    logger.info("Config: %s", config_path if config_path is not None else "defaults")

    qt_application = QApplication(sys.argv)

    window = main_window.MainWindow(
        playfield_config=overlay_renderer.PlayfieldConfig(line_distance=app_config.gameplay.line_distance),
    )
    window.resize(1100, 860)

    control_bridge: Optional[control_api.ControlApiBridge] = None
    if app_config.web_server.enabled and not parsed_args.no_web:
        control_bridge = control_api.ControlApiBridge(
            bind_host=app_config.web_server.host,
            bind_port=app_config.web_server.port,
            web_root_dir=paths.assets_dir(),
            debug=bool(parsed_args.web_debug),
            parent=window,
        )

    controller = game_controller.GameController(
        app_config=app_config,
        control_bridge=control_bridge,
        seed=parsed_args.seed,
        parent=window,
    )
    controller.snapshotUpdated.connect(window.apply_snapshot)
    window.menu_controls.requestStart.connect(controller.confirm)
    window.menu_controls.requestReplay.connect(controller.confirm)
    window.menu_controls.requestMenu.connect(controller.back_to_menu)
    window.menu_controls.requestDifficultyChanged.connect(controller.select_difficulty)
    qt_application.installEventFilter(controller)

    if control_bridge is not None:
        try:
            control_url, qr_image = qr_code.generate_control_qr_qimage(app_config, target_size_px=220)
            window.set_idle_qr(qr_image, control_url)
        except (RuntimeError, ValueError) as exception:
            logger.warning("Controller QR unavailable: %s", exception)
            window.set_idle_status_text("QR unavailable")
    else:
        window.set_idle_status_text("Phone controller disabled")

    qt_application.aboutToQuit.connect(controller.shutdown)

    controller.start()
    window.show()
    if parsed_args.fullscreen:
        window.showFullScreen()

    return int(qt_application.exec())


def main(argv: Optional[List[str]] = None) -> int:
    parsed_args = _parse_args(argv)
    setup_logging(parsed_args)

    if parsed_args.print_config:
        app_config, _config_path = get_config()
        print(to_json(app_config))
        return 0

    if parsed_args.simulate is not None:
        return _run_simulation(parsed_args)

    return _run_desktop(parsed_args)


if __name__ == "__main__":
    raise SystemExit(main())
