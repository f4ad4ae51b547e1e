# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for TapDance.
# - Translates QKeyEvent into lane taps and menu intents and emits Qt signals.
#
# Design notes:
# - This must be the only keyboard source. No duplicate key mapping elsewhere.
# - The router never judges taps and never looks at the session phase;
#   SessionStateMachine ignores intents that do not apply to the current phase.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
#
########################
# Interfaces:
# Public enums:
# - class KeyAction(enum.Enum): TAP, CONFIRM, MENU, DIFFICULTY
#
# Public functions:
# - resolve_key(key_code: int) -> Optional[tuple[KeyAction, object]]
#
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - laneTapped(int)
#     - confirmRequested()
#     - menuRequested()
#     - difficultyRequested(str)
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - clear_pressed_keys() -> None
#     - reset_stats() -> None
#
# Inputs:
# - Raw QKeyEvent from the Qt event loop.
#
# Outputs:
# - Lane taps and menu intents consumed by GameController.
#
########################

from __future__ import annotations

import enum
from typing import Dict, Optional, Set, Tuple

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

import difficulty


class KeyAction(enum.Enum):
    TAP = "tap"
    CONFIRM = "confirm"
    MENU = "menu"
    DIFFICULTY = "difficulty"


KeyBinding = Tuple[KeyAction, object]


def _build_default_key_map() -> Dict[int, KeyBinding]:
    """
    Default bindings.

    Lane indexes:
      0 = Left   (Left arrow, A)
      1 = Down   (Down arrow, S)
      2 = Up     (Up arrow, W)
      3 = Right  (Right arrow, D)

    Menu keys:
      Space / Return = start or replay
      Escape         = back to the menu
      1 / 2 / 3      = easy / medium / hard
    """
    key_map: Dict[int, KeyBinding] = {}

    def bind(key_constant: Qt.Key, action: KeyAction, value: object = None) -> None:
        key_map[int(key_constant.value)] = (action, value)

    bind(Qt.Key.Key_Left, KeyAction.TAP, 0)
    bind(Qt.Key.Key_Down, KeyAction.TAP, 1)
    bind(Qt.Key.Key_Up, KeyAction.TAP, 2)
    bind(Qt.Key.Key_Right, KeyAction.TAP, 3)

    bind(Qt.Key.Key_A, KeyAction.TAP, 0)
    bind(Qt.Key.Key_S, KeyAction.TAP, 1)
    bind(Qt.Key.Key_W, KeyAction.TAP, 2)
    bind(Qt.Key.Key_D, KeyAction.TAP, 3)

    bind(Qt.Key.Key_Space, KeyAction.CONFIRM)
    bind(Qt.Key.Key_Return, KeyAction.CONFIRM)
    bind(Qt.Key.Key_Enter, KeyAction.CONFIRM)
    bind(Qt.Key.Key_Escape, KeyAction.MENU)

    bind(Qt.Key.Key_1, KeyAction.DIFFICULTY, difficulty.DifficultyTier.EASY.value)
    bind(Qt.Key.Key_2, KeyAction.DIFFICULTY, difficulty.DifficultyTier.MEDIUM.value)
    bind(Qt.Key.Key_3, KeyAction.DIFFICULTY, difficulty.DifficultyTier.HARD.value)

    return key_map


_DEFAULT_KEY_MAP = _build_default_key_map()


def resolve_key(key_code: int) -> Optional[KeyBinding]:
    return _DEFAULT_KEY_MAP.get(int(key_code))


class InputRouter(QObject):
    """
    Central keyboard router.

    This object never judges timing. Its only job is to:
      - map keys to lanes and menu intents
      - emit one signal per accepted press
    """

    laneTapped = pyqtSignal(int)
    confirmRequested = pyqtSignal()
    menuRequested = pyqtSignal()
    difficultyRequested = pyqtSignal(str)

    def __init__(
        self,
        parent: Optional[QObject] = None,
        key_map: Optional[Dict[int, KeyBinding]] = None,
    ) -> None:
        super().__init__(parent)

        self._key_map: Dict[int, KeyBinding] = dict(key_map) if key_map is not None else dict(_DEFAULT_KEY_MAP)

        # Press tracking for debounce and focus loss handling.
        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    # ------------------------------------------------------------------
    # Public API used by the main window
    # ------------------------------------------------------------------

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key press.

        Returns True if this router consumed the event, False otherwise.
        """
        return self.press_key(int(event.key()), auto_repeat=event.isAutoRepeat())

    def handle_key_release(self, event: QKeyEvent) -> bool:
        return self.release_key(int(event.key()), auto_repeat=event.isAutoRepeat())

    def press_key(self, key_code: int, *, auto_repeat: bool = False) -> bool:
        binding = self._key_map.get(key_code)

        # Holding a key must not spam taps.
        if auto_repeat or key_code in self._pressed_keys:
            if binding is not None:
                self._ignored_presses += 1
                return True
            return False

        if binding is None:
            return False

        self._pressed_keys.add(key_code)
        self._total_presses += 1
        self._dispatch(binding)
        return True

    def release_key(self, key_code: int, *, auto_repeat: bool = False) -> bool:
        if not auto_repeat:
            self._pressed_keys.discard(key_code)
        return key_code in self._key_map

    def clear_pressed_keys(self) -> None:
        """Called on focus loss or window deactivation."""
        self._pressed_keys.clear()

    def reset_stats(self) -> None:
        self._total_presses = 0
        self._ignored_presses = 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _dispatch(self, binding: KeyBinding) -> None:
        action, value = binding
        if action == KeyAction.TAP:
            self.laneTapped.emit(int(value))  # type: ignore[arg-type]
        elif action == KeyAction.CONFIRM:
            self.confirmRequested.emit()
        elif action == KeyAction.MENU:
            self.menuRequested.emit()
        elif action == KeyAction.DIFFICULTY:
            self.difficultyRequested.emit(str(value))

    @property
    def key_map(self) -> Dict[int, KeyBinding]:
        return dict(self._key_map)

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses


def _run_unit_tests() -> None:
    router = InputRouter()
    taps = []
    router.laneTapped.connect(taps.append)

    assert resolve_key(int(Qt.Key.Key_A.value)) == (KeyAction.TAP, 0)
    assert resolve_key(int(Qt.Key.Key_Up.value)) == (KeyAction.TAP, 2)
    assert resolve_key(int(Qt.Key.Key_F.value)) is None

    assert router.press_key(int(Qt.Key.Key_D.value))
    assert router.press_key(int(Qt.Key.Key_D.value), auto_repeat=True)
    router.release_key(int(Qt.Key.Key_D.value))
    assert taps == [3]
    assert router.ignored_presses == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
