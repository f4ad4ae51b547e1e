import pytest

pytest.importorskip("PyQt6.QtGui")

from PyQt6.QtCore import Qt  # noqa: E402

import input_router  # noqa: E402


def _key(key):
    return int(key.value)


@pytest.fixture
def router():
    return input_router.InputRouter()


@pytest.mark.parametrize(
    "key, lane",
    [
        (Qt.Key.Key_Left, 0),
        (Qt.Key.Key_A, 0),
        (Qt.Key.Key_Down, 1),
        (Qt.Key.Key_S, 1),
        (Qt.Key.Key_Up, 2),
        (Qt.Key.Key_W, 2),
        (Qt.Key.Key_Right, 3),
        (Qt.Key.Key_D, 3),
    ],
)
def test_lane_keys(router, key, lane):
    taps = []
    router.laneTapped.connect(taps.append)
    assert router.press_key(_key(key))
    assert taps == [lane]


def test_held_and_repeated_keys_tap_once(router):
    taps = []
    router.laneTapped.connect(taps.append)
    router.press_key(_key(Qt.Key.Key_Up))
    router.press_key(_key(Qt.Key.Key_Up))
    router.press_key(_key(Qt.Key.Key_Up), auto_repeat=True)
    router.release_key(_key(Qt.Key.Key_Up))
    router.press_key(_key(Qt.Key.Key_Up))
    assert taps == [2, 2]
    assert router.ignored_presses == 2


def test_menu_keys(router):
    events = []
    router.confirmRequested.connect(lambda: events.append("confirm"))
    router.menuRequested.connect(lambda: events.append("menu"))
    router.difficultyRequested.connect(events.append)

    for key in (Qt.Key.Key_Space, Qt.Key.Key_Escape, Qt.Key.Key_1, Qt.Key.Key_3):
        router.press_key(_key(key))
        router.release_key(_key(key))
    assert events == ["confirm", "menu", "easy", "hard"]


def test_unmapped_keys_are_not_consumed(router):
    assert not router.press_key(_key(Qt.Key.Key_F))
    assert router.total_presses == 0


def test_focus_loss_releases_held_keys(router):
    taps = []
    router.laneTapped.connect(taps.append)
    router.press_key(_key(Qt.Key.Key_D))
    router.clear_pressed_keys()
    router.press_key(_key(Qt.Key.Key_D))
    assert taps == [3, 3]
