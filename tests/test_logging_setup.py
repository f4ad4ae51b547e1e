import argparse
import logging

import logging_setup


def test_flags_pick_the_level(monkeypatch):
    monkeypatch.delenv("TAPDANCE_LOG_LEVEL", raising=False)
    assert logging_setup.resolve_level(None) == logging.INFO
    assert logging_setup.resolve_level(argparse.Namespace(quiet=True, debug=False)) == logging.WARNING
    assert logging_setup.resolve_level(argparse.Namespace(quiet=False, debug=True)) == logging.DEBUG


def test_environment_wins_over_flags(monkeypatch):
    monkeypatch.setenv("TAPDANCE_LOG_LEVEL", "error")
    assert logging_setup.resolve_level(argparse.Namespace(quiet=False, debug=True)) == logging.ERROR


def test_unknown_environment_level_is_ignored(monkeypatch):
    monkeypatch.setenv("TAPDANCE_LOG_LEVEL", "chatty")
    assert logging_setup.resolve_level(argparse.Namespace(quiet=True, debug=False)) == logging.WARNING
