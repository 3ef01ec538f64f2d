"""Tests for taskguard.log — section/item layout and the debug gate."""

from __future__ import annotations

import pytest

from taskguard import log
from taskguard.config import Config


@pytest.fixture(autouse=True)
def _reset_verbose():
    yield
    log.set_verbose(False)


def test_item_indents_by_depth(capsys):
    log.item("Available tasks:")
    log.item("api-001 - API", depth=2)
    out = capsys.readouterr().out.splitlines()
    assert out == ["   Available tasks:", "      api-001 - API"]


def test_section_starts_with_blank_line(capsys):
    log.section("TASK STATUS")
    assert capsys.readouterr().out == "\nTASK STATUS\n"


def test_debug_follows_config_verbose(capsys):
    log.configure(Config(verbose=False))
    log.debug("hidden")
    assert "hidden" not in capsys.readouterr().out

    log.configure(Config(verbose=True))
    log.debug("shown")
    assert "shown" in capsys.readouterr().out


def test_errors_go_to_stderr(capsys):
    log.error("boom")
    captured = capsys.readouterr()
    assert "boom" in captured.err
    assert "boom" not in captured.out
