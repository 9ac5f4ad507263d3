"""Tests for shared observability logging."""

import logging
import time

import pytest

from placement_matching.observability.logging import get_logger, log_elapsed


def test_get_logger_formats_utc_timestamps(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    fixed = time.struct_time((2020, 1, 2, 3, 4, 5, 3, 2, 0))

    def fake_gmtime(_: float | None = None) -> time.struct_time:
        return fixed

    monkeypatch.setattr(time, "gmtime", fake_gmtime)

    name = "placement_matching.test.logging"
    logger = get_logger(name)
    logger.info("Hello")

    captured = capsys.readouterr()
    assert "2020-01-02T03:04:05+0000 INFO placement_matching.test.logging: Hello" in captured.err


def test_get_logger_is_singleton_per_name() -> None:
    name = "placement_matching.test.logging.singleton"
    logger = get_logger(name)
    logger_again = get_logger(name)

    assert logger is logger_again
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.propagate is False


def test_get_logger_applies_level_on_each_call() -> None:
    name = "placement_matching.test.logging.level"

    assert get_logger(name, level="debug").level == logging.DEBUG
    assert get_logger(name, level="WARNING").level == logging.WARNING
    assert get_logger(name, level="nonsense").level == logging.INFO
    assert len(get_logger(name).handlers) == 1


def test_log_elapsed_appends_milliseconds(capsys: pytest.CaptureFixture[str]) -> None:
    logger = get_logger("placement_matching.test.logging.elapsed")

    with log_elapsed(logger, "Ranked referral %s", "ref-1"):
        pass

    captured = capsys.readouterr()
    assert "Ranked referral ref-1 (" in captured.err
    assert "ms)" in captured.err
