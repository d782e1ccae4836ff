"""Tests for roost.logger and roost.signals."""

import io
import logging

import pytest

from roost.config import LoggerOptions
from roost.logger import build_logger, debug_log, level_number, log_at
from roost.signals import Signals


class TestLevels:
    def test_warn_alias(self) -> None:
        assert level_number("warn") == logging.WARNING
        assert level_number("INFO") == logging.INFO

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="verbose"):
            level_number("verbose")

    def test_build_logger(self) -> None:
        log = build_logger(LoggerOptions(name="roost-test-build", level="error"))
        assert log.name == "roost-test-build"
        assert log.level == logging.ERROR


class TestLogAt:
    def test_warn_falls_back_to_warning(self) -> None:
        seen: list[str] = []

        class OnlyWarning:
            def warning(self, msg: str) -> None:
                seen.append(msg)

        log_at(OnlyWarning(), "warn", "careful")
        assert seen == ["careful"]

    def test_unknown_level_falls_back_to_info(self) -> None:
        seen: list[str] = []

        class OnlyInfo:
            def info(self, msg: str) -> None:
                seen.append(msg)

        log_at(OnlyInfo(), "trace", "hello")
        assert seen == ["hello"]


class TestDebugLog:
    def test_plain_when_not_a_tty(self) -> None:
        stream = io.StringIO()
        debug_log("hello", "error", stream=stream)
        assert stream.getvalue() == "hello\n"


class TestSignals:
    def test_emit_in_subscription_order(self) -> None:
        signals = Signals()
        seen: list[str] = []
        signals.on("ready", lambda value: seen.append(f"a{value}"))
        signals.on("ready", lambda value: seen.append(f"b{value}"))

        assert signals.emit("ready", 1) == 2
        assert seen == ["a1", "b1"]

    def test_off(self) -> None:
        signals = Signals()
        handler = signals.on("ready", lambda: None)
        signals.off("ready", handler)
        signals.off("other", handler)
        assert signals.emit("ready") == 0
