"""Shared fixtures: on-disk application trees."""

from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest


@pytest.fixture
def write(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a source file below ``tmp_path``; parents are created."""

    def _write(relative: str, source: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(source), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def runtime_options(tmp_path: Path) -> dict:
    """Options rooted at ``tmp_path`` with access logging off."""
    return {"root_path": tmp_path, "logger": {"access_log": False}}
