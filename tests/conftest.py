"""Shared pytest fixtures for running cat as a subprocess."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
CAT_SCRIPT = PACKAGE_ROOT / "python" / "cat.py"


@dataclass(frozen=True)
class CatResult:
    args: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: str


@pytest.fixture
def run_cat(tmp_path: Path) -> Callable[..., CatResult]:
    def _run(args: list[str], stdin: bytes = b"", timeout: float = 15.0) -> CatResult:
        completed = subprocess.run(
            [sys.executable, str(CAT_SCRIPT), *args],
            cwd=tmp_path,
            input=stdin,
            capture_output=True,
            check=False,
            timeout=timeout,
        )
        return CatResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr.decode("utf-8", errors="replace"),
        )

    return _run


@pytest.fixture
def cat_command() -> list[str]:
    return [sys.executable, str(CAT_SCRIPT)]


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, bytes], str]:
    def _write(name: str, content: bytes) -> str:
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)

    return _write
