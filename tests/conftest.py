"""Pytest configuration shared by all tests.

Puts the workspace ``packages/`` dir (and the repo root, for ``tests.helpers``)
on ``sys.path`` so ``finance_advisor`` imports without an install, and clears
the package's environment knobs so a developer's shell or ``.env`` cannot
leak into assertions (model name, upload bound, API key).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

_ENV_VARS = (
    "OPENAI_API_KEY",
    "FINANCE_ADVISOR_MODEL",
    "FINANCE_ADVISOR_LOG_LEVEL",
    "FINANCE_ADVISOR_MAX_UPLOAD_BYTES",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
