from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))


@pytest.fixture(autouse=True)
def _isolated_canvas_env(monkeypatch):
    """Engines built without explicit settings read FORM_CANVAS_*; keep the host env out of tests."""
    for name in list(os.environ):
        if name.startswith("FORM_CANVAS_"):
            monkeypatch.delenv(name, raising=False)
