# SPDX-License-Identifier: MIT
"""Pytest environment setup.

Ensures the repository root is importable so tests resolve the in-tree
packages without installing them, and keeps ``EXPOSURE_*`` variables from
the developer's shell out of the settings tests.
"""

from __future__ import annotations

import os
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolate_exposure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("EXPOSURE_"):
            monkeypatch.delenv(name, raising=False)
