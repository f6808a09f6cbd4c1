from __future__ import annotations

import faulthandler
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.

# Logging is configured on first import; keep test runs out of the home directory.
os.environ.setdefault("SHEETBRIDGE_LOG_DIR", tempfile.mkdtemp(prefix="sheetbridge_logs_"))

from sheetbridge.types import RawCell  # noqa: E402


@pytest.fixture()
def raw():
    """Shorthand for building raw cells from native values."""

    return RawCell.from_native
