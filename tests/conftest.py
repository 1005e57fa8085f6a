import os
import sys

import pytest

# Ensure project root, libs, and pods are importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
LIBS = os.path.join(ROOT, "libs")
PODS = os.path.join(ROOT, "pods")
for p in (ROOT, LIBS, PODS):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are memoized per process; reset around every test."""
    from ktcore.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
