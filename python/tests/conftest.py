"""
Pytest configuration and fixtures for linkscript tests.
"""
from typing import Any, Dict

import pytest


@pytest.fixture
def small_settings() -> Dict[str, Any]:
    """Short section lists without the alloc/noload marker symbols."""
    return {
        "alloc_sections": [".text", ".data"],
        "noload_sections": [".bss"],
        "emit_sections_kind_symbols": False,
    }
