"""Test utilities for the safemd test suite.

This module provides helpers for parsing rendered HTML, validating that
output is safe, and managing temporary files.
"""

import shutil
import tempfile
from pathlib import Path

from bs4 import BeautifulSoup

from safemd.utils.security import is_safe_url


def soup_of(html: str) -> BeautifulSoup:
    """Parse rendered HTML for structural assertions."""
    return BeautifulSoup(html, "html.parser")


def assert_html_safe(html: str) -> None:
    """Assert that rendered HTML carries no script vectors."""
    soup = soup_of(html)
    assert soup.find(["script", "style", "object", "embed"]) is None
    for tag in soup.find_all(True):
        for name, value in tag.attrs.items():
            assert not name.startswith("on"), f"event handler survived: {name}"
            if name in ("href", "src"):
                assert is_safe_url(value), f"unsafe URL survived: {value}"


def create_test_temp_dir() -> Path:
    """Create a temporary directory for test files."""
    return Path(tempfile.mkdtemp())


def cleanup_test_dir(temp_dir: Path) -> None:
    """Clean up test directory and files."""
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
