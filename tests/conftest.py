"""Pytest configuration and shared fixtures for the safemd test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

import os
from pathlib import Path
from typing import Generator

import pytest
from hypothesis import Phase, Verbosity, settings
from utils import cleanup_test_dir, create_test_temp_dir

from safemd.tokenizers import TokenizerRegistry, default_registry

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - full render pipeline tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "fuzzing: Property-based tests driven by Hypothesis")
    config.addinivalue_line("markers", "security: Tests covering sanitization and URL safety")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files.

    Yields
    ------
    Path
        Temporary directory path that will be cleaned up after test.

    """
    temp_path = create_test_temp_dir()
    try:
        yield temp_path
    finally:
        cleanup_test_dir(temp_path)


@pytest.fixture
def registry() -> TokenizerRegistry:
    """Provide a mutable copy of the default tokenizer registry.

    Returns
    -------
    TokenizerRegistry
        Unfrozen registry with the default tokenizers in default order.

    """
    return default_registry().copy()


@pytest.fixture
def sample_markdown() -> str:
    """Provide a sample comment exercising most of the grammar.

    Returns
    -------
    str
        Markdown text used across multiple tests.

    """
    return """# Release notes

This release adds **footnotes**[^notes] and _math_ like $e^{i\\pi} + 1 = 0$.

- Item one
- Item two

1. First
2. Second

> Quoted text

| Name | Value |
|:-----|------:|
| a    | 1     |

```python
def hello():
    return "world"
```

![Diagram](https://example.com/diagram.png)
Figure: Pipeline overview

[^notes]: Numbered by first reference.
"""
