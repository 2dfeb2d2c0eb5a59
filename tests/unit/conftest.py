"""Fixtures for unit tests."""

import pytest
from fakes import ImportScanningCompiler


@pytest.fixture
def compiler() -> ImportScanningCompiler:
    """Return an in-process compiler that records what it compiled."""
    return ImportScanningCompiler()
