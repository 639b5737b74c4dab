"""Root conftest: shared fixtures for the entire test suite."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dbgmirror.bridge import Heap, HeapProvider, InspectionProvider
from dbgmirror.core import MirrorConfig, MirrorRegistry


# ---------------------------------------------------------------------------
# Target heap and provider
# ---------------------------------------------------------------------------

@pytest.fixture()
def heap():
    """A fresh heap with only the intrinsic objects allocated."""
    return Heap()


@pytest.fixture()
def provider(heap):
    return HeapProvider(heap)


@pytest.fixture()
def mock_provider():
    """MagicMock implementing the InspectionProvider protocol."""
    return MagicMock(spec=InspectionProvider)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@pytest.fixture()
def config():
    return MirrorConfig()


@pytest.fixture()
def registry(provider, config):
    """A registry over the heap provider with default configuration."""
    return MirrorRegistry(provider, config)


# ---------------------------------------------------------------------------
# Sample script
# ---------------------------------------------------------------------------

SAMPLE_SOURCE = (
    "function Foo(x) {\n"
    "  this.x = x;\n"
    "}\n"
    "obj.bar(1, 2);\n"
)


@pytest.fixture()
def sample_script(heap):
    """A four-line script named app.js."""
    return heap.script("app.js", SAMPLE_SOURCE)
