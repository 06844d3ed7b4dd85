"""
Pytest configuration for Base Studio tests.
Forces local generation (no LLM) unless FORCE_LLM_TESTS=1 is set.
"""
import os
import pytest
from unittest.mock import patch

from bases.main import Orchestrator
from bases.synthesizer import synthesize
from bases.templates import DEFAULT_CATALOG


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "llm: marks tests that require LLM API access")


@pytest.fixture(autouse=True, scope="session")
def disable_llm_for_tests():
    """Patch load_api_key to return None, forcing local mode.
    Set FORCE_LLM_TESTS=1 to use the real API key."""
    if os.environ.get("FORCE_LLM_TESTS") == "1":
        yield
    else:
        with patch("bases.main.load_api_key", return_value=None):
            yield


@pytest.fixture
def orchestrator():
    return Orchestrator()


@pytest.fixture
def recipes_doc():
    """Synthesized single-view document with the default formulas."""
    return synthesize("notes tagged #recipes")


@pytest.fixture
def template_doc():
    def _get(template_id: str) -> str:
        return DEFAULT_CATALOG.document_for(template_id)
    return _get
