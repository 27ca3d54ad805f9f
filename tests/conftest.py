"""Shared test fixtures."""

from collections.abc import AsyncIterator

import pytest
from litestar.testing import AsyncTestClient

from sleep_pattern_server.app import create_app
from sleep_pattern_server.schemas.sleep import AnalysisInput
from sleep_pattern_server.services.engine import AnalysisConfig, SleepAnalysisEngine
from sleep_pattern_server.services.parser import InputParser
from sleep_pattern_server.services.sleep_analysis import SleepAnalysisService
from tests.fixtures.sleep_inputs import make_input


@pytest.fixture
def parser() -> InputParser:
    """Create input parser."""
    return InputParser()


@pytest.fixture
def engine() -> SleepAnalysisEngine:
    """Create engine with default thresholds."""
    return SleepAnalysisEngine(AnalysisConfig())


@pytest.fixture
def service() -> SleepAnalysisService:
    """Create orchestration service with default thresholds."""
    return SleepAnalysisService()


@pytest.fixture
def regular_week() -> AnalysisInput:
    """Seven identical nights: last activity 23:30, first activity 07:00, no checks."""
    return make_input()


@pytest.fixture
async def client() -> AsyncIterator[AsyncTestClient]:
    """Create test client."""
    async with AsyncTestClient(app=create_app()) as test_client:
        yield test_client
