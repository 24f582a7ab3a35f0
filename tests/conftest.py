"""Global test fixtures for agentflow."""

from __future__ import annotations

import pytest

from agentflow.core.llm import LLMClient
from agentflow.providers.mock import MockProvider
from agentflow.tools.planning import PlanStore


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def llm(mock_provider: MockProvider) -> LLMClient:
    """LLM client over the mock provider, with no retry delay."""
    return LLMClient(mock_provider, retry_base_delay=0.0)


@pytest.fixture
def plan_store() -> PlanStore:
    return PlanStore()
