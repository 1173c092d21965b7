"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import AsyncMock, MagicMock

import config
from client import APIResponse, LiteLLMClient


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def clean_config():
    """Make sure no test sees another test's configuration."""
    config.reset_config()
    yield
    config.reset_config()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def mock_client():
    """A LiteLLMClient whose request() is an AsyncMock."""
    client = MagicMock(spec=LiteLLMClient)
    client.request = AsyncMock(return_value=APIResponse(status=200, body={}))
    return client


@pytest.fixture
def model_values():
    """Declared fields for a sample model."""
    return {
        "model_name": "gpt-4o-team",
        "custom_llm_provider": "openai",
        "base_model": "gpt-4o",
        "tier": "paid",
        "mode": "chat",
        "tpm": 100000,
        "rpm": 0,
        "model_api_key": "sk-test",
        "input_cost_per_million_tokens": 2.5,
        "output_cost_per_million_tokens": 10.0,
    }


@pytest.fixture
def credential_values():
    """Declared fields for a sample credential."""
    return {
        "credential_name": "azure-prod",
        "model_id": "",
        "credential_info": {"description": "prod key"},
        "credential_values": {"api_key": "secret"},
    }
