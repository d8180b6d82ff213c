import json
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from hwhelper.domain.models.ai import StructuredAIResponse
from hwhelper.infrastructure.ai.openai.gpt_client import GptClient
from hwhelper.infrastructure.config.settings import set_config_for_testing, clear_test_config

SAMPLE_EXPLANATION = {
    "gradeLevel": "high",
    "problemType": "Quadratic Equation",
    "overview": "Factor the quadratic and use the zero product property.",
    "steps": [
        {"title": "Factor", "description": "x^2 - 5x + 6 = (x - 2)(x - 3)", "hint": "Which numbers multiply to 6 and add to -5?"},
        {"title": "Solve each factor", "description": "x - 2 = 0 or x - 3 = 0"},
    ],
    "detailedExplanation": "A product is zero only when one of its factors is zero.",
    "solution": "x = 2 or x = 3",
}

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture
def fast_queue_config():
    """Removes pacing and retry delays so CLI tests run instantly."""
    set_config_for_testing({
        "queue.min_time_between_requests_ms": 0,
        "queue.retry_delay_ms": 0,
        "queue.max_retries": 2,
    })
    yield
    clear_test_config()

@pytest.fixture
def mock_gpt_client(mocker):
    """Patches GptClient where main.py builds it and returns the mock instance."""
    mock = mocker.MagicMock(spec=GptClient)
    mock.send_messages = AsyncMock(return_value=StructuredAIResponse(
        content=json.dumps(SAMPLE_EXPLANATION), model_name="gpt-4o",
    ))
    mocker.patch('hwhelper.main.GptClient', return_value=mock)
    # Keep the test runner's log capture instead of re-pointing the root logger.
    mocker.patch('hwhelper.main.configure_logging')
    return mock

@pytest.fixture
def ensure_api_key_for_tests(monkeypatch):
    """Ensure a dummy API key is set so dependency wiring succeeds."""
    monkeypatch.setenv("OPENAI_API_KEY", "DUMMY_TEST_KEY_FOR_INIT")
