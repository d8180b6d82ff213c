import asyncio
import os
from typing import List
from unittest.mock import MagicMock, patch

import httpx
import pytest
from openai import OpenAI, AuthenticationError, RateLimitError

from hwhelper.domain.models.ai import ChatMessage, StructuredAIResponse
from hwhelper.domain.models.common import MessageRole
from hwhelper.infrastructure.ai.openai.gpt_client import GptClient
from hwhelper.infrastructure.resilience.rate_limit import is_rate_limit_error

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

TEST_MESSAGES: List[ChatMessage] = [
    {'role': MessageRole('system'), 'content': 'Be helpful.'},
    {'role': MessageRole('user'), 'content': 'Solve 2x + 3 = 7'}
]

# Fixture to provide a mock OpenAI client instance
@pytest.fixture
def mock_openai_client():
    mock_client = MagicMock(spec=OpenAI)
    mock_usage = MagicMock()
    mock_usage.prompt_tokens = 10
    mock_usage.completion_tokens = 20
    mock_usage.total_tokens = 30

    mock_choice = MagicMock()
    mock_choice.message.content = '{"problemType": "Linear equation"}'
    mock_completion = MagicMock()
    mock_completion.choices = [mock_choice]
    mock_completion.usage = mock_usage
    mock_completion.model = "gpt-4o-2024-08-06"

    mock_client.chat = MagicMock()
    mock_client.chat.completions.create.return_value = mock_completion
    return mock_client

@patch('hwhelper.infrastructure.ai.openai.gpt_client.OpenAI')
def test_gpt_client_init_success(mock_openai_constructor, mock_openai_client):
    """Test successful initialization with API key; SDK retries are disabled."""
    mock_openai_constructor.return_value = mock_openai_client
    client = GptClient(api_key="test_key")
    mock_openai_constructor.assert_called_once_with(api_key="test_key", max_retries=0)
    assert client.model == GptClient.DEFAULT_MODEL

@patch('hwhelper.infrastructure.ai.openai.gpt_client.OpenAI')
def test_gpt_client_init_no_key(mock_openai_constructor):
    """Test initialization failure when no API key is found."""
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ValueError, match="OpenAI API key not provided"):
            GptClient(api_key=None)
        mock_openai_constructor.assert_not_called()

@patch('hwhelper.infrastructure.ai.openai.gpt_client.OpenAI')
def test_send_messages_success(mock_openai_constructor, mock_openai_client):
    """Test sending messages with a JSON response format."""
    mock_openai_constructor.return_value = mock_openai_client
    client = GptClient(api_key="test_key", model="gpt-4o", temperature=0.2)

    response: StructuredAIResponse = asyncio.run(client.send_messages(TEST_MESSAGES, response_format="json_object"))

    assert response.content == '{"problemType": "Linear equation"}'
    assert response.token_usage == {'prompt_tokens': 10, 'completion_tokens': 20, 'total_tokens': 30}
    assert response.model_name == "gpt-4o-2024-08-06"
    assert response.latency_ms is not None

    call_args = mock_openai_client.chat.completions.create.call_args
    assert call_args.kwargs['model'] == "gpt-4o"
    assert call_args.kwargs['messages'] == TEST_MESSAGES
    assert call_args.kwargs['temperature'] == 0.2
    assert call_args.kwargs['response_format'] == {"type": "json_object"}

@patch('hwhelper.infrastructure.ai.openai.gpt_client.OpenAI')
def test_send_messages_without_response_format(mock_openai_constructor, mock_openai_client):
    mock_openai_constructor.return_value = mock_openai_client
    client = GptClient(api_key="test_key")

    asyncio.run(client.send_messages(TEST_MESSAGES))

    assert 'response_format' not in mock_openai_client.chat.completions.create.call_args.kwargs

@pytest.mark.parametrize(
    "error, rate_limited",
    [
        (RateLimitError("Rate limit exceeded", response=httpx.Response(429, request=REQUEST), body=None), True),
        (AuthenticationError("Invalid API key", response=httpx.Response(401, request=REQUEST), body=None), False),
    ]
)
@patch('hwhelper.infrastructure.ai.openai.gpt_client.OpenAI')
def test_send_messages_reraises_sdk_errors_unchanged(mock_openai_constructor, mock_openai_client, error, rate_limited):
    """SDK errors reach the caller as-is so the queue can classify them."""
    mock_openai_constructor.return_value = mock_openai_client
    mock_openai_client.chat.completions.create.side_effect = error
    client = GptClient(api_key="test_key")

    with pytest.raises(type(error)) as exc_info:
        asyncio.run(client.send_messages(TEST_MESSAGES))

    assert exc_info.value is error
    assert is_rate_limit_error(exc_info.value) is rate_limited
    mock_openai_client.chat.completions.create.assert_called_once()

@patch('hwhelper.infrastructure.ai.openai.gpt_client.OpenAI')
def test_send_messages_invalid_response_structure(mock_openai_constructor, mock_openai_client):
    mock_openai_constructor.return_value = mock_openai_client
    mock_openai_client.chat.completions.create.return_value.choices = []
    client = GptClient(api_key="test_key")

    with pytest.raises(ValueError, match="Invalid response structure"):
        asyncio.run(client.send_messages(TEST_MESSAGES))
