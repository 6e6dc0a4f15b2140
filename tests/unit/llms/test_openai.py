# tests/unit/llms/test_openai.py

from contextlib import aclosing
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from logseq_rag.llms.base import Message, Role
from logseq_rag.llms.openai import OpenAILLMClient
from logseq_rag.observability import names


class FakeChunkStream:
    """Stands in for the SDK's AsyncStream of chat completion chunks."""

    def __init__(self, deltas: list[str | None]) -> None:
        self._events = [self._event(d) for d in deltas]
        self._events.insert(0, MagicMock(choices=[]))
        self.closed = False

    @staticmethod
    def _event(content: str | None) -> MagicMock:
        event = MagicMock()
        event.choices = [MagicMock()]
        event.choices[0].delta.content = content
        return event

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self._events:
            yield event

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def mock_openai_response() -> MagicMock:
    """Create a mock OpenAI response."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = "Hello! How can I help you?"
    response.choices[0].finish_reason = "stop"
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 8
    response.usage.total_tokens = 18
    return response


class TestOpenAILLMClient:
    @pytest.mark.asyncio
    async def test_complete_basic(self, mock_openai_response: MagicMock) -> None:
        with patch("logseq_rag.llms.openai.AsyncOpenAI") as mock_openai:
            mock_client = AsyncMock()
            mock_client.chat.completions.create.return_value = mock_openai_response
            mock_openai.return_value = mock_client

            client = OpenAILLMClient(api_key="test-key")
            response = await client.complete(
                messages=[
                    Message(role=Role.SYSTEM, content="Be brief."),
                    Message(role=Role.USER, content="Hello!"),
                ]
            )

            assert response.content == "Hello! How can I help you?"
            assert response.finish_reason == "stop"
            assert response.usage.total_tokens == 18
            assert response.latency_ms >= 0
            assert mock_client.chat.completions.create.call_args.kwargs["messages"] == [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "Hello!"},
            ]

    @pytest.mark.asyncio
    async def test_complete_length_finish_reason(
        self, mock_openai_response: MagicMock
    ) -> None:
        mock_openai_response.choices[0].finish_reason = "length"
        with patch("logseq_rag.llms.openai.AsyncOpenAI") as mock_openai:
            mock_client = AsyncMock()
            mock_client.chat.completions.create.return_value = mock_openai_response
            mock_openai.return_value = mock_client

            client = OpenAILLMClient(api_key="test-key")
            response = await client.complete(
                messages=[Message(role=Role.USER, content="Hello!")], max_tokens=5
            )

            assert response.finish_reason == "length"
            assert mock_client.chat.completions.create.call_args.kwargs["max_tokens"] == 5

    @pytest.mark.asyncio
    async def test_metrics_hook_called(self, mock_openai_response: MagicMock) -> None:
        with patch("logseq_rag.llms.openai.AsyncOpenAI") as mock_openai:
            mock_client = AsyncMock()
            mock_client.chat.completions.create.return_value = mock_openai_response
            mock_openai.return_value = mock_client

            metrics_hook = MagicMock()
            client = OpenAILLMClient(api_key="test-key", metrics_hook=metrics_hook)

            await client.complete(messages=[Message(role=Role.USER, content="Hi")])

            assert (
                metrics_hook.record_latency.call_args.args[0]
                == names.LLM_COMPLETION_DURATION
            )
            metrics_hook.increment.assert_any_call(names.LLM_TOKENS_PROMPT, 10)
            metrics_hook.increment.assert_any_call(names.LLM_TOKENS_COMPLETION, 8)


class TestOpenAIStreaming:
    @pytest.mark.asyncio
    async def test_stream_skips_empty_deltas(self) -> None:
        fake_stream = FakeChunkStream(["Hel", None, "lo", ""])
        with patch("logseq_rag.llms.openai.AsyncOpenAI") as mock_openai:
            mock_client = AsyncMock()
            mock_client.chat.completions.create.return_value = fake_stream
            mock_openai.return_value = mock_client

            client = OpenAILLMClient(api_key="test-key")
            tokens = [
                token
                async for token in client.stream(
                    messages=[Message(role=Role.USER, content="Hi")]
                )
            ]

            assert tokens == ["Hel", "lo"]
            assert fake_stream.closed
            assert mock_client.chat.completions.create.call_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_closing_early_closes_provider_stream(self) -> None:
        fake_stream = FakeChunkStream(["a", "b"])
        with patch("logseq_rag.llms.openai.AsyncOpenAI") as mock_openai:
            mock_client = AsyncMock()
            mock_client.chat.completions.create.return_value = fake_stream
            mock_openai.return_value = mock_client

            client = OpenAILLMClient(api_key="test-key")
            async with aclosing(
                client.stream(messages=[Message(role=Role.USER, content="Hi")])
            ) as tokens:
                async for _ in tokens:
                    break

            assert fake_stream.closed
