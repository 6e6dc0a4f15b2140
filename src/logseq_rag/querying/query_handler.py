import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from datetime import datetime

from logseq_rag.llms.base import LLMClient, Message, Role
from logseq_rag.prompts import PromptsLibrary

from .retriever import SearchResult

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated"
CONTEXT_SEPARATOR = "\n\n---\n\n"


class QueryHandler:
    """Answers a question from retrieved chunks with an LLM."""

    def __init__(
        self,
        llm: LLMClient,
        prompts: PromptsLibrary | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        prompt_version: str = "1.0",
    ) -> None:
        prompts = prompts or PromptsLibrary.default()
        self._llm = llm
        self._system_prompt = prompts.get("answer_system", prompt_version)
        self._user_prompt = prompts.get("answer_user", prompt_version)
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def query(self, question: str, context: list[SearchResult]) -> str:
        response = await self._llm.complete(
            messages=self.build_messages(question, context),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if not response.content:
            logger.warning("LLM returned no text (finish=%s)", response.finish_reason)
            return NO_RESPONSE
        return response.content

    async def stream_query(
        self, question: str, context: list[SearchResult]
    ) -> AsyncIterator[str]:
        """Yield answer tokens in order as the model produces them."""
        stream = self._llm.stream(
            messages=self.build_messages(question, context),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        # closing this generator early also closes the provider stream
        async with aclosing(stream):  # type: ignore[type-var]
            async for token in stream:
                yield token

    def build_messages(self, question: str, context: list[SearchResult]) -> list[Message]:
        return [
            Message(role=Role.SYSTEM, content=self._system_prompt.render()),
            Message(
                role=Role.USER,
                content=self._user_prompt.render(
                    question=question, context=format_context(context)
                ),
            ),
        ]


def format_context(results: list[SearchResult]) -> str:
    """Number each chunk so the model can cite it."""
    blocks = []
    for index, result in enumerate(results, start=1):
        metadata = result.chunk.metadata
        if metadata.document_type == "journal":
            source_info = f"Journal Entry: {format_date(metadata.date) or 'Unknown date'}"
        else:
            source_info = f"Page: {metadata.title}"

        blocks.append(
            f"[{index}] {source_info} (Relevance: {result.score * 100:.1f}%)\n"
            f"{result.chunk.content}"
        )
    return CONTEXT_SEPARATOR.join(blocks)


def format_date(value: str | None) -> str | None:
    """'2024-12-27T00:00:00+00:00' -> 'December 27, 2024'."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"
