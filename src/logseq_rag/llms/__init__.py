# src/logseq_rag/llms/__init__.py

"""LLM client layer used for answer generation.

Example:
    >>> from logseq_rag.llms import create_llm_client, LLMConfig, Message, Role
    >>>
    >>> client = create_llm_client(LLMConfig(provider="anthropic", model="claude-haiku-4-5"))
    >>> response = await client.complete(
    ...     messages=[Message(role=Role.USER, content="Hello!")]
    ... )
    >>> async for token in client.stream(messages=[...]):
    ...     print(token, end="")
"""

from .base import LLMClient, LLMResponse, Message, Role, Usage
from .config import LLMConfig
from .factory import create_llm_client

__all__ = [
    "create_llm_client",
    "LLMClient",
    "LLMConfig",
    "Message",
    "Role",
    "LLMResponse",
    "Usage",
]
