from dataclasses import dataclass
from typing import Protocol

from logseq_rag.observability.base import MetricsHook


@dataclass(frozen=True)
class Embedding:
    vector: list[float]


class EmbeddingsClient(Protocol):
    """Turns texts into vectors, one per input, in input order."""

    metrics_hook: MetricsHook

    async def embed(self, texts: list[str]) -> list[Embedding]: ...

    @property
    def dimensions(self) -> int | None:
        """Output vector size, or None when the client cannot tell."""
        ...
