# src/logseq_rag/embeddings/local.py

from __future__ import annotations

import asyncio
import logging
from time import monotonic

from sentence_transformers import SentenceTransformer

from logseq_rag.observability import names
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook

from .base import Embedding, EmbeddingsClient

logger = logging.getLogger(__name__)


class LocalEmbeddingsClient(EmbeddingsClient):
    """
    Offline embeddings with sentence-transformers.

    Encoding is CPU-bound, so it runs in a worker thread to keep the event
    loop free. Vectors are L2-normalized by default so cosine scores from
    Qdrant stay comparable to the OpenAI embeddings.

    The collection's vector size must match the model's output size
    (`dimensions` reports it).
    """

    def __init__(
        self,
        model_name: str,
        batch_size: int = 32,
        normalize: bool = True,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._model = SentenceTransformer(model_name)
        self._batch_size = batch_size
        self._normalize = normalize
        self.metrics_hook = metrics_hook
        logger.info(
            "Loaded local embedding model %s (dimensions=%s)",
            model_name,
            self.dimensions,
        )

    @property
    def dimensions(self) -> int | None:
        return self._model.get_sentence_embedding_dimension()

    async def embed(self, texts: list[str]) -> list[Embedding]:
        if not texts:
            return []

        start = monotonic()
        vectors = await asyncio.to_thread(
            self._model.encode,
            texts,
            batch_size=self._batch_size,
            convert_to_numpy=True,
            normalize_embeddings=self._normalize,
            show_progress_bar=False,
        )
        embeddings = [Embedding(vector=v.tolist()) for v in vectors]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.EMBEDDINGS_LOCAL_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.EMBEDDINGS_REQUESTS_TOTAL, labels={"backend": "local"}
        )
        logger.debug("Embedded %d texts locally in %.0fms", len(embeddings), elapsed_ms)
        return embeddings
